"""
Database-backed form constraints.
"""

import logging
from typing import Any, Callable, Optional, Sequence, Union

from django.core.exceptions import ValidationError
from django.core.validators import EMPTY_VALUES
from django.db.models.query import QuerySet

from .bindings.config import resolve_model
from .core.exceptions import InvalidBindingError

logger = logging.getLogger(__name__)


class Unique:
    """
    Reject a value that already exists in a model column.

    Attach it to a field through ``FieldBinding(unique=Unique(...))``; the
    check runs while the form cleans.

    Args:
        model: Model to search; defaults to the form's bound model
        column: Column to compare; defaults to the field's accessor or name
        others: Sibling field names whose values join the lookup
        case_insensitive: Compare with ``iexact``
        exclude_instance: Ignore the row the form is editing
        queryset: QuerySet, or callable taking the form, to search instead
        message: Error message; ``%(field)s`` and ``%(value)s`` are filled in
    """

    message = "A record with this %(field)s already exists."
    code = "unique"

    def __init__(
        self,
        model: Any = None,
        column: Optional[str] = None,
        others: Sequence[str] = (),
        case_insensitive: bool = False,
        exclude_instance: bool = True,
        queryset: Union[QuerySet, Callable, None] = None,
        message: Optional[str] = None,
    ):
        self.model = model
        self.column = column
        self.others = list(others)
        self.case_insensitive = case_insensitive
        self.exclude_instance = exclude_instance
        self.queryset = queryset
        if message is not None:
            self.message = message

    def get_queryset(self, form) -> QuerySet:
        source = self.queryset
        if callable(source) and not isinstance(source, QuerySet):
            source = source(form)
        if isinstance(source, QuerySet):
            return source.all()
        model = resolve_model(self.model) or getattr(form, "binding_model", None)
        if model is None:
            raise InvalidBindingError("Unique needs a model or a queryset")
        return model._default_manager.all()

    def _column_for(self, form, name: str) -> str:
        binding = getattr(form, "binding", None)
        if binding is not None:
            return binding.for_field(name).accessor or name
        return name

    def __call__(
        self, form, name: str, value: Any, cleaned_data: Optional[dict] = None
    ) -> None:
        if value in EMPTY_VALUES:
            return
        if cleaned_data is None:
            cleaned_data = getattr(form, "cleaned_data", {})
        queryset = self.get_queryset(form)
        column = self.column or self._column_for(form, name)
        lookup = f"{column}__iexact" if self.case_insensitive else column
        filters = {lookup: value}
        for other in self.others:
            if other not in cleaned_data:
                # Sibling failed its own validation
                logger.debug("Skipping unique check on %s: %s is invalid", name, other)
                return
            filters[self._column_for(form, other)] = cleaned_data[other]
        queryset = queryset.filter(**filters)

        instance = getattr(form, "instance", None)
        if (
            self.exclude_instance
            and instance is not None
            and instance.pk is not None
            and isinstance(instance, queryset.model)
        ):
            queryset = queryset.exclude(pk=instance.pk)

        if queryset.exists():
            logger.debug("Unique check failed for %s=%r", column, value)
            raise ValidationError(
                self.message,
                code=self.code,
                params={"field": name, "value": value},
            )
