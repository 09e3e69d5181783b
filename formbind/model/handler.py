"""
Form Model Handler Base Module

This module provides the base class shared by the default-values, update and
options mixins: settings access, row lookups, primary key coercion, saving
and integrity error translation.
"""

import logging
import re
import uuid
from typing import Any, Iterable, Optional

from django.core.exceptions import ValidationError
from django.core.validators import EMPTY_VALUES
from django.db import models
from django.db.models.query import QuerySet

from ..bindings.config import FormBinding
from ..core.exceptions import (
    FormBindError,
    NestedDepthError,
    RelatedObjectNotFoundError,
)
from ..core.settings import BindingSettings

logger = logging.getLogger(__name__)


def get_binding(form) -> FormBinding:
    """Binding of ``form``; plain Django forms get an empty one."""
    return getattr(form, "binding", None) or FormBinding()


def is_empty_value(value: Any) -> bool:
    return value is False or value in EMPTY_VALUES


class FormModelBase:
    """Base class for FormModel providing core utility methods."""

    def __init__(self, form, settings: Optional[BindingSettings] = None):
        self.form = form
        if settings is None:
            settings = getattr(form, "binding_settings", None)
        self.settings = settings or BindingSettings.from_settings()
        self.max_depth = self.settings.max_nested_depth

    def _check_depth(self, depth: int) -> None:
        if depth > self.max_depth:
            raise NestedDepthError(self.max_depth, depth)

    def _resolve_base(self, base: Optional[str]):
        """Follow a dotted path of Nested blocks from the root form."""
        form = self.form
        if not base:
            return form
        for part in base.split("."):
            nested_forms = getattr(form, "nested_forms", {})
            if part not in nested_forms:
                raise FormBindError(
                    f"Form has no nested block '{part}' (base '{base}')",
                    field=part,
                    code="UNKNOWN_BASE",
                )
            form = nested_forms[part]
            if not hasattr(form, "fields"):
                raise FormBindError(
                    f"Base '{base}' points at a repeatable block",
                    field=part,
                    code="INVALID_BASE",
                )
        return form

    def _coerce_pk(self, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            if value.isdigit():
                try:
                    return int(value)
                except (TypeError, ValueError):
                    pass
        return value

    def _is_empty_form(self, form, skip: Iterable[str] = ()) -> bool:
        """True when no field outside ``skip`` carries a submitted value."""
        cleaned_data = getattr(form, "cleaned_data", None) or {}
        skip = set(skip)
        for name, value in cleaned_data.items():
            if name in skip:
                continue
            if not is_empty_value(value):
                return False
        nested_forms = getattr(form, "nested_forms", {})
        return not any(child.has_changed() for child in nested_forms.values())

    def _get_related_object(
        self,
        model: type[models.Model],
        value: Any,
        field_name: str,
        lookup: str = "pk",
    ) -> Optional[models.Model]:
        """Fetch one related row by ``lookup``; ValidationError when missing."""
        if isinstance(value, models.Model):
            return value
        if is_empty_value(value):
            return None
        pk_value = self._coerce_pk(value)
        try:
            return model._default_manager.get(**{lookup: pk_value})
        except model.DoesNotExist:
            error = RelatedObjectNotFoundError(model.__name__, field_name, value)
            raise ValidationError({field_name: error.message})
        except (TypeError, ValueError, ValidationError):
            raise ValidationError(
                {field_name: f"Field '{field_name}' invalid ID format: '{value}'."}
            )

    def _get_related_objects(
        self, model: type[models.Model], values: Any, field_name: str
    ) -> list[models.Model]:
        """Fetch related rows for a list of ids, keeping the submitted order."""
        if values is None:
            return []
        if isinstance(values, QuerySet):
            return list(values)
        if isinstance(values, (str, int, uuid.UUID, models.Model)):
            values = [values]

        instances = [v for v in values if isinstance(v, models.Model)]
        submitted = [
            v for v in values if not isinstance(v, models.Model) and not is_empty_value(v)
        ]
        if not submitted:
            return instances
        pk_field = model._meta.pk
        try:
            # "5" and 5, or a UUID in any spelling, must compare equal
            pks = [pk_field.to_python(self._coerce_pk(v)) for v in submitted]
            found = {obj.pk: obj for obj in model._default_manager.filter(pk__in=pks)}
        except (TypeError, ValueError, ValidationError):
            raise ValidationError(
                {field_name: f"Field '{field_name}' contains an invalid ID."}
            )
        missing = [
            value for value, pk in zip(submitted, pks) if pk not in found
        ]
        if missing:
            error = RelatedObjectNotFoundError(model.__name__, field_name, missing[0])
            raise ValidationError({field_name: error.message})
        return instances + [found[pk] for pk in pks]

    def _save_instance(self, instance: models.Model) -> None:
        from django.db import IntegrityError

        try:
            if self.settings.validate_instances:
                instance.full_clean()
            instance.save()
        except IntegrityError as e:
            self._handle_integrity_error(type(instance), e)

    def _map_column_to_field(self, model: type[models.Model], column: str) -> Optional[str]:
        for f in model._meta.concrete_fields:
            if f.column == column:
                return f.name
        return None

    def _handle_integrity_error(self, model: type[models.Model], error: Exception) -> None:
        error_msg = str(error)
        match = re.search(r'null value in column "(\w+)"', error_msg) or re.search(
            r"NOT NULL constraint failed: [\w]+\.(\w+)", error_msg
        )
        if match:
            col = match.group(1)
            field_name = self._map_column_to_field(model, col) or col
            raise ValidationError({field_name: "This field cannot be null."})

        match = re.search(r"UNIQUE constraint failed: ([\w\., ]+)", error_msg) or re.search(
            r"Key \(([^\)]+)\)=\(([^\)]+)\) already exists", error_msg
        )
        if match:
            errors = {}
            for col in (part.strip() for part in match.group(1).split(",")):
                col_name = col.split(".")[-1]
                field_name = self._map_column_to_field(model, col_name) or col_name
                errors[field_name] = "A row with this value already exists."
            raise ValidationError(errors)

        raise ValidationError(f"Failed to save {model.__name__}: {error}")
