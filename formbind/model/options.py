"""
Options Mixin

Fills the choices of selection fields from querysets or from the choices of
enumerated model fields.
"""

import inspect
import logging
from typing import Any, Optional

from django import forms
from django.db import models
from django.db.models.query import QuerySet

from ..bindings.config import FieldBinding, resolve_model
from ..bindings.relations import RelationKind, resolve_relation
from .handler import get_binding

logger = logging.getLogger(__name__)


class OptionsMixin:
    """Mixin class providing ``options_from_model``."""

    def options_from_model(self):
        """
        Populate every choice field of the form tree that has no choices yet.

        Returns:
            The root form
        """
        iter_forms = getattr(self.form, "iter_forms", None)
        tree = iter_forms() if iter_forms else [("", self.form, None)]
        for _path, form, model in tree:
            self._populate_form_options(form, model)
        self.form._options_populated = True
        return self.form

    def _populate_form_options(self, form, model) -> None:
        binding = get_binding(form)
        context = getattr(self.form, "context", None) or {}
        for name, field in form.fields.items():
            if not isinstance(field, forms.ChoiceField):
                continue
            field_binding = binding.for_field(name)
            if not field_binding.options_from_model or name in binding.exclude:
                continue

            if isinstance(field, forms.ModelChoiceField):
                if (
                    field_binding.condition
                    or field_binding.condition_from_context
                    or field_binding.order_by
                ):
                    field.queryset = self._filter_options(
                        field.queryset, field_binding, context
                    )
                continue

            if list(field.choices):
                continue
            choices = self._build_choices(form, name, field_binding, model, context)
            if choices is None:
                continue
            if field_binding.empty_first:
                label = field_binding.empty_first
                if not isinstance(label, str):
                    label = self.settings.empty_first_label or ""
                choices = [("", label)] + choices
            field.choices = choices

    def _build_choices(
        self, form, name: str, field_binding: FieldBinding, model, context
    ) -> Optional[list[tuple[Any, Any]]]:
        info = None
        if model is not None:
            info = resolve_relation(model, field_binding.accessor or name)

        queryset = self._options_queryset(form, field_binding, info)
        if queryset is None:
            if (
                info is not None
                and info.kind == RelationKind.COLUMN
                and info.field.choices
            ):
                return list(info.field.choices)
            logger.debug("No options source for field %s", name)
            return None

        queryset = self._filter_options(queryset, field_binding, context)
        value_column = field_binding.value_column
        if value_column is None and info is not None and info.kind == RelationKind.BELONGS_TO:
            value_column = info.field.target_field.attname
        value_column = value_column or "pk"
        return [
            (getattr(obj, value_column), self._option_label(obj, field_binding))
            for obj in queryset
        ]

    def _options_queryset(self, form, field_binding: FieldBinding, info) -> Optional[QuerySet]:
        source = field_binding.queryset
        if callable(source) and not isinstance(source, QuerySet):
            source = source(form)
        if isinstance(source, QuerySet):
            return source.all()

        model = resolve_model(field_binding.model)
        if model is not None:
            return model._default_manager.all()

        if info is not None and info.is_relation:
            queryset = info.related_model._default_manager.all()
            field = info.field
            if not isinstance(field, models.ForeignObjectRel) and hasattr(
                field, "get_limit_choices_to"
            ):
                limit = field.get_limit_choices_to()
                if limit:
                    queryset = queryset.complex_filter(limit)
            return queryset
        return None

    def _filter_options(self, queryset: QuerySet, field_binding: FieldBinding, context) -> QuerySet:
        if field_binding.condition:
            queryset = queryset.filter(**field_binding.condition)
        lookups = {}
        for lookup, key in field_binding.condition_from_context.items():
            if key not in context:
                logger.debug("Context has no %r for condition %s", key, lookup)
                continue
            lookups[lookup] = context[key]
        if lookups:
            queryset = queryset.filter(**lookups)
        if field_binding.order_by:
            queryset = queryset.order_by(*field_binding.order_by)
        return queryset

    def _option_label(self, obj: models.Model, field_binding: FieldBinding) -> Any:
        label_column = field_binding.label_column
        if callable(label_column):
            return label_column(obj)
        candidates = [label_column] if label_column else self.settings.label_columns
        for column in candidates:
            if not hasattr(obj, column):
                continue
            value = getattr(obj, column)
            if inspect.ismethod(value):
                value = value()
            return value
        return str(obj)
