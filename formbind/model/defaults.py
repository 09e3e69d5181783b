"""
Default Values Mixin

Copies values from a model instance into the initial data of a form tree.
"""

import inspect
import logging
from typing import Any

from django.db import models
from django.forms.formsets import BaseFormSet

from ..bindings.config import Nested
from ..bindings.relations import (
    RelationKind,
    get_related_manager,
    get_single_related,
    related_pks,
    resolve_relation,
)
from .handler import get_binding

logger = logging.getLogger(__name__)

NO_VALUE = object()


class DefaultValuesMixin:
    """
    Mixin class providing ``default_values``.

    This mixin handles:
    - Columns, foreign key ids and attribute accessors
    - Lists of related ids for many-to-many and reverse foreign keys
    - Child forms for single related rows
    - Formset rows for related collections
    """

    def default_values(self, instance: models.Model, base: str = None):
        """
        Fill the form with values taken from ``instance``.

        Args:
            instance: Row providing the values
            base: Dotted path of a nested block to fill instead of the root

        Returns:
            The root form
        """
        form = self._resolve_base(base)
        self._fill_form(form, instance, depth=0)
        return self.form

    def _fill_form(self, form, instance: models.Model, depth: int) -> None:
        self._check_depth(depth)
        form.initial.update(self._initial_for(form, instance))

        binding = get_binding(form)
        model = type(instance)
        for name, declaration in binding.nested.items():
            info = resolve_relation(model, declaration.accessor or name)
            if isinstance(declaration, Nested):
                if info.kind not in (RelationKind.BELONGS_TO, RelationKind.HAS_ONE):
                    logger.debug("Skipping nested block %s: %s", name, info.kind.value)
                    continue
                related = get_single_related(instance, info)
                if related is not None:
                    child = form.nested_forms[name]
                    if hasattr(child, "binding"):
                        child.instance = related
                    self._fill_form(child, related, depth + 1)
                continue

            if not info.is_to_many:
                logger.debug("Skipping repeatable %s: %s", name, info.kind.value)
                continue
            rows = self._repeatable_rows(instance, info, declaration)
            id_field = form.id_field_for(declaration)
            formset = form.build_nested(
                name, initial=[{id_field: row.pk} for row in rows]
            )
            form.nested_forms[name] = formset
            for row_form, row in zip(formset.forms, rows):
                if hasattr(row_form, "binding"):
                    row_form.instance = row
                self._fill_form(row_form, row, depth + 1)
                row_form.initial[id_field] = row.pk
            if getattr(self.form, "_options_populated", False):
                self._populate_formset_options(formset, form.nested_models.get(name))

    def _repeatable_rows(self, instance, info, declaration) -> list[models.Model]:
        if instance.pk is None:
            return []
        queryset = get_related_manager(instance, info).all()
        if declaration.condition:
            queryset = queryset.filter(**declaration.condition)
        if declaration.order_by:
            queryset = queryset.order_by(*declaration.order_by)
        return list(queryset)

    def _initial_for(self, form, instance: models.Model) -> dict[str, Any]:
        binding = get_binding(form)
        model = type(instance)
        initial = {}
        for name in form.fields:
            if name in binding.exclude:
                continue
            accessor = binding.for_field(name).accessor or name
            info = resolve_relation(model, accessor)

            if info.kind == RelationKind.COLUMN:
                initial[name] = info.field.value_from_object(instance)
            elif info.kind == RelationKind.BELONGS_TO:
                initial[name] = getattr(instance, info.field.attname)
            elif info.is_to_many:
                initial[name] = related_pks(instance, info)
            elif info.kind == RelationKind.HAS_ONE:
                related = get_single_related(instance, info)
                initial[name] = related.pk if related is not None else None
            elif info.kind == RelationKind.ACCESSOR:
                value = self._read_accessor(instance, accessor)
                if value is not NO_VALUE:
                    initial[name] = value
            else:
                logger.debug("No value for %s on %s", name, model.__name__)
        return initial

    def _read_accessor(self, instance: models.Model, accessor: str) -> Any:
        value = getattr(instance, accessor)
        if not inspect.ismethod(value):
            return value
        try:
            inspect.signature(value).bind()
        except TypeError:
            # Setter-style method, nothing to read
            return NO_VALUE
        return value()

    def _populate_formset_options(self, formset: BaseFormSet, model) -> None:
        from ..forms.base import iter_child_forms

        for index, row_form in enumerate(formset.forms):
            for _path, form, form_model in iter_child_forms(row_form, str(index), model):
                self._populate_form_options(form, form_model)
