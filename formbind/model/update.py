"""
Update Mixin

Writes the cleaned data of a form tree into a model instance and its related
rows.

Order of operations for one form:
1. columns, foreign key ids and accessors are set on the row
2. nested belongs-to blocks are saved and linked
3. the row is saved
4. to-many fields, has-one blocks and repeatables are saved
"""

import inspect
import logging
from typing import Any, Iterable, Optional

from django.core.exceptions import ValidationError
from django.db import models, transaction

from ..bindings.config import FieldBinding, Nested, Repeatable, resolve_model
from ..bindings.relations import (
    RelationInfo,
    RelationKind,
    get_related_manager,
    get_single_related,
    resolve_relation,
)
from ..core.exceptions import (
    FormBindError,
    FormInvalidError,
    InvalidBindingError,
    UnboundFormError,
)
from .handler import get_binding, is_empty_value

logger = logging.getLogger(__name__)

FORMSET_DELETE_FIELD = "DELETE"


class UpdateMixin:
    """
    Mixin class providing ``update`` and ``create``.

    This mixin handles:
    - Column and accessor writes with read_only / ignore_if_empty / null_if_empty
    - Foreign keys by id and nested belongs-to blocks
    - Has-one blocks created, updated or deleted when emptied
    - Repeatable rows updated, created (up to new_rows_max) or deleted
    - Many-to-many link replacement or addition with link row values
    """

    def update(self, instance: Optional[models.Model] = None, base: Optional[str] = None):
        """
        Write the submitted values into ``instance`` and its related rows.

        Args:
            instance: Row to update; defaults to the form's instance
            base: Dotted path of a nested block holding the row's values

        Returns:
            The saved instance

        Raises:
            UnboundFormError: The form has no submitted data
            FormInvalidError: The form tree did not validate
            ValidationError: Submitted ids or row values were rejected
        """
        self._ensure_valid()
        if instance is None:
            instance = getattr(self.form, "instance", None)
        if instance is None:
            raise FormBindError(
                "update() needs an instance; use create() for new rows",
                code="MISSING_INSTANCE",
            )
        form = self._resolve_base(base)

        if self.settings.atomic_updates:
            with transaction.atomic():
                self._save_form(form, instance, depth=0)
        else:
            self._save_form(form, instance, depth=0)
        logger.debug("Updated %s pk=%s", type(instance).__name__, instance.pk)
        return instance

    def create(self, model=None, base: Optional[str] = None) -> models.Model:
        """
        Create a new row of ``model`` from the submitted values.

        Args:
            model: Model class or "app_label.Model"; defaults to the model of
                   the bound form (or of ``base``)
            base: Dotted path of a nested block holding the row's values

        Returns:
            The created instance
        """
        form = self._resolve_base(base)
        model = resolve_model(model) or getattr(form, "binding_model", None)
        if model is None:
            raise InvalidBindingError("create() needs a model; set Binding.model")
        return self.update(model(), base=base)

    def _ensure_valid(self) -> None:
        form = self.form
        form_name = type(form).__name__
        if not form.is_bound:
            raise UnboundFormError(form_name)
        if not form.is_valid():
            errors = form.tree_errors() if hasattr(form, "tree_errors") else form.errors
            raise FormInvalidError(form_name, errors)

    def _save_form(
        self,
        form,
        instance: models.Model,
        depth: int,
        skip: Iterable[str] = (),
    ) -> models.Model:
        self._check_depth(depth)
        model = type(instance)
        binding = get_binding(form)
        cleaned_data = getattr(form, "cleaned_data", None) or {}
        skip = set(skip)

        deferred = []
        for name in form.fields:
            if name in skip or name in binding.exclude or name not in cleaned_data:
                continue
            field_binding = binding.for_field(name)
            if field_binding.read_only:
                continue
            value = cleaned_data[name]
            if is_empty_value(value):
                if field_binding.ignore_if_empty:
                    continue
                if field_binding.null_if_empty:
                    value = None

            accessor = field_binding.accessor or name
            info = resolve_relation(model, accessor)
            if info.kind == RelationKind.COLUMN:
                setattr(instance, info.field.attname, self._column_value(info, value))
            elif info.kind == RelationKind.BELONGS_TO:
                setattr(instance, info.name, self._resolve_belongs_to(info, value, name))
            elif info.kind == RelationKind.ACCESSOR:
                self._write_accessor(instance, accessor, value)
            elif info.kind == RelationKind.UNKNOWN:
                logger.debug("Skipping %s: not on %s", name, model.__name__)
            else:
                deferred.append((name, info, field_binding, value))

        after_save = []
        orphans = []
        for name, declaration in binding.nested.items():
            if declaration.read_only:
                continue
            info = resolve_relation(model, declaration.accessor or name)
            child = form.nested_forms[name]
            if isinstance(declaration, Nested):
                if info.kind == RelationKind.BELONGS_TO:
                    orphan = self._save_nested_belongs_to(
                        instance, info, declaration, child, depth
                    )
                    if orphan is not None:
                        orphans.append(orphan)
                elif info.kind == RelationKind.HAS_ONE:
                    after_save.append((info, declaration, child))
                else:
                    raise InvalidBindingError(
                        f"Nested block '{name}' needs a foreign key or one-to-one "
                        f"relation, {model.__name__}.{info.name} is {info.kind.value}",
                        field=name,
                    )
            else:
                if not info.is_to_many:
                    raise InvalidBindingError(
                        f"Repeatable '{name}' needs a to-many relation, "
                        f"{model.__name__}.{info.name} is {info.kind.value}",
                        field=name,
                    )
                after_save.append((info, declaration, child))

        self._save_instance(instance)

        for orphan in orphans:
            orphan.delete()
        for name, info, field_binding, value in deferred:
            if info.kind == RelationKind.MANY_TO_MANY:
                self._save_many_to_many(instance, info, field_binding, value, name)
            elif info.kind == RelationKind.HAS_MANY:
                self._save_has_many_links(instance, info, field_binding, value, name)
            elif info.kind == RelationKind.HAS_ONE:
                self._save_has_one_link(instance, info, value, name)
        for info, declaration, child in after_save:
            if isinstance(declaration, Repeatable):
                self._save_repeatable(instance, info, declaration, child, form, depth)
            else:
                self._save_nested_has_one(instance, info, declaration, child, depth)
        return instance

    def _column_value(self, info: RelationInfo, value: Any) -> Any:
        if info.field.attname != info.field.name:
            # Raw foreign key id written through its attname
            if is_empty_value(value):
                return None
            return self._coerce_pk(value)
        return value

    def _resolve_belongs_to(self, info: RelationInfo, value: Any, field_name: str):
        target = info.field.target_field.attname
        return self._get_related_object(info.related_model, value, field_name, lookup=target)

    def _write_accessor(self, instance: models.Model, accessor: str, value: Any) -> None:
        attr = inspect.getattr_static(type(instance), accessor, None)
        if isinstance(attr, property):
            if attr.fset is None:
                logger.debug("Skipping read-only property %s", accessor)
                return
            setattr(instance, accessor, value)
        elif inspect.isfunction(attr):
            getattr(instance, accessor)(value)
        else:
            setattr(instance, accessor, value)

    def _save_nested_belongs_to(
        self, instance, info: RelationInfo, declaration: Nested, child, depth: int
    ) -> Optional[models.Model]:
        """Save the related row of a forward FK; returns a row to delete."""
        related = get_single_related(instance, info)
        empty = self._is_empty_form(child)
        if empty and related is None:
            return None
        if empty and declaration.delete_if_empty:
            if not info.nullable:
                raise ValidationError(
                    {info.name: f"{info.name} is required and cannot be removed."}
                )
            setattr(instance, info.name, None)
            return related
        if related is None:
            related = info.related_model()
        self._save_form(child, related, depth + 1)
        setattr(instance, info.name, related)
        return None

    def _save_nested_has_one(
        self, instance, info: RelationInfo, declaration: Nested, child, depth: int
    ) -> None:
        related = get_single_related(instance, info)
        empty = self._is_empty_form(child)
        if empty and related is None:
            return
        if empty and declaration.delete_if_empty:
            related.delete()
            return
        if related is None:
            related = info.related_model(**{info.remote_field_name: instance})
        self._save_form(child, related, depth + 1)

    def _save_repeatable(
        self,
        instance,
        info: RelationInfo,
        declaration: Repeatable,
        formset,
        form,
        depth: int,
    ) -> None:
        id_field = form.id_field_for(declaration)
        skip = {id_field, FORMSET_DELETE_FIELD}
        if declaration.delete_if_true:
            skip.add(declaration.delete_if_true)
        manager = get_related_manager(instance, info)
        limit = declaration.rows_limit
        created = 0

        for row_form in formset.forms:
            cleaned_data = getattr(row_form, "cleaned_data", None) or {}
            pk = self._coerce_pk(cleaned_data.get(id_field))
            delete = bool(
                (declaration.can_delete and cleaned_data.get(FORMSET_DELETE_FIELD))
                or (
                    declaration.delete_if_true
                    and cleaned_data.get(declaration.delete_if_true)
                )
            )

            if not is_empty_value(pk):
                row = self._get_owned_row(manager, pk, info)
                if delete:
                    if info.kind == RelationKind.HAS_MANY:
                        row.delete()
                    else:
                        manager.remove(row)
                    continue
                self._save_form(row_form, row, depth + 1, skip=skip)
                continue

            if delete or self._is_empty_form(row_form, skip):
                continue
            if limit is not None and created >= limit:
                logger.debug(
                    "Skipping new %s row: new_rows_max=%s reached", info.name, limit
                )
                continue

            if info.kind == RelationKind.HAS_MANY:
                row = info.related_model(**{info.remote_field_name: instance})
                self._save_form(row_form, row, depth + 1, skip=skip)
            else:
                row = info.related_model()
                self._save_form(row_form, row, depth + 1, skip=skip)
                manager.add(row)
            created += 1

    def _get_owned_row(self, manager, pk: Any, info: RelationInfo) -> models.Model:
        try:
            row = manager.filter(pk=pk).first()
        except (TypeError, ValueError, ValidationError):
            row = None
        if row is None:
            raise ValidationError(
                {
                    info.name: f"{info.related_model.__name__} with id '{pk}' "
                    f"does not belong to this {info.model.__name__}."
                }
            )
        return row

    def _save_many_to_many(
        self, instance, info: RelationInfo, field_binding: FieldBinding, value, name: str
    ) -> None:
        objects = self._get_related_objects(info.related_model, value, name)
        manager = get_related_manager(instance, info)
        through_defaults = field_binding.link_values or None
        if field_binding.additive:
            manager.add(*objects, through_defaults=through_defaults)
        else:
            manager.set(objects, through_defaults=through_defaults)

    def _save_has_many_links(
        self, instance, info: RelationInfo, field_binding: FieldBinding, value, name: str
    ) -> None:
        objects = self._get_related_objects(info.related_model, value, name)
        manager = get_related_manager(instance, info)
        if not field_binding.additive:
            stale = manager.exclude(pk__in=[obj.pk for obj in objects])
            if stale.exists():
                if not info.nullable:
                    raise ValidationError(
                        {name: f"{info.related_model.__name__} rows cannot be detached."}
                    )
                manager.remove(*stale)
        if objects:
            manager.add(*objects)

    def _save_has_one_link(self, instance, info: RelationInfo, value, name: str) -> None:
        current = get_single_related(instance, info)
        target = self._get_related_object(info.related_model, value, name)
        if current is not None and (target is None or current.pk != target.pk):
            if not info.nullable:
                raise ValidationError(
                    {name: f"{info.related_model.__name__} cannot be detached."}
                )
            setattr(current, info.remote_field_name, None)
            self._save_instance(current)
        if target is not None and (current is None or current.pk != target.pk):
            setattr(target, info.remote_field_name, instance)
            self._save_instance(target)
