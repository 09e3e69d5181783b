"""
BindingForm: a Django form that knows how it maps onto a model.

A BindingForm owns a tree of child forms: one child form per ``Nested``
declaration and one formset per ``Repeatable`` declaration, all fed from the
same submitted data under their own prefix.
"""

import logging
from typing import Any, Iterator, Optional

from django import forms
from django.core.validators import EMPTY_VALUES
from django.forms.formsets import BaseFormSet, formset_factory

from ..bindings.config import FormBinding, Nested, Repeatable, resolve_model
from ..bindings.relations import RelationKind, get_single_related, resolve_relation
from ..core.exceptions import NestedDepthError
from ..core.settings import BindingSettings

logger = logging.getLogger(__name__)


def build_row_form_class(form_class: type, id_field: str) -> type:
    """Return ``form_class`` with a hidden ``id_field`` when it lacks one."""
    if id_field in getattr(form_class, "base_fields", {}):
        return form_class
    attrs = {
        id_field: forms.CharField(required=False, widget=forms.HiddenInput),
        "__module__": form_class.__module__,
    }
    return type(form_class)(f"{form_class.__name__}Row", (form_class,), attrs)


def build_formset_class(repeatable: Repeatable, id_field: str) -> type:
    """Formset class for a Repeatable declaration."""
    row_form = build_row_form_class(repeatable.form_class, id_field)
    return formset_factory(
        row_form,
        extra=repeatable.empty_rows,
        can_delete=repeatable.can_delete,
    )


class BindingForm(forms.Form):
    """
    Django form bound to a model through an inner ``Binding`` class.

    Example:
        class AddressForm(forms.Form):
            street = forms.CharField()

        class UserForm(BindingForm):
            name = forms.CharField()
            groups = forms.MultipleChoiceField(required=False)

            class Binding:
                model = "accounts.User"
                fields = {"groups": FieldBinding(label_column="title")}
                nested = {"addresses": Repeatable(AddressForm, empty_rows=1)}
    """

    def __init__(
        self,
        data=None,
        files=None,
        *,
        instance=None,
        context: Optional[dict[str, Any]] = None,
        binding_model=None,
        binding_settings: Optional[BindingSettings] = None,
        depth: int = 0,
        row_id_field: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(data, files, **kwargs)
        self.binding = FormBinding.from_class(getattr(type(self), "Binding", None))
        self.binding_model = resolve_model(binding_model or self.binding.model)
        self.binding_settings = binding_settings or BindingSettings.from_settings()
        self.instance = instance
        self.context = context if context is not None else {}
        self.depth = depth
        # Hidden primary key field when this form is a repeatable row
        self.row_id_field = row_id_field
        self._form_model = None
        self._options_populated = False

        max_depth = self.binding_settings.max_nested_depth
        if depth > max_depth:
            raise NestedDepthError(max_depth, depth)

        self.nested_models: dict[str, Any] = {}
        self.nested_forms: dict[str, Any] = {}
        for name, declaration in self.binding.nested.items():
            self.nested_models[name] = self._resolve_nested_model(name, declaration)
            self.nested_forms[name] = self.build_nested(name)

        if depth == 0:
            if (
                instance is not None
                and not self.is_bound
                and self.binding_settings.populate_from_instance
            ):
                self.model.default_values(instance)
            if self.binding_settings.auto_options_from_model:
                self.model.options_from_model()

    @property
    def model(self):
        """The FormModel copying values between this form and rows."""
        if self._form_model is None:
            from ..model import FormModel

            self._form_model = FormModel(self, settings=self.binding_settings)
        return self._form_model

    def _resolve_nested_model(self, name: str, declaration) -> Any:
        if self.binding_model is None:
            return None
        info = resolve_relation(self.binding_model, declaration.accessor or name)
        if info.related_model is None:
            logger.warning(
                "%s.%s is not a relation; nested block '%s' has no model",
                self.binding_model.__name__,
                declaration.accessor or name,
                name,
            )
        elif isinstance(declaration, Repeatable) and not info.is_to_many:
            logger.warning(
                "Repeatable '%s' is bound to %s relation %s.%s",
                name,
                info.kind.value,
                self.binding_model.__name__,
                info.name,
            )
        elif isinstance(declaration, Nested) and info.kind not in (
            RelationKind.BELONGS_TO,
            RelationKind.HAS_ONE,
        ):
            logger.warning(
                "Nested '%s' is bound to %s relation %s.%s",
                name,
                info.kind.value,
                self.binding_model.__name__,
                info.name,
            )
        return info.related_model

    def _child_kwargs(self, form_class: type, related_model) -> dict[str, Any]:
        if not (isinstance(form_class, type) and issubclass(form_class, BindingForm)):
            return {}
        return {
            "binding_model": related_model,
            "binding_settings": self.binding_settings,
            "context": self.context,
            "depth": self.depth + 1,
        }

    def id_field_for(self, declaration: Repeatable) -> str:
        return declaration.id_field or self.binding_settings.default_id_field

    def build_nested(self, name: str, initial=None):
        """
        Build the child form or formset for nested block ``name``.

        Args:
            name: Key of the block in ``Binding.nested``
            initial: Initial dict (Nested) or list of dicts (Repeatable)

        Returns:
            A form instance or a formset instance
        """
        declaration = self.binding.nested[name]
        related_model = self.nested_models.get(name)
        data = self.data if self.is_bound else None
        files = self.files if self.is_bound else None
        prefix = self.add_prefix(name)
        child_kwargs = self._child_kwargs(declaration.form_class, related_model)

        if isinstance(declaration, Nested):
            related = self.related_row(name)
            if child_kwargs:
                child_kwargs["instance"] = related
            # A block over an existing row that is kept must write cleared values
            empty_permitted = related is None or declaration.delete_if_empty
            return declaration.form_class(
                data,
                files,
                prefix=prefix,
                initial=initial,
                empty_permitted=empty_permitted,
                use_required_attribute=False,
                **child_kwargs,
            )

        id_field = self.id_field_for(declaration)
        if child_kwargs:
            child_kwargs["row_id_field"] = id_field
        formset_class = build_formset_class(declaration, id_field)
        return formset_class(
            data,
            files,
            prefix=prefix,
            initial=initial,
            form_kwargs=child_kwargs,
        )

    def related_row(self, name: str):
        """Row edited by nested block ``name``, None when there is none yet."""
        instance = self.instance
        if instance is None:
            return None
        declaration = self.binding.nested[name]
        info = resolve_relation(type(instance), declaration.accessor or name)
        if info.kind == RelationKind.HAS_ONE and instance.pk is None:
            return None
        if info.kind not in (RelationKind.BELONGS_TO, RelationKind.HAS_ONE):
            return None
        return get_single_related(instance, info)

    def _row_from_id(self, pk):
        if pk in EMPTY_VALUES or self.binding_model is None:
            return None
        try:
            return self.binding_model._default_manager.filter(pk=pk).first()
        except (TypeError, ValueError, forms.ValidationError):
            return None

    def is_valid(self) -> bool:
        valid = super().is_valid()
        for child in self.nested_forms.values():
            valid = child.is_valid() and valid
        return valid

    def has_changed(self) -> bool:
        if super().has_changed():
            return True
        return any(child.has_changed() for child in self.nested_forms.values())

    def clean(self):
        cleaned_data = super().clean()
        # add_error() drops fields from cleaned_data; checks see the values
        # as they stood after field validation
        submitted = dict(cleaned_data)
        if self.instance is None and self.row_id_field:
            self.instance = self._row_from_id(submitted.get(self.row_id_field))
        for name, field_binding in self.binding.fields.items():
            check = field_binding.unique
            if check is None or name not in submitted:
                continue
            try:
                check(self, name, submitted[name], cleaned_data=submitted)
            except forms.ValidationError as exc:
                self.add_error(name, exc)
        return cleaned_data

    def iter_forms(self, path: str = "") -> Iterator[tuple[str, forms.BaseForm, Any]]:
        """
        Yield ``(path, form, model)`` for this form and every descendant.

        Paths are dotted, with row indexes for repeatables:
        ``""``, ``"profile"``, ``"addresses.0"``.
        """
        yield path, self, self.binding_model
        for name, child in self.nested_forms.items():
            child_path = f"{path}.{name}" if path else name
            model = self.nested_models.get(name)
            if isinstance(child, BaseFormSet):
                for index, row_form in enumerate(child.forms):
                    yield from iter_child_forms(row_form, f"{child_path}.{index}", model)
            else:
                yield from iter_child_forms(child, child_path, model)

    def tree_errors(self) -> dict[str, Any]:
        """Errors of the whole tree keyed by form path."""
        errors = {}
        for path, form, _model in self.iter_forms():
            if form.errors:
                errors[path or "__all__"] = form.errors
        for name, child in self.nested_forms.items():
            if isinstance(child, BaseFormSet) and child.non_form_errors():
                errors[name] = child.non_form_errors()
        return errors

    def save(self):
        """Update ``instance`` when given, otherwise create a new row."""
        if self.instance is not None:
            return self.model.update(self.instance)
        self.instance = self.model.create()
        return self.instance


def iter_child_forms(form, path: str, model) -> Iterator[tuple[str, forms.BaseForm, Any]]:
    if isinstance(form, BindingForm):
        yield from form.iter_forms(path)
    else:
        yield path, form, model
