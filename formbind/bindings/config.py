"""
Binding Configuration Dataclasses

Declarative settings attached to a ``BindingForm`` through its inner
``Binding`` class: per-field behaviour (``FieldBinding``), single related
rows edited through a child form (``Nested``) and related collections edited
through a formset (``Repeatable``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence, Union

from ..core.exceptions import InvalidBindingError


@dataclass
class FieldBinding:
    """
    Per-field behaviour.

    Attributes:
        accessor: Model attribute or relation name when it differs from the
                  form field name.
        read_only: Copied into the form but never written back.
        ignore_if_empty: Leave the row untouched when nothing was submitted.
        null_if_empty: Store None when nothing was submitted.
        additive: For to-many fields, add the selected rows without
                  unlinking the others.
        link_values: Extra column values for the many-to-many link row.
        options_from_model: Allow choices to be filled from the database.
        model: Explicit options source, a model class or "app_label.Model".
        queryset: Explicit options source, a QuerySet or a callable taking
                  the form and returning one.
        label_column: Attribute name or callable building option labels.
        value_column: Attribute used as option value (default: pk).
        condition: Filter kwargs applied to the options queryset.
        condition_from_context: Mapping of lookup to a key of the form's
                                context, applied as filter kwargs.
        order_by: Ordering of the options queryset.
        empty_first: Prepend a blank option; True uses the default label.
        unique: Uniqueness check run during form cleaning.
    """

    accessor: Optional[str] = None
    read_only: bool = False
    ignore_if_empty: bool = False
    null_if_empty: bool = False
    additive: bool = False
    link_values: Optional[dict[str, Any]] = None

    options_from_model: bool = True
    model: Any = None
    queryset: Any = None
    label_column: Union[str, Callable, None] = None
    value_column: Optional[str] = None
    condition: dict[str, Any] = field(default_factory=dict)
    condition_from_context: dict[str, str] = field(default_factory=dict)
    order_by: Sequence[str] = ()
    empty_first: Union[bool, str, None] = None

    unique: Any = None


@dataclass
class Nested:
    """
    A single related row edited through a child form.

    Works for forward foreign keys / one-to-one fields and reverse
    one-to-one relations.
    """

    form_class: Any
    accessor: Optional[str] = None
    read_only: bool = False
    # Delete the related row when every submitted value is empty
    delete_if_empty: bool = False

    def __post_init__(self):
        if self.form_class is None:
            raise InvalidBindingError("Nested requires a form_class")


@dataclass
class Repeatable:
    """
    A related collection edited through a formset, one form per row.

    Works for reverse foreign keys and many-to-many relations.
    """

    form_class: Any
    accessor: Optional[str] = None
    read_only: bool = False
    # Blank rows appended after the existing ones
    empty_rows: int = 0
    # Rows created per submission; defaults to empty_rows, 0 means unlimited
    new_rows_max: Optional[int] = None
    # Hidden primary key field; defaults to the default_id_field setting
    id_field: Optional[str] = None
    # Name of a boolean field in the row form that marks a row for deletion
    delete_if_true: Optional[str] = None
    # Use the formset's own DELETE checkbox
    can_delete: bool = False
    order_by: Sequence[str] = ()
    condition: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.form_class is None:
            raise InvalidBindingError("Repeatable requires a form_class")
        if self.empty_rows < 0:
            raise InvalidBindingError("empty_rows cannot be negative")
        if self.new_rows_max is not None and self.new_rows_max < 0:
            raise InvalidBindingError("new_rows_max cannot be negative")

    @property
    def rows_limit(self) -> Optional[int]:
        """New rows allowed per submission, None for no limit."""
        limit = self.new_rows_max if self.new_rows_max is not None else self.empty_rows
        return limit or None


@dataclass
class FormBinding:
    """Normalized view of a form's inner ``Binding`` class."""

    model: Any = None
    fields: dict[str, FieldBinding] = field(default_factory=dict)
    nested: dict[str, Union[Nested, Repeatable]] = field(default_factory=dict)
    exclude: list[str] = field(default_factory=list)

    @classmethod
    def from_class(cls, binding_class: Optional[type]) -> "FormBinding":
        """
        Build a FormBinding from an inner ``Binding`` class.

        Field entries may be FieldBinding instances or plain dicts of
        FieldBinding options.
        """
        if binding_class is None:
            return cls()

        fields = {}
        for name, value in (getattr(binding_class, "fields", None) or {}).items():
            if isinstance(value, FieldBinding):
                fields[name] = value
            elif isinstance(value, dict):
                try:
                    fields[name] = FieldBinding(**value)
                except TypeError as exc:
                    raise InvalidBindingError(str(exc), field=name) from exc
            else:
                raise InvalidBindingError(
                    f"Binding for field '{name}' must be a FieldBinding or dict, "
                    f"got {type(value).__name__}",
                    field=name,
                )

        nested = {}
        for name, value in (getattr(binding_class, "nested", None) or {}).items():
            if not isinstance(value, (Nested, Repeatable)):
                raise InvalidBindingError(
                    f"Nested binding '{name}' must be Nested or Repeatable, "
                    f"got {type(value).__name__}",
                    field=name,
                )
            nested[name] = value

        return cls(
            model=getattr(binding_class, "model", None),
            fields=fields,
            nested=nested,
            exclude=list(getattr(binding_class, "exclude", None) or []),
        )

    def for_field(self, name: str) -> FieldBinding:
        return self.fields.get(name) or FieldBinding()


def resolve_model(value: Any) -> Any:
    """Turn an ``"app_label.ModelName"`` string into a model class."""
    if isinstance(value, str):
        from django.apps import apps

        try:
            return apps.get_model(value)
        except (LookupError, ValueError) as exc:
            raise InvalidBindingError(f"Unknown model '{value}'") from exc
    return value
