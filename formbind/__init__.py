"""
django-formbind

Binds Django forms to Django models: fills form defaults from a model
instance, writes submitted values back (following foreign keys, one-to-one,
reverse and many-to-many relations) and populates choice fields from
querysets.

Usage:
    from formbind import BindingForm, Nested, Repeatable

    form = UserForm(request.POST, instance=user)
    if form.is_valid():
        form.model.update(user)
"""

__version__ = "0.1.0"


def __getattr__(name):
    # Lazy exports so the package can be imported before Django is configured.
    if name in ("BindingForm",):
        from .forms import BindingForm

        return BindingForm
    if name in ("FieldBinding", "Nested", "Repeatable"):
        from .bindings import config

        return getattr(config, name)
    if name == "FormModel":
        from .model import FormModel

        return FormModel
    if name == "Unique":
        from .validators import Unique

        return Unique
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "BindingForm",
    "FieldBinding",
    "FormModel",
    "Nested",
    "Repeatable",
    "Unique",
]
