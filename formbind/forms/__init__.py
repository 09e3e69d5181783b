"""
Form tree built on Django forms.
"""

from .base import (
    BindingForm,
    build_formset_class,
    build_row_form_class,
    iter_child_forms,
)

__all__ = [
    "BindingForm",
    "build_formset_class",
    "build_row_form_class",
    "iter_child_forms",
]
