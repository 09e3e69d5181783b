"""
Form Model Package

This package provides the FormModel, copying values between a form tree and
model instances.

The handler is split into multiple mixins for maintainability:
- FormModelBase: Core utility methods
- DefaultValuesMixin: Row values into form initial data
- UpdateMixin: Submitted values into rows, create and update
- OptionsMixin: Choice field population from querysets

Usage:
    from formbind.model import FormModel

    form_model = FormModel(form)
    form_model.default_values(user)
"""

from .defaults import DefaultValuesMixin
from .handler import FormModelBase
from .options import OptionsMixin
from .update import UpdateMixin


class FormModel(DefaultValuesMixin, UpdateMixin, OptionsMixin, FormModelBase):
    """
    Copies values between a Django form tree and Django model instances.
    """

    pass


__all__ = [
    "DefaultValuesMixin",
    "FormModel",
    "FormModelBase",
    "OptionsMixin",
    "UpdateMixin",
]
