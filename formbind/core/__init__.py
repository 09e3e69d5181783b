"""
Core components: settings loading and exception types.
"""

from .exceptions import (
    FormBindError,
    FormInvalidError,
    InvalidBindingError,
    NestedDepthError,
    RelatedObjectNotFoundError,
    UnboundFormError,
)
from .settings import BindingSettings

__all__ = [
    "BindingSettings",
    "FormBindError",
    "FormInvalidError",
    "InvalidBindingError",
    "NestedDepthError",
    "RelatedObjectNotFoundError",
    "UnboundFormError",
]
