"""
Custom exceptions for form binding operations.

Problems with submitted data are reported as Django ``ValidationError``
keyed by field. The exceptions below cover misuse of the API and
misconfigured bindings.
"""

from typing import Any, Optional


class FormBindError(Exception):
    """Base exception for form binding operations."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.field = field
        self.code = code

    def __str__(self) -> str:
        return self.message


class InvalidBindingError(FormBindError):
    """Raised when a Binding declaration is malformed."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, field=field, code="INVALID_BINDING")


class UnboundFormError(FormBindError):
    """Raised when update() is called on a form without submitted data."""

    def __init__(self, form_name: str):
        super().__init__(
            f"{form_name} has no submitted data; bind it before updating a row.",
            code="UNBOUND_FORM",
        )
        self.form_name = form_name


class FormInvalidError(FormBindError):
    """Raised when update() is called on a form that did not validate."""

    def __init__(self, form_name: str, errors: Any):
        super().__init__(
            f"{form_name} did not validate: {errors}",
            code="FORM_INVALID",
        )
        self.form_name = form_name
        self.errors = errors


class NestedDepthError(FormBindError):
    """Raised when nested blocks recurse deeper than allowed."""

    def __init__(self, max_depth: int, current_depth: int):
        super().__init__(
            f"Nested form exceeds maximum depth of {max_depth}. "
            f"Current depth: {current_depth}",
            code="DEPTH_EXCEEDED",
        )
        self.max_depth = max_depth
        self.current_depth = current_depth


class RelatedObjectNotFoundError(FormBindError):
    """Raised when a submitted id does not match a related row."""

    def __init__(self, model_name: str, field_name: str, pk_value: Any):
        super().__init__(
            f"{model_name} with id '{pk_value}' does not exist.",
            field=field_name,
            code="RELATED_OBJECT_NOT_FOUND",
        )
        self.model_name = model_name
        self.pk_value = pk_value
