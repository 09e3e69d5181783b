"""
Binding declarations and relationship resolution.
"""

from .config import FieldBinding, FormBinding, Nested, Repeatable, resolve_model
from .relations import RelationInfo, RelationKind, resolve_relation

__all__ = [
    "FieldBinding",
    "FormBinding",
    "Nested",
    "RelationInfo",
    "RelationKind",
    "Repeatable",
    "resolve_model",
    "resolve_relation",
]
