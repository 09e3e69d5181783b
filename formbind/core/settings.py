"""
Settings module for django-formbind.

Settings are loaded hierarchically: library defaults first, then the
``FORMBIND`` dict from Django settings, then explicit overrides passed by the
caller.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from django.conf import settings as django_settings

logger = logging.getLogger(__name__)


def _merge_settings_dicts(*dicts: dict[str, Any]) -> dict[str, Any]:
    """
    Merge multiple settings dictionaries with later ones taking precedence.

    Args:
        *dicts: Variable number of dictionaries to merge

    Returns:
        Dict[str, Any]: Merged dictionary
    """
    result = {}
    for d in dicts:
        if d:
            result.update(d)
    return result


def _get_global_settings() -> dict[str, Any]:
    """Return the ``FORMBIND`` dict from Django settings, or an empty dict."""
    configured = getattr(django_settings, "FORMBIND", None) or {}
    if not isinstance(configured, dict):
        logger.warning("FORMBIND setting must be a dict, got %r", type(configured))
        return {}
    return configured


def _get_library_defaults() -> dict[str, Any]:
    from ..defaults import LIBRARY_DEFAULTS

    return dict(LIBRARY_DEFAULTS)


def get_unknown_setting_keys() -> list[str]:
    """Keys present in ``FORMBIND`` that no setting consumes."""
    valid_fields = set(BindingSettings.__dataclass_fields__.keys())
    return sorted(k for k in _get_global_settings() if k not in valid_fields)


@dataclass
class BindingSettings:
    """Settings controlling how forms are bound to models."""

    # Populate choice fields from the database when a form is constructed
    auto_options_from_model: bool = True

    # Fill initial data from ``instance`` for unbound forms
    populate_from_instance: bool = True

    # Call full_clean() before saving rows
    validate_instances: bool = True

    # Run update()/create() inside transaction.atomic()
    atomic_updates: bool = True

    # Maximum recursion depth through nested blocks
    max_nested_depth: int = 10

    # Name of the hidden primary key field in repeatable rows
    default_id_field: str = "id"

    # Attributes tried, in order, when building option labels
    label_columns: list[str] = field(
        default_factory=lambda: ["name", "title", "label"]
    )

    # Label used for ``empty_first=True``
    empty_first_label: Optional[str] = "---------"

    @classmethod
    def from_settings(
        cls, overrides: Optional[dict[str, Any]] = None
    ) -> "BindingSettings":
        """
        Create BindingSettings with hierarchical loading.

        Priority order:
        1. Explicit overrides
        2. Global Django settings (``FORMBIND``)
        3. Library defaults

        Args:
            overrides: Optional per-call settings

        Returns:
            BindingSettings: Configured settings instance
        """
        merged_settings = _merge_settings_dicts(
            _get_library_defaults(), _get_global_settings(), overrides or {}
        )

        # Filter to only include valid fields for this dataclass
        valid_fields = set(cls.__dataclass_fields__.keys())
        filtered_settings = {
            k: v for k, v in merged_settings.items() if k in valid_fields
        }

        return cls(**filtered_settings)
