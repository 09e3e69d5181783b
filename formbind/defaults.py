"""
Default configuration for the django-formbind library.

Every key consumed by ``formbind.core.settings.BindingSettings`` has its
default here. Projects override any of them through the ``FORMBIND`` dict in
their Django settings.
"""

from __future__ import annotations

from typing import Any

LIBRARY_DEFAULTS: dict[str, Any] = {
    # Populate choice fields from the database when a form is constructed
    "auto_options_from_model": True,
    # Unbound forms built with instance=... get their initial data from it
    "populate_from_instance": True,
    # Run Model.full_clean() before every save
    "validate_instances": True,
    # Wrap update()/create() in transaction.atomic()
    "atomic_updates": True,
    "max_nested_depth": 10,
    # Hidden primary key field added to repeatable rows
    "default_id_field": "id",
    # Attributes tried, in order, for option labels
    "label_columns": ["name", "title", "label"],
    # Label of the leading blank option when a field asks for one without text
    "empty_first_label": "---------",
}

