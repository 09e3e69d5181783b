"""
Relationship resolution.

Decides, for a name used by a form, what it refers to on a Django model:
a plain column, a forward foreign key (belongs-to), a reverse one-to-one
(has-one), a reverse foreign key (has-many), a many-to-many in either
direction, or an arbitrary attribute (property or method).
"""

import enum
import logging
from dataclasses import dataclass
from typing import Any, Optional

from django.core.exceptions import FieldDoesNotExist, ObjectDoesNotExist
from django.db import models

logger = logging.getLogger(__name__)


class RelationKind(enum.Enum):
    COLUMN = "column"
    BELONGS_TO = "belongs_to"
    HAS_ONE = "has_one"
    HAS_MANY = "has_many"
    MANY_TO_MANY = "many_to_many"
    ACCESSOR = "accessor"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class RelationInfo:
    """What a name resolves to on a model."""

    name: str
    kind: RelationKind
    model: type[models.Model]
    field: Any = None
    related_model: Optional[type[models.Model]] = None
    # FK name on the related model pointing back (has-one / has-many)
    remote_field_name: Optional[str] = None
    nullable: bool = True

    @property
    def is_relation(self) -> bool:
        return self.kind in (
            RelationKind.BELONGS_TO,
            RelationKind.HAS_ONE,
            RelationKind.HAS_MANY,
            RelationKind.MANY_TO_MANY,
        )

    @property
    def is_to_many(self) -> bool:
        return self.kind in (RelationKind.HAS_MANY, RelationKind.MANY_TO_MANY)


def _is_hidden(rel) -> bool:
    hidden = getattr(rel, "hidden", None)
    if hidden is None:
        hidden = rel.is_hidden()
    return bool(hidden)


def get_reverse_relations(model: type[models.Model]) -> dict[str, Any]:
    """Reverse relation objects of ``model`` keyed by accessor name."""
    reverse_relations = {}
    for rel in model._meta.related_objects:
        if _is_hidden(rel):
            continue
        if rel.related_model._meta.abstract:
            continue
        reverse_relations[rel.get_accessor_name()] = rel
    return reverse_relations


def _resolve_forward(model, name: str) -> Optional[RelationInfo]:
    try:
        field = model._meta.get_field(name)
    except FieldDoesNotExist:
        field = next(
            (f for f in model._meta.concrete_fields if f.attname == name), None
        )

    if field is None:
        return None
    if field.concrete and field.attname == name and field.name != name:
        # ``category_id`` style attnames are plain columns.
        return RelationInfo(name, RelationKind.COLUMN, model, field=field, nullable=field.null)

    if field.auto_created and not field.concrete:
        # Reverse relation reached through its query name; accessor lookup
        # below handles it.
        return None

    if field.is_relation and field.related_model is None:
        # Generic foreign keys
        return RelationInfo(name, RelationKind.ACCESSOR, model, field=field)
    if field.many_to_many:
        return RelationInfo(
            name, RelationKind.MANY_TO_MANY, model, field=field,
            related_model=field.related_model,
        )
    if field.many_to_one or field.one_to_one:
        return RelationInfo(
            name, RelationKind.BELONGS_TO, model, field=field,
            related_model=field.related_model, nullable=field.null,
        )
    return RelationInfo(name, RelationKind.COLUMN, model, field=field, nullable=field.null)


def _resolve_reverse(model, name: str) -> Optional[RelationInfo]:
    rel = get_reverse_relations(model).get(name)
    if rel is None:
        return None
    if rel.many_to_many:
        return RelationInfo(
            name, RelationKind.MANY_TO_MANY, model, field=rel,
            related_model=rel.related_model,
        )
    remote = rel.field
    kind = RelationKind.HAS_ONE if rel.one_to_one else RelationKind.HAS_MANY
    return RelationInfo(
        name, kind, model, field=rel, related_model=rel.related_model,
        remote_field_name=remote.name, nullable=remote.null,
    )


def resolve_relation(model: type[models.Model], name: str) -> RelationInfo:
    """
    Resolve ``name`` against ``model``.

    Args:
        model: Django model class
        name: Field name, attname, reverse accessor or attribute name

    Returns:
        RelationInfo describing the name; kind UNKNOWN when nothing matches
    """
    info = _resolve_forward(model, name) or _resolve_reverse(model, name)
    if info is not None:
        return info
    if hasattr(model, name):
        return RelationInfo(name, RelationKind.ACCESSOR, model)
    logger.debug("%s has no field, relation or attribute %r", model.__name__, name)
    return RelationInfo(name, RelationKind.UNKNOWN, model)


def get_single_related(instance: models.Model, info: RelationInfo) -> Optional[models.Model]:
    """Related row of a belongs-to or has-one relation, None when missing."""
    try:
        return getattr(instance, info.name)
    except ObjectDoesNotExist:
        return None


def get_related_manager(instance: models.Model, info: RelationInfo):
    """Related manager of a to-many relation."""
    return getattr(instance, info.name)


def related_pks(instance: models.Model, info: RelationInfo) -> list[Any]:
    """Primary keys of the rows a to-many relation currently links."""
    if instance.pk is None:
        return []
    return list(get_related_manager(instance, info).values_list("pk", flat=True))
