# scheve_cms/layout/dispatch.py
from __future__ import annotations

import logging
from typing import Dict

from scheve_cms.errors import UnknownFieldError, ValidationError
from scheve_cms.layout.position import LayoutPosition
from scheve_cms.layout.settings import LayoutField, LayoutSettings

logger = logging.getLogger(__name__)

# Closed lookup: "studentname" / "student_name" -> LayoutField.STUDENT_NAME
_FIELD_INDEX: Dict[str, LayoutField] = {}
for _f in LayoutField:
    _FIELD_INDEX[_f.key.lower()] = _f
    _FIELD_INDEX[_f.attr] = _f


def resolve_field(name: str | None) -> LayoutField:
    key = (name or "").strip().lower()
    field = _FIELD_INDEX.get(key)
    if field is None:
        raise UnknownFieldError(name or "")
    return field


def available_fields() -> Dict[str, str]:
    """Field key -> human label, in drawing order."""
    return {f.key: f.label for f in LayoutField}


class FieldDispatch:
    """
    Updates a single slot of the stored layout.

    This is a read-modify-write over the whole record: two concurrent
    updates to different fields can lose one of them (last writer wins).
    """

    def __init__(self, store):
        self.store = store

    def update_field(self, name: str, position: LayoutPosition, updated_by: str | None = None) -> LayoutSettings:
        field = resolve_field(name)

        errors = position.validate(prefix=field.attr)
        if errors:
            raise ValidationError(errors)

        current = self.store.get()
        updated = self.store.replace(current.with_position(field, position), updated_by=updated_by)
        logger.info("Updated layout position for %s", field.key)
        return updated
