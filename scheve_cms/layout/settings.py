# scheve_cms/layout/settings.py
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List

from scheve_cms.errors import ValidationError
from scheve_cms.layout.position import LayoutPosition

DEFAULT_UPDATED_BY = "System"


class LayoutField(Enum):
    """The ten semantic slots of an invoice layout, in drawing order."""

    STUDENT_NAME = ("StudentName", "student_name", "Student Name")
    STUDENT_ADDRESS = ("StudentAddress", "student_address", "Student Address")
    INVOICE_ID = ("InvoiceId", "invoice_id", "Invoice ID")
    INVOICE_DATE = ("InvoiceDate", "invoice_date", "Invoice Date")
    INVOICE_DESCRIPTION = ("InvoiceDescription", "invoice_description", "Invoice Description")
    BASE_AMOUNT = ("BaseAmount", "base_amount", "Base Amount (excluding VAT)")
    VAT_AMOUNT = ("VatAmount", "vat_amount", "VAT Amount")
    TOTAL_AMOUNT = ("TotalAmount", "total_amount", "Total Amount")
    PAYMENT_NOTE = ("PaymentNote", "payment_note", "Payment Note")
    CONTACT_INFO = ("ContactInfo", "contact_info", "Contact Information")

    def __init__(self, key: str, attr: str, label: str):
        self.key = key
        self.attr = attr
        self.label = label


# Canonical defaults: (top, left, font_size, bold)
DEFAULT_POSITIONS: Dict[LayoutField, tuple] = {
    LayoutField.STUDENT_NAME: (150, 400, 10, False),
    LayoutField.STUDENT_ADDRESS: (165, 400, 10, False),
    LayoutField.INVOICE_ID: (195, 400, 10, False),
    LayoutField.INVOICE_DATE: (210, 400, 10, False),
    LayoutField.INVOICE_DESCRIPTION: (315, 100, 10, False),
    LayoutField.BASE_AMOUNT: (400, 500, 10, True),
    LayoutField.VAT_AMOUNT: (415, 500, 10, True),
    LayoutField.TOTAL_AMOUNT: (430, 500, 10, True),
    LayoutField.PAYMENT_NOTE: (500, 100, 10, False),
    LayoutField.CONTACT_INFO: (600, 100, 10, False),
}


@dataclass(frozen=True)
class LayoutSettings:
    """
    Positions for every invoice field plus who/when last changed them.
    Instances are immutable snapshots; use with_position() to derive a new one.
    """

    student_name: LayoutPosition
    student_address: LayoutPosition
    invoice_id: LayoutPosition
    invoice_date: LayoutPosition
    invoice_description: LayoutPosition
    base_amount: LayoutPosition
    vat_amount: LayoutPosition
    total_amount: LayoutPosition
    payment_note: LayoutPosition
    contact_info: LayoutPosition

    last_updated: datetime | None = None
    updated_by: str = DEFAULT_UPDATED_BY

    def position(self, field: LayoutField) -> LayoutPosition:
        return getattr(self, field.attr)

    def positions(self) -> Dict[LayoutField, LayoutPosition]:
        return {f: self.position(f) for f in LayoutField}

    def with_position(self, field: LayoutField, position: LayoutPosition) -> "LayoutSettings":
        return dataclasses.replace(self, **{field.attr: position})

    def stamped(self, at: datetime, updated_by: str | None = None) -> "LayoutSettings":
        return dataclasses.replace(
            self,
            last_updated=at,
            updated_by=(updated_by or "").strip() or self.updated_by or DEFAULT_UPDATED_BY,
        )

    def same_layout(self, other: "LayoutSettings") -> bool:
        """Compare positions only, ignoring last_updated/updated_by."""
        return self.positions() == other.positions()

    def validate(self) -> List[str]:
        errors: List[str] = []
        for f in LayoutField:
            errors.extend(self.position(f).validate(prefix=f.attr))
        return errors

    def ensure_valid(self) -> None:
        errors = self.validate()
        if errors:
            raise ValidationError(errors)

    def to_dict(self) -> dict:
        out: Dict[str, Any] = {f.attr: self.position(f).to_dict() for f in LayoutField}
        out["last_updated"] = self.last_updated.isoformat() if self.last_updated else None
        out["updated_by"] = self.updated_by
        return out

    @classmethod
    def from_dict(cls, data: Any) -> "LayoutSettings":
        """
        Build settings from a plain dict (API body or stored document).
        Slots may be keyed by snake_case attr or by the PascalCase field key.
        All problems are reported together.
        """
        if not isinstance(data, dict):
            raise ValidationError(["layout settings must be an object"])

        errors: List[str] = []
        values: Dict[str, Any] = {}

        for f in LayoutField:
            raw = data.get(f.attr, data.get(f.key))
            if raw is None:
                errors.append(f"{f.attr} is required")
                continue
            pos = LayoutPosition.from_dict(raw, prefix=f.attr, errors=errors)
            if pos is not None:
                values[f.attr] = pos

        last_updated = data.get("last_updated")
        if isinstance(last_updated, str) and last_updated:
            try:
                last_updated = datetime.fromisoformat(last_updated)
            except ValueError:
                errors.append(f"last_updated is not an ISO timestamp (got {last_updated!r})")
                last_updated = None
        elif not isinstance(last_updated, datetime):
            last_updated = None

        updated_by = data.get("updated_by") or DEFAULT_UPDATED_BY
        if not isinstance(updated_by, str):
            errors.append("updated_by must be a string")

        if errors:
            raise ValidationError(errors)

        return cls(**values, last_updated=last_updated, updated_by=updated_by)


def default_layout_settings(at: datetime | None = None) -> LayoutSettings:
    positions = {
        f.attr: LayoutPosition(top=top, left=left, font_size=size, bold=bold)
        for f, (top, left, size, bold) in DEFAULT_POSITIONS.items()
    }
    return LayoutSettings(**positions, last_updated=at, updated_by=DEFAULT_UPDATED_BY)
