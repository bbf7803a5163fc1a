# scheve_cms/styling/invoice/fields.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List

from scheve_cms.layout.settings import LayoutField

CENTS = Decimal("0.01")
PLACEHOLDER = "N/A"
DATE_FORMAT = "%d-%m-%Y"


@dataclass(frozen=True)
class InvoiceAmounts:
    base: Decimal
    vat: Decimal
    total: Decimal


def _dec(x: Any) -> Decimal:
    if x is None:
        return Decimal("0.00")
    if isinstance(x, Decimal):
        return x
    t = str(x).replace(",", "").strip()
    if not t:
        return Decimal("0.00")
    return Decimal(t)


def split_amounts(amount_total: Any, vat_percent: Any) -> InvoiceAmounts:
    """
    amount_total includes VAT:
      base = total / (1 + vat/100), vat = total - base
    """
    total = _dec(amount_total).quantize(CENTS, rounding=ROUND_HALF_UP)
    rate = _dec(vat_percent)
    base = (total / (Decimal("1") + rate / Decimal("100"))).quantize(CENTS, rounding=ROUND_HALF_UP)
    return InvoiceAmounts(base=base, vat=total - base, total=total)


def amount_errors(invoice: Any) -> List[str]:
    """Problems that would make the VAT split meaningless (empty when fine)."""
    errors: List[str] = []
    raw_total = getattr(invoice, "amount_total", None)
    try:
        total_ok = _dec(raw_total).is_finite()
    except (InvalidOperation, ValueError):
        total_ok = False
    if not total_ok:
        errors.append(f"amount_total must be a number (got {raw_total!r})")

    raw_vat = getattr(invoice, "vat", None)
    try:
        vat = _dec(raw_vat)
    except (InvalidOperation, ValueError):
        errors.append(f"vat must be a number (got {raw_vat!r})")
    else:
        if not vat.is_finite() or not (Decimal("0") <= vat <= Decimal("100")):
            errors.append(f"vat must be between 0 and 100 (got {vat})")
    return errors


def money_str(x: Decimal, symbol: str = "€") -> str:
    return f"{symbol}{x.quantize(CENTS, rounding=ROUND_HALF_UP):,.2f}"


def format_date(d: date | datetime | None) -> str:
    if d is None:
        return ""
    return d.strftime(DATE_FORMAT)


def payment_note(invoice_date: date | datetime | None, term_days: int) -> str:
    if invoice_date is None:
        return f"Please transfer the amount within {term_days} days."
    due = invoice_date + timedelta(days=term_days)
    return f"Please transfer the amount within {term_days} days, no later than {format_date(due)}."


def contact_info(email: str | None) -> str:
    return f"Questions about this invoice? Contact: {(email or '').strip() or PLACEHOLDER}"


def _text(v: Any) -> str:
    return str(v).strip() if v is not None else ""


def invoice_field_values(
    student: Any,
    invoice: Any,
    *,
    currency_symbol: str = "€",
    payment_term_days: int = 14,
) -> Dict[LayoutField, str]:
    """
    Literal text for every layout field, in drawing order.
    `student` / `invoice` are read by attribute (ORM rows or any object with the same fields).
    """
    amounts = split_amounts(getattr(invoice, "amount_total", None), getattr(invoice, "vat", None))
    invoice_id = _text(getattr(invoice, "id", None))
    invoice_date = getattr(invoice, "date", None)

    return {
        LayoutField.STUDENT_NAME: _text(getattr(student, "name", None)),
        LayoutField.STUDENT_ADDRESS: _text(getattr(student, "address", None)),
        LayoutField.INVOICE_ID: invoice_id or PLACEHOLDER,
        LayoutField.INVOICE_DATE: format_date(invoice_date),
        LayoutField.INVOICE_DESCRIPTION: _text(getattr(invoice, "description", None)),
        LayoutField.BASE_AMOUNT: money_str(amounts.base, currency_symbol),
        LayoutField.VAT_AMOUNT: money_str(amounts.vat, currency_symbol),
        LayoutField.TOTAL_AMOUNT: money_str(amounts.total, currency_symbol),
        LayoutField.PAYMENT_NOTE: payment_note(invoice_date, payment_term_days),
        LayoutField.CONTACT_INFO: contact_info(getattr(student, "email", None)),
    }
