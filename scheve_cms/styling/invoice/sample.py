# scheve_cms/styling/invoice/sample.py
from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

# Fixed ids so previews of the same layout look the same
PREVIEW_STUDENT_ID = uuid.UUID("507f1f77-bcf8-6cd7-9943-9011507f1f77")
PREVIEW_INVOICE_ID = uuid.UUID("507f1f77-bcf8-6cd7-9943-9012507f1f77")


def preview_student(now: datetime) -> SimpleNamespace:
    return SimpleNamespace(
        id=PREVIEW_STUDENT_ID,
        name="Voorbeeld Student",
        address="Voorbeeldstraat 123, 1234 AB Voorbeeldstad",
        email="voorbeeld@student.nl",
        student_number="STU001",
        bank_name="Voorbeeld Bank",
        account_number="NL12VOOR0123456789",
        phone_number="+31 6 12345678",
        emergency_contact="Ouders: +31 6 87654321",
        date_of_registration=now - timedelta(days=182),
    )


def preview_invoice(now: datetime) -> SimpleNamespace:
    return SimpleNamespace(
        id=PREVIEW_INVOICE_ID,
        student_id=PREVIEW_STUDENT_ID,
        date=now,
        amount_total=Decimal("125.50"),
        vat=Decimal("21.00"),
        description=(
            "Voorbeeld factuur beschrijving - Dit is een voorbeeldtekst die toont hoe de "
            "factuur eruit ziet met de huidige layout instellingen"
        ),
    )
