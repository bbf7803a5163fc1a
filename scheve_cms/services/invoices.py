# scheve_cms/services/invoices.py
from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from botocore.exceptions import BotoCoreError, ClientError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scheve_cms.clock import Clock, SystemClock
from scheve_cms.errors import OperationCancelled, SchoolAdminError, StorageFailure
from scheve_cms.models import Invoice
from scheve_cms.services.keys import invoice_key
from scheve_cms.services.layout_service import LayoutService
from scheve_cms.services.students import StudentService, parse_id, remove_files

logger = logging.getLogger(__name__)


def invoice_to_dict(inv: Invoice) -> dict:
    return {
        "id": str(inv.id),
        "student_id": str(inv.student_id),
        "date": inv.date.isoformat() if inv.date else None,
        "amount_total": float(inv.amount_total),
        "vat": float(inv.vat),
        "description": inv.description,
        "invoice_pdf_path": inv.invoice_pdf_path,
    }


@dataclass
class BatchGenerationResult:
    successful_invoices: List[Invoice] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    generated_at: datetime | None = None

    @property
    def success_count(self) -> int:
        return len(self.successful_invoices)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def total_amount(self) -> Decimal:
        return sum((inv.amount_total for inv in self.successful_invoices), Decimal("0.00"))

    def to_dict(self) -> dict:
        return {
            "successful_invoices": [invoice_to_dict(i) for i in self.successful_invoices],
            "errors": self.errors,
            "success_count": self.success_count,
            "error_count": self.error_count,
            "total_amount": float(self.total_amount),
            "generated_at": self.generated_at.isoformat() if self.generated_at else None,
        }


class InvoiceService:
    def __init__(self, db: Session):
        self.db = db

    def list(self) -> List[Invoice]:
        return list(self.db.execute(select(Invoice).order_by(Invoice.date.desc())).scalars().all())

    def get(self, invoice_id: str) -> Optional[Invoice]:
        iid = parse_id(invoice_id)
        if iid is None:
            return None
        return self.db.get(Invoice, iid)

    def create(self, invoice: Invoice) -> Invoice:
        self.db.add(invoice)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Failed to store invoice %s", invoice.id)
            raise StorageFailure(f"Failed to store invoice: {type(e).__name__}") from e
        self.db.refresh(invoice)
        return invoice

    def delete(self, invoice_id: str, storage=None) -> bool:
        invoice = self.get(invoice_id)
        if invoice is None:
            return False
        path = invoice.invoice_pdf_path
        self.db.delete(invoice)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Failed to delete invoice %s", invoice_id)
            raise StorageFailure(f"Failed to delete invoice: {type(e).__name__}") from e

        remove_files(storage, [path])
        return True


def generate_invoices(
    db: Session,
    *,
    student_ids: List[str],
    amount_total: Decimal,
    vat: Decimal,
    description: str | None,
    layout: LayoutService,
    storage,
    clock: Clock | None = None,
    cancel: threading.Event | None = None,
) -> BatchGenerationResult:
    """
    One invoice per student: render -> store PDF -> insert row.

    Every student is handled on its own; a missing student or a failed
    render is recorded in `errors` and the batch continues.
    The layout and template are read once so the whole batch looks the same.
    A set `cancel` event stops the batch; invoices already stored are kept.
    """
    clock = clock or SystemClock()
    now = clock.now()
    result = BatchGenerationResult(generated_at=now)

    students = StudentService(db)
    invoices = InvoiceService(db)

    template_path = layout.default_template_path()
    layout_settings = layout.get_layout_settings()

    for sid in student_ids:
        if cancel is not None and cancel.is_set():
            raise OperationCancelled("generate invoices")

        student = students.get(sid)
        if student is None:
            result.errors.append(f"Student not found: {sid}")
            continue

        invoice = Invoice(
            id=uuid.uuid4(),
            student_id=student.id,
            date=now,
            amount_total=Decimal(amount_total).quantize(Decimal("0.01")),
            vat=Decimal(vat),
            description=description,
        )

        key = invoice_key(str(invoice.id), now)
        try:
            pdf_bytes = layout.render_document(template_path, student, invoice, layout_settings, cancel=cancel)
            storage.save_bytes(key, pdf_bytes)
            invoice.invoice_pdf_path = key
            invoices.create(invoice)
        except OperationCancelled:
            db.rollback()
            if invoice.invoice_pdf_path:
                remove_files(storage, [key])
            raise
        except (SchoolAdminError, OSError, BotoCoreError, ClientError) as e:
            db.rollback()
            if invoice.invoice_pdf_path:
                remove_files(storage, [key])
            logger.warning("Invoice generation failed for student %s: %s", sid, e)
            result.errors.append(f"Student {sid}: {e}")
            continue

        logger.info("Generated invoice %s for student %s -> %s", invoice.id, student.id, key)
        result.successful_invoices.append(invoice)

    return result
