# scheve_cms/services/students.py
from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scheve_cms.errors import StorageFailure
from scheve_cms.models import Invoice, Student

logger = logging.getLogger(__name__)

STUDENT_FIELDS = (
    "name",
    "student_number",
    "address",
    "email",
    "phone_number",
    "emergency_contact",
    "bank_name",
    "account_number",
    "date_of_registration",
    "registration_document_path",
)


def parse_id(value: str | uuid.UUID | None) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def remove_files(storage, paths) -> None:
    """Best effort, after the rows are gone: a leftover file is logged, not raised."""
    if storage is None:
        return
    for path in paths:
        if not path:
            continue
        try:
            storage.delete(path)
        except (StorageFailure, OSError) as e:
            logger.warning("Could not delete stored file %s: %s", path, e)


def student_to_dict(s: Student) -> dict:
    out = {"id": str(s.id)}
    for name in STUDENT_FIELDS:
        out[name] = getattr(s, name)
    return out


class StudentService:
    """CRUD for students. Ids that are not valid UUIDs simply don't match anything."""

    def __init__(self, db: Session):
        self.db = db

    def list(self) -> List[Student]:
        return list(self.db.execute(select(Student).order_by(Student.name)).scalars().all())

    def get(self, student_id: str | uuid.UUID) -> Optional[Student]:
        sid = parse_id(student_id)
        if sid is None:
            return None
        return self.db.get(Student, sid)

    def create(self, data: dict) -> Student:
        student = Student(**{k: data.get(k) for k in STUDENT_FIELDS})
        self.db.add(student)
        self._commit("create student")
        self.db.refresh(student)
        logger.info("Created student %s", student.id)
        return student

    def update(self, student_id: str, data: dict) -> Optional[Student]:
        """Full replace of all student fields; the id is kept."""
        student = self.get(student_id)
        if student is None:
            return None
        for k in STUDENT_FIELDS:
            setattr(student, k, data.get(k))
        self._commit("update student")
        self.db.refresh(student)
        return student

    def delete(self, student_id: str, storage=None) -> bool:
        """Delete the student and their invoices (and invoice files when storage is given)."""
        student = self.get(student_id)
        if student is None:
            return False

        invoices = self.invoices_for(student.id)
        paths = [inv.invoice_pdf_path for inv in invoices]

        self.db.execute(delete(Invoice).where(Invoice.student_id == student.id))
        self.db.delete(student)
        self._commit("delete student")

        # files only go once the rows are committed away
        remove_files(storage, paths)
        logger.info("Deleted student %s with %d invoices", student_id, len(invoices))
        return True

    def invoices_for(self, student_id: uuid.UUID) -> List[Invoice]:
        stmt = select(Invoice).where(Invoice.student_id == student_id).order_by(Invoice.date.desc())
        return list(self.db.execute(stmt).scalars().all())

    def get_with_invoices(self, student_id: str) -> Optional[tuple[Student, List[Invoice]]]:
        """Student plus their invoices, newest first."""
        student = self.get(student_id)
        if student is None:
            return None
        return student, self.invoices_for(student.id)

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Failed to %s", action)
            raise StorageFailure(f"Failed to {action}: {type(e).__name__}") from e
