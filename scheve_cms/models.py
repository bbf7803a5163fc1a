import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    JSON,
    String,
    Text,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from scheve_cms.db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# JSONB on Postgres, plain JSON elsewhere (SQLite in dev/tests)
JsonDocument = JSON().with_variant(JSONB(), "postgresql")


class Student(Base):
    __tablename__ = "students"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str | None] = mapped_column(String(200))
    student_number: Mapped[str | None] = mapped_column(String(64))
    address: Mapped[str | None] = mapped_column(Text)
    email: Mapped[str | None] = mapped_column(String(320))
    phone_number: Mapped[str | None] = mapped_column(String(64))
    emergency_contact: Mapped[str | None] = mapped_column(Text)
    bank_name: Mapped[str | None] = mapped_column(String(200))
    account_number: Mapped[str | None] = mapped_column(String(64))
    date_of_registration: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # path/key of the uploaded registration form
    registration_document_path: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    invoices = relationship("Invoice", back_populates="student", passive_deletes=True)

    __table_args__ = (
        Index("idx_students_student_number", "student_number"),
        Index("idx_students_email", "email"),
    )


class Invoice(Base):
    __tablename__ = "invoices"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    student_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)

    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    amount_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    # percentage, e.g. 21.00
    vat: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)

    # storage key (local path or S3 key), not a URL
    invoice_pdf_path: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    student = relationship("Student", back_populates="invoices")

    __table_args__ = (
        Index("idx_invoices_date", "date"),
    )


class SettingsDocument(Base):
    """
    Key/value table for singleton settings documents.
    Each key holds exactly one row ('default_pdf_layout', 'default_settings').
    """
    __tablename__ = "settings_documents"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    payload: Mapped[dict] = mapped_column(JsonDocument, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
