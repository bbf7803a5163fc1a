# scheve_cms/errors.py
from __future__ import annotations

from typing import Iterable, List


class SchoolAdminError(Exception):
    """Base class for errors the API layer turns into structured responses."""

    status_code = 500

    def __init__(self, message: str, errors: Iterable[str] | None = None):
        super().__init__(message)
        self.message = message
        self.errors: List[str] = list(errors or [])

    def to_dict(self) -> dict:
        return {"ok": False, "detail": self.message, "errors": self.errors}


class ValidationError(SchoolAdminError):
    """One or more field-level violations; nothing was written."""

    status_code = 400

    def __init__(self, errors: Iterable[str], message: str = "Validation failed"):
        super().__init__(message, errors)


class UnknownFieldError(SchoolAdminError):
    status_code = 400

    def __init__(self, field_name: str):
        super().__init__(f"Invalid element name: {field_name!r}")
        self.field_name = field_name


class TemplateNotFoundError(SchoolAdminError):
    status_code = 404

    def __init__(self, template_path: str | None):
        super().__init__(f"Invoice template not found: {template_path or '(not configured)'}")
        self.template_path = template_path


class StorageFailure(SchoolAdminError):
    status_code = 503

    def __init__(self, message: str = "Storage failure"):
        super().__init__(message)


class OperationCancelled(SchoolAdminError):
    status_code = 499

    def __init__(self, operation: str):
        super().__init__(f"Operation cancelled: {operation}")
        self.operation = operation
