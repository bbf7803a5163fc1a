# scheve_cms/services/templates.py
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import PurePosixPath

from scheve_cms.errors import ValidationError
from scheve_cms.services.keys import template_key
from scheve_cms.services.system_settings import SystemSettingsService

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {
    ".pdf": "application/pdf",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}
MAX_TEMPLATE_BYTES = 10 * 1024 * 1024  # 10 MB


@dataclass(frozen=True)
class TemplateUploadResult:
    message: str
    file_path: str
    file_name: str
    file_size: int
    uploaded_at: datetime

    def to_dict(self) -> dict:
        d = asdict(self)
        d["uploaded_at"] = self.uploaded_at.isoformat()
        return d


@dataclass(frozen=True)
class TemplateInfo:
    has_template: bool
    file_name: str | None = None
    file_size: int = 0
    extension: str | None = None
    message: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


class TemplateService:
    """Upload/inspect the invoice background template registered in the system settings."""

    def __init__(self, storage, system_settings: SystemSettingsService):
        self.storage = storage
        self.system_settings = system_settings

    def upload(self, filename: str, data: bytes) -> TemplateUploadResult:
        errors = []
        ext = PurePosixPath((filename or "").lower()).suffix
        if ext not in ALLOWED_EXTENSIONS:
            errors.append(f"file type {ext or '(none)'} not allowed; use PDF, PNG or JPEG")
        if not data:
            errors.append("file is empty")
        elif len(data) > MAX_TEMPLATE_BYTES:
            errors.append(f"file is larger than {MAX_TEMPLATE_BYTES // (1024 * 1024)} MB")
        if errors:
            raise ValidationError(errors)

        key = template_key(filename)
        self.storage.save_bytes(key, data, content_type=ALLOWED_EXTENSIONS[ext])
        settings = self.system_settings.update_template_path(key)
        logger.info("Uploaded invoice template %s (%d bytes)", key, len(data))

        return TemplateUploadResult(
            message="Template uploaded successfully",
            file_path=key,
            file_name=PurePosixPath(key).name,
            file_size=len(data),
            uploaded_at=settings.last_updated,
        )

    def info(self) -> TemplateInfo:
        path = self.system_settings.get_settings().default_invoice_template_path
        if not path:
            return TemplateInfo(has_template=False, message="No template configured")
        if not self.storage.exists(path):
            return TemplateInfo(has_template=False, file_name=PurePosixPath(path).name, message="Template file not found")
        return TemplateInfo(
            has_template=True,
            file_name=PurePosixPath(path).name,
            file_size=self.storage.size(path),
            extension=PurePosixPath(path).suffix.lower(),
        )
