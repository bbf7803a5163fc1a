# scheve_cms/services/system_settings.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from scheve_cms.clock import Clock, SystemClock

logger = logging.getLogger(__name__)

SYSTEM_SETTINGS_KEY = "default_settings"


@dataclass(frozen=True)
class SystemSettings:
    default_invoice_template_path: str = ""
    last_updated: datetime | None = None
    updated_by: str = "System"

    def to_dict(self) -> dict:
        return {
            "default_invoice_template_path": self.default_invoice_template_path,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
            "updated_by": self.updated_by,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SystemSettings":
        raw_ts = data.get("last_updated")
        try:
            last_updated = datetime.fromisoformat(raw_ts) if raw_ts else None
        except ValueError:
            last_updated = None
        return cls(
            default_invoice_template_path=data.get("default_invoice_template_path") or "",
            last_updated=last_updated,
            updated_by=data.get("updated_by") or "System",
        )


class SystemSettingsService:
    def __init__(self, documents, clock: Clock | None = None):
        self.documents = documents
        self.clock = clock or SystemClock()

    def get_settings(self) -> SystemSettings:
        doc = self.documents.find_one(SYSTEM_SETTINGS_KEY)
        if doc is not None:
            return SystemSettings.from_dict(doc)

        logger.info("No existing system settings found, creating defaults")
        settings = SystemSettings(last_updated=self.clock.now())
        stored = self.documents.insert_one(SYSTEM_SETTINGS_KEY, settings.to_dict())
        return SystemSettings.from_dict(stored)

    def update_template_path(self, template_path: str, updated_by: str = "System") -> SystemSettings:
        logger.info("Updating template path to: %s", template_path)
        settings = SystemSettings(
            default_invoice_template_path=template_path,
            last_updated=self.clock.now(),
            updated_by=updated_by,
        )
        self.documents.replace_one(SYSTEM_SETTINGS_KEY, settings.to_dict(), upsert=True)
        return settings
