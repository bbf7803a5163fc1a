# scheve_cms/layout/store.py
from __future__ import annotations

import logging

from scheve_cms.clock import Clock, SystemClock
from scheve_cms.layout.settings import LayoutSettings, default_layout_settings

logger = logging.getLogger(__name__)

LAYOUT_SETTINGS_KEY = "default_pdf_layout"


class LayoutStore:
    """
    The single persisted invoice layout.

    get() never reports "not found": a missing record is replaced by the
    default layout, which is stored before it is returned.
    """

    def __init__(self, documents, clock: Clock | None = None):
        # documents: SettingsDocuments-like (find_one / insert_one / replace_one)
        self.documents = documents
        self.clock = clock or SystemClock()

    def get(self) -> LayoutSettings:
        doc = self.documents.find_one(LAYOUT_SETTINGS_KEY)
        if doc is not None:
            return LayoutSettings.from_dict(doc)

        defaults = default_layout_settings(at=self.clock.now())
        stored = self.documents.insert_one(LAYOUT_SETTINGS_KEY, defaults.to_dict())
        logger.info("Created default PDF layout settings")
        return LayoutSettings.from_dict(stored)

    def replace(self, settings: LayoutSettings, updated_by: str | None = None) -> LayoutSettings:
        settings.ensure_valid()

        stamped = settings.stamped(self.clock.now(), updated_by=updated_by)
        self.documents.replace_one(LAYOUT_SETTINGS_KEY, stamped.to_dict(), upsert=True)
        logger.info("PDF layout settings updated by %s", stamped.updated_by)
        return stamped

    def reset_to_default(self, updated_by: str | None = None) -> LayoutSettings:
        settings = self.replace(default_layout_settings(), updated_by=updated_by)
        logger.info("PDF layout settings reset to default")
        return settings
