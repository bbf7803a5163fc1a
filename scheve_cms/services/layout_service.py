# scheve_cms/services/layout_service.py
from __future__ import annotations

import threading
from typing import Any

from sqlalchemy.orm import Session

from scheve_cms.clock import Clock, SystemClock
from scheve_cms.config import Settings, get_settings
from scheve_cms.errors import TemplateNotFoundError
from scheve_cms.layout.dispatch import FieldDispatch
from scheve_cms.layout.position import LayoutPosition
from scheve_cms.layout.settings import LayoutSettings
from scheve_cms.layout.store import LayoutStore
from scheve_cms.services.settings_documents import SettingsDocuments
from scheve_cms.services.system_settings import SystemSettingsService
from scheve_cms.styling.base import RendererConfig
from scheve_cms.styling.invoice.renderer import DocumentRenderer
from scheve_cms.styling.invoice.sample import preview_invoice, preview_student


def renderer_config(settings: Settings) -> RendererConfig:
    return RendererConfig(
        currency_symbol=settings.currency_symbol,
        payment_term_days=settings.payment_term_days,
        fonts_dir=settings.fonts_dir,
    )


_renderer_singleton: DocumentRenderer | None = None


def get_renderer() -> DocumentRenderer:
    """Process-wide renderer; fonts are registered once, before the first render."""
    global _renderer_singleton
    if _renderer_singleton is None:
        from scheve_cms.storage.factory import get_storage

        _renderer_singleton = DocumentRenderer(get_storage(), renderer_config(get_settings()))
    return _renderer_singleton


class LayoutService:
    """
    The operations the controllers use for invoice layouts:
    read, full replace, single element update, reset, render.
    """

    def __init__(self, db: Session, renderer: DocumentRenderer, clock: Clock | None = None):
        self.clock = clock or SystemClock()
        self.documents = SettingsDocuments(db)
        self.store = LayoutStore(self.documents, clock=self.clock)
        self.dispatch = FieldDispatch(self.store)
        self.system_settings = SystemSettingsService(self.documents, clock=self.clock)
        self.renderer = renderer

    def get_layout_settings(self) -> LayoutSettings:
        return self.store.get()

    def update_layout_settings(self, settings: LayoutSettings, updated_by: str | None = None) -> LayoutSettings:
        return self.store.replace(settings, updated_by=updated_by)

    def update_element_position(self, field_name: str, position: LayoutPosition, updated_by: str | None = None) -> LayoutSettings:
        return self.dispatch.update_field(field_name, position, updated_by=updated_by)

    def reset_layout_to_default(self, updated_by: str | None = None) -> LayoutSettings:
        return self.store.reset_to_default(updated_by=updated_by)

    def render_document(
        self,
        template_path: str,
        student: Any,
        invoice: Any,
        layout_settings: LayoutSettings | None = None,
        cancel: threading.Event | None = None,
    ) -> bytes:
        if layout_settings is None:
            layout_settings = self.store.get()
        return self.renderer.render(template_path, student, invoice, layout_settings, cancel=cancel)

    def default_template_path(self) -> str:
        path = self.system_settings.get_settings().default_invoice_template_path
        if not path or not self.renderer.templates.exists(path):
            raise TemplateNotFoundError(path)
        return path

    def render_preview(self, layout_settings: LayoutSettings | None = None) -> bytes:
        """Sample student + invoice on the configured default template."""
        template_path = self.default_template_path()
        now = self.clock.now()
        return self.render_document(
            template_path,
            preview_student(now),
            preview_invoice(now),
            layout_settings,
        )

