# scheve_cms/styling/invoice/renderer.py
from __future__ import annotations

import io
import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, List

from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from scheve_cms.errors import OperationCancelled, TemplateNotFoundError, ValidationError
from scheve_cms.layout.position import LayoutPosition, TextAlign
from scheve_cms.layout.settings import LayoutField, LayoutSettings
from scheve_cms.styling.base import RendererConfig, TemplateSource
from scheve_cms.styling.common.template_overlay import (
    PageSpec,
    is_pdf,
    merge_overlay,
    page_spec,
    template_first_page,
)
from scheve_cms.styling.invoice.fields import amount_errors, invoice_field_values

logger = logging.getLogger(__name__)

# Right edge of every text box, measured from the page's right side
RIGHT_MARGIN = 30
LINE_SPACING = 1.2


@dataclass(frozen=True)
class RenderContext:
    template_path: str
    fields: Dict[LayoutField, str]


@dataclass(frozen=True)
class FontSet:
    regular: str = "Helvetica"
    bold: str = "Helvetica-Bold"


# =========================
# Basics
# =========================

def _clean(s: str) -> str:
    return (s or "").replace("\u00a0", " ").replace("\x00", "").strip()


def _wrap_text(text: str, font: str, size: int, max_w: float) -> List[str]:
    text = _clean(text)
    if not text:
        return []

    words = text.split()
    lines: List[str] = []
    cur = ""

    for w in words:
        test = (cur + " " + w).strip()
        if stringWidth(test, font, size) <= max_w:
            cur = test
        else:
            if cur:
                lines.append(cur)
            if stringWidth(w, font, size) <= max_w:
                cur = w
            else:
                chunk = ""
                for ch in w:
                    t2 = chunk + ch
                    if stringWidth(t2, font, size) <= max_w:
                        chunk = t2
                    else:
                        if chunk:
                            lines.append(chunk)
                        chunk = ch
                cur = chunk

    if cur:
        lines.append(cur)
    return lines


def _split_lines(text: str) -> List[str]:
    text = (text or "").replace("\r", "\n")
    return [ln.strip() for ln in text.split("\n") if ln.strip()]


def _register_fonts(config: RendererConfig) -> FontSet:
    if config.fonts_dir is None:
        return FontSet()

    reg_font = config.fonts_dir / "Regular.ttf"
    bold_font = config.fonts_dir / "Bold.ttf"

    regular, bold = FontSet.regular, FontSet.bold
    if reg_font.exists():
        pdfmetrics.registerFont(TTFont("Invoice-Regular", str(reg_font)))
        regular = "Invoice-Regular"
    if bold_font.exists():
        pdfmetrics.registerFont(TTFont("Invoice-Bold", str(bold_font)))
        bold = "Invoice-Bold"
    return FontSet(regular=regular, bold=bold)


def _check_cancel(cancel: threading.Event | None, step: str) -> None:
    if cancel is not None and cancel.is_set():
        raise OperationCancelled(f"render invoice ({step})")


# =========================
# Drawing
# =========================

def draw_field(c: canvas.Canvas, ps: PageSpec, pos: LayoutPosition, text: str, fonts: FontSet) -> None:
    """
    Draw one field in its box: `left` .. page right margin wide, `max_height` tall,
    starting `top` points below the top edge. Lines that do not fit are dropped,
    anything sticking out is clipped.
    """
    font = fonts.bold if pos.bold else fonts.regular
    size = pos.font_size
    line_h = size * LINE_SPACING

    x0 = float(pos.left)
    box_w = max(ps.w - RIGHT_MARGIN - x0, float(size))
    y_top = ps.h - pos.top

    lines: List[str] = []
    for raw in _split_lines(text):
        lines.extend(_wrap_text(raw, font, size, box_w))
    if not lines:
        return

    max_lines = max(1, int(pos.max_height // line_h))
    lines = lines[:max_lines]

    c.saveState()
    clip = c.beginPath()
    clip.rect(x0, y_top - pos.max_height, box_w, pos.max_height)
    c.clipPath(clip, stroke=0, fill=0)

    c.setFont(font, size)
    y = y_top - pdfmetrics.getAscent(font, size)
    for ln in lines:
        if pos.text_align == TextAlign.RIGHT:
            c.drawRightString(x0 + box_w, y, ln)
        elif pos.text_align == TextAlign.CENTER:
            c.drawCentredString(x0 + box_w / 2.0, y, ln)
        else:
            c.drawString(x0, y, ln)
        y -= line_h

    c.restoreState()


# =========================
# Renderer
# =========================

class DocumentRenderer:
    """
    Puts invoice text on top of a template background (PDF first page, or a PNG/JPEG image on A4).

    A template that exists but cannot be decoded does not fail the render:
    it is logged and the text is drawn on a blank page instead.
    """

    def __init__(self, templates: TemplateSource, config: RendererConfig | None = None, layout_store=None):
        self.templates = templates
        self.config = config or RendererConfig()
        self.layout_store = layout_store
        self.fonts = _register_fonts(self.config)

    def build_context(self, template_path: str, student: Any, invoice: Any) -> RenderContext:
        return RenderContext(
            template_path=template_path,
            fields=invoice_field_values(
                student,
                invoice,
                currency_symbol=self.config.currency_symbol,
                payment_term_days=self.config.payment_term_days,
            ),
        )

    def render(
        self,
        template_path: str,
        student: Any,
        invoice: Any,
        layout_settings: LayoutSettings | None = None,
        cancel: threading.Event | None = None,
    ) -> bytes:
        errors = []
        if student is None:
            errors.append("student is required")
        if invoice is None:
            errors.append("invoice is required")
        else:
            errors.extend(amount_errors(invoice))
        if errors:
            raise ValidationError(errors)

        _check_cancel(cancel, "start")
        if not template_path or not self.templates.exists(template_path):
            raise TemplateNotFoundError(template_path)

        if layout_settings is None:
            if self.layout_store is None:
                raise ValueError("No layout settings given and no layout store configured")
            layout_settings = self.layout_store.get()

        ctx = self.build_context(template_path, student, invoice)

        _check_cancel(cancel, "template")
        try:
            template_bytes = self.templates.read_bytes(template_path)
        except Exception:
            logger.warning("Could not load template %s; rendering without background", template_path, exc_info=True)
            template_bytes = None

        _check_cancel(cancel, "compose")
        return self.compose(ctx, template_bytes, layout_settings)

    def compose(self, ctx: RenderContext, template_bytes: bytes | None, layout: LayoutSettings) -> bytes:
        if not template_bytes:
            return self._draw_page(ctx, layout, self._fallback_spec(), image=None)

        if is_pdf(template_bytes):
            try:
                tpl_page = template_first_page(template_bytes)
                ps = page_spec(tpl_page)
            except Exception:
                logger.warning("Could not read PDF template %s; rendering without background", ctx.template_path, exc_info=True)
                return self._draw_page(ctx, layout, self._fallback_spec(), image=None)

            overlay = self._draw_page(ctx, layout, ps, image=None)
            return merge_overlay(tpl_page, overlay)

        try:
            image = ImageReader(io.BytesIO(template_bytes))
            image.getSize()
        except Exception:
            logger.warning("Could not read image template %s; rendering without background", ctx.template_path, exc_info=True)
            image = None

        return self._draw_page(ctx, layout, self._fallback_spec(), image=image)

    def _fallback_spec(self) -> PageSpec:
        w, h = self.config.fallback_page_size
        return PageSpec(w=float(w), h=float(h))

    def _draw_page(self, ctx: RenderContext, layout: LayoutSettings, ps: PageSpec, image: ImageReader | None) -> bytes:
        buf = io.BytesIO()
        # invariant=1: no timestamps / random ids, identical input -> identical bytes
        c = canvas.Canvas(buf, pagesize=(ps.w, ps.h), invariant=1)

        if image is not None:
            c.drawImage(image, 0, 0, width=ps.w, height=ps.h)

        for field in LayoutField:
            text = ctx.fields.get(field, "")
            if not text:
                continue
            draw_field(c, ps, layout.position(field), text, self.fonts)

        c.showPage()
        c.save()
        return buf.getvalue()
