# scheve_cms/styling/common/template_overlay.py
from __future__ import annotations

import io
from dataclasses import dataclass

from pypdf import PdfReader, PdfWriter
from pypdf._page import PageObject


@dataclass(frozen=True)
class PageSpec:
    w: float
    h: float


def is_pdf(data: bytes) -> bool:
    return data[:1024].lstrip().startswith(b"%PDF")


def template_first_page(template_pdf: bytes) -> PageObject:
    reader = PdfReader(io.BytesIO(template_pdf))
    if not reader.pages:
        raise ValueError("Template PDF has no pages")
    return reader.pages[0]


def page_spec(page: PageObject) -> PageSpec:
    return PageSpec(w=float(page.mediabox.width), h=float(page.mediabox.height))


def merge_overlay(template_page: PageObject, overlay_pdf: bytes) -> bytes:
    """
    Template page is the background; the overlay's first page is merged on top.
    Output is a single-page PDF the size of the template page.
    """
    overlay_page = PdfReader(io.BytesIO(overlay_pdf)).pages[0]

    # Copy template into a fresh page (avoid mutating reader pages)
    base = PageObject.create_blank_page(
        width=float(template_page.mediabox.width),
        height=float(template_page.mediabox.height),
    )
    base.merge_page(template_page)
    base.merge_page(overlay_page)

    out = PdfWriter()
    out.add_page(base)

    buf = io.BytesIO()
    out.write(buf)
    return buf.getvalue()
