# scheve_cms/styling/base.py

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from reportlab.lib.pagesizes import A4


class TemplateSource(Protocol):
    """Where template backgrounds come from (local disk or S3)."""

    def exists(self, key: str) -> bool:
        ...

    def read_bytes(self, key: str) -> bytes:
        ...


@dataclass(frozen=True)
class RendererConfig:
    """
    Fixed at renderer construction; never changed afterwards.

    fonts_dir may hold brand fonts (Regular.ttf / Bold.ttf); otherwise
    the built-in Helvetica faces are used.
    """
    currency_symbol: str = "€"
    payment_term_days: int = 14
    fonts_dir: Path | None = None
    fallback_page_size: tuple[float, float] = A4
