# scheve_cms/services/keys.py
from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import PurePosixPath


def utc_day(at: datetime | None = None) -> str:
    at = at or datetime.now(timezone.utc)
    return at.astimezone(timezone.utc).strftime("%Y-%m-%d")


def invoice_file_name(invoice_id: str) -> str:
    return f"Factuur_{invoice_id}.pdf"


def invoice_key(invoice_id: str, at: datetime | None = None) -> str:
    # invoices/YYYY-MM-DD/Factuur_<uuid>.pdf
    return f"invoices/{utc_day(at)}/{invoice_file_name(invoice_id)}"


def template_key(filename: str) -> str:
    # keep only the base name; no directory tricks from uploads
    name = PurePosixPath((filename or "").replace("\\", "/")).name
    name = re.sub(r"[^A-Za-z0-9._-]", "_", name).strip("._") or "template"
    return f"templates/{name}"
