"""
Render the sample invoice with the default layout on a local template.

  python scripts/render_layout_preview.py templates/Factuur.pdf out/preview.pdf
"""
import argparse
from datetime import datetime, timezone
from pathlib import Path

from scheve_cms.config import get_settings
from scheve_cms.layout.settings import default_layout_settings
from scheve_cms.storage.local_storage import LocalFileStorage
from scheve_cms.styling.base import RendererConfig
from scheve_cms.styling.invoice.renderer import DocumentRenderer
from scheve_cms.styling.invoice.sample import preview_invoice, preview_student


def main():
    ap = argparse.ArgumentParser(description=__doc__)
    ap.add_argument("template", type=Path, help="PDF, PNG or JPEG background")
    ap.add_argument("output", type=Path, nargs="?", default=Path("out/layout_preview.pdf"))
    args = ap.parse_args()

    if not args.template.exists():
        print(f"[SKIP] missing template: {args.template}")
        return

    settings = get_settings()
    renderer = DocumentRenderer(
        LocalFileStorage(args.template.parent),
        RendererConfig(
            currency_symbol=settings.currency_symbol,
            payment_term_days=settings.payment_term_days,
            fonts_dir=settings.fonts_dir,
        ),
    )

    now = datetime.now(timezone.utc)
    print(f"[RUN] {args.template} -> {args.output}")
    pdf_bytes = renderer.render(
        args.template.name,
        preview_student(now),
        preview_invoice(now),
        default_layout_settings(at=now),
    )

    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_bytes(pdf_bytes)
    print(f"[OK] wrote {args.output} ({len(pdf_bytes)} bytes)")


if __name__ == "__main__":
    main()
