import io
import threading

import pytest
from pypdf import PdfReader

from scheve_cms.errors import OperationCancelled, TemplateNotFoundError, ValidationError
from scheve_cms.layout.position import LayoutPosition
from scheve_cms.layout.settings import LayoutField, default_layout_settings


def _text(pdf_bytes):
    return PdfReader(io.BytesIO(pdf_bytes)).pages[0].extract_text()


def _size(pdf_bytes):
    box = PdfReader(io.BytesIO(pdf_bytes)).pages[0].mediabox
    return round(float(box.width)), round(float(box.height))


def test_same_input_same_bytes(storage, renderer, png_template, student, invoice):
    storage.save_bytes("templates/bg.png", png_template)
    layout = default_layout_settings()

    a = renderer.render("templates/bg.png", student, invoice, layout)
    b = renderer.render("templates/bg.png", student, invoice, layout)

    assert a.startswith(b"%PDF")
    assert a == b


def test_image_template_renders_on_a4(storage, renderer, png_template, student, invoice):
    storage.save_bytes("templates/bg.png", png_template)

    pdf = renderer.render("templates/bg.png", student, invoice, default_layout_settings())

    assert _size(pdf) == (595, 842)
    text = _text(pdf)
    assert "Anna de Vries" in text
    assert "€121.00" in text or "121.00" in text


def test_pdf_template_is_background(storage, renderer, pdf_template, student, invoice):
    storage.save_bytes("templates/bg.pdf", pdf_template, content_type="application/pdf")

    pdf = renderer.render("templates/bg.pdf", student, invoice, default_layout_settings())

    assert len(PdfReader(io.BytesIO(pdf)).pages) == 1
    assert _size(pdf) == (612, 792)
    text = _text(pdf)
    assert "SCHEVE SCHILDERSCHOOL" in text
    assert "Anna de Vries" in text


@pytest.mark.parametrize("path", ["", "/no/such/file", "templates/missing.png"])
def test_missing_template(renderer, student, invoice, path):
    with pytest.raises(TemplateNotFoundError):
        renderer.render(path, student, invoice, default_layout_settings())


def test_missing_student_and_invoice(renderer):
    with pytest.raises(ValidationError) as exc:
        renderer.render("templates/bg.png", None, None, default_layout_settings())
    assert exc.value.errors == ["student is required", "invoice is required"]


@pytest.mark.parametrize("name,data", [("broken.png", b"not an image"), ("broken.pdf", b"%PDF-1.4 garbage")])
def test_undecodable_template_falls_back_to_blank_page(storage, renderer, student, invoice, name, data):
    storage.save_bytes(f"templates/{name}", data)

    pdf = renderer.render(f"templates/{name}", student, invoice, default_layout_settings())

    assert _size(pdf) == (595, 842)
    assert "Anna de Vries" in _text(pdf)


def test_text_beyond_max_height_is_dropped(storage, renderer, png_template, student, invoice):
    storage.save_bytes("templates/bg.png", png_template)
    invoice.description = "paint " * 200 + "ENDMARKER"

    pdf = renderer.render("templates/bg.png", student, invoice, default_layout_settings())

    assert "ENDMARKER" not in _text(pdf)


def test_layout_changes_output(storage, renderer, png_template, student, invoice):
    storage.save_bytes("templates/bg.png", png_template)
    layout = default_layout_settings()
    moved = layout.with_position(LayoutField.STUDENT_NAME, LayoutPosition(top=700, left=50, font_size=20))

    assert renderer.render("templates/bg.png", student, invoice, layout) != renderer.render(
        "templates/bg.png", student, invoice, moved
    )


def test_cancelled_render(storage, renderer, png_template, student, invoice):
    storage.save_bytes("templates/bg.png", png_template)
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(OperationCancelled):
        renderer.render("templates/bg.png", student, invoice, default_layout_settings(), cancel=cancel)


def test_layout_read_from_store_when_not_given(layout_service, storage, png_template, student, invoice):
    storage.save_bytes("templates/bg.png", png_template)

    pdf = layout_service.render_document("templates/bg.png", student, invoice)

    assert "Anna de Vries" in _text(pdf)


def test_renderer_falls_back_to_layout_store(storage, documents, clock, png_template, student, invoice):
    from scheve_cms.layout.store import LayoutStore
    from scheve_cms.styling.invoice.renderer import DocumentRenderer

    storage.save_bytes("templates/bg.png", png_template)
    renderer = DocumentRenderer(storage, layout_store=LayoutStore(documents, clock=clock))

    pdf = renderer.render("templates/bg.png", student, invoice)

    assert "Anna de Vries" in _text(pdf)


def test_same_input_same_bytes_on_pdf_template(storage, renderer, pdf_template, student, invoice):
    storage.save_bytes("templates/bg.pdf", pdf_template)
    layout = default_layout_settings()

    a = renderer.render("templates/bg.pdf", student, invoice, layout)
    b = renderer.render("templates/bg.pdf", student, invoice, layout)

    assert a == b


@pytest.mark.parametrize("vat,message", [
    (-100, "vat must be between 0 and 100 (got -100)"),
    (101, "vat must be between 0 and 100 (got 101)"),
    ("lots", "vat must be a number (got 'lots')"),
])
def test_vat_out_of_range(storage, renderer, png_template, student, invoice, vat, message):
    storage.save_bytes("templates/bg.png", png_template)
    invoice.vat = vat

    with pytest.raises(ValidationError) as exc:
        renderer.render("templates/bg.png", student, invoice, default_layout_settings())

    assert exc.value.errors == [message]


def test_amount_must_be_a_number(storage, renderer, png_template, student, invoice):
    storage.save_bytes("templates/bg.png", png_template)
    invoice.amount_total = "abc"

    with pytest.raises(ValidationError) as exc:
        renderer.render("templates/bg.png", student, invoice, default_layout_settings())

    assert exc.value.errors == ["amount_total must be a number (got 'abc')"]
