import pytest

from scheve_cms.errors import ValidationError
from scheve_cms.layout.position import LayoutPosition, TextAlign
from scheve_cms.layout.settings import LayoutField, LayoutSettings, default_layout_settings


def test_default_table():
    d = default_layout_settings()
    assert (d.student_name.top, d.student_name.left) == (150, 400)
    assert (d.invoice_description.top, d.invoice_description.left) == (315, 100)
    assert (d.contact_info.top, d.contact_info.left) == (600, 100)

    bold = {f for f, pos in d.positions().items() if pos.bold}
    assert bold == {LayoutField.BASE_AMOUNT, LayoutField.VAT_AMOUNT, LayoutField.TOTAL_AMOUNT}

    for pos in d.positions().values():
        assert pos.max_height == 15
        assert pos.font_size == 10
        assert pos.text_align is TextAlign.LEFT

    assert d.updated_by == "System"
    assert d.validate() == []


def test_round_trip_through_dict(clock):
    d = default_layout_settings(at=clock.now())
    back = LayoutSettings.from_dict(d.to_dict())
    assert back == d


def test_from_dict_accepts_field_keys():
    raw = {f.key: pos.to_dict() for f, pos in default_layout_settings().positions().items()}
    parsed = LayoutSettings.from_dict(raw)
    assert parsed.same_layout(default_layout_settings())


def test_missing_and_bad_slots_are_reported_together():
    raw = default_layout_settings().to_dict()
    del raw["invoice_id"]
    raw["contact_info"]["top"] = "x"

    with pytest.raises(ValidationError) as exc:
        LayoutSettings.from_dict(raw)

    assert "invoice_id is required" in exc.value.errors
    assert any(e.startswith("contact_info.top") for e in exc.value.errors)


def test_validate_aggregates_across_fields():
    d = default_layout_settings()
    d = d.with_position(LayoutField.STUDENT_NAME, LayoutPosition(top=1001))
    d = d.with_position(LayoutField.TOTAL_AMOUNT, LayoutPosition(font_size=31))
    errors = d.validate()
    assert "student_name.top must be between 0 and 1000 (got 1001)" in errors
    assert "total_amount.font_size must be between 6 and 30 (got 31)" in errors
    with pytest.raises(ValidationError):
        d.ensure_valid()


def test_with_position_only_touches_one_slot():
    d = default_layout_settings()
    changed = d.with_position(LayoutField.INVOICE_DATE, LayoutPosition(top=5, left=5))
    for f in LayoutField:
        if f is LayoutField.INVOICE_DATE:
            assert changed.position(f) == LayoutPosition(top=5, left=5)
        else:
            assert changed.position(f) == d.position(f)


def test_stamped_keeps_previous_author_for_blank_name(clock):
    d = default_layout_settings().stamped(clock.now(), updated_by="  ")
    assert d.updated_by == "System"
    assert d.last_updated == clock.now()
    assert d.stamped(clock.now(), updated_by="marije").updated_by == "marije"
