from scheve_cms.errors import StorageFailure
from scheve_cms.services.settings_documents import SettingsDocuments


def _upload_template(client, png_template):
    r = client.post("/api/templates", files={"file": ("bg.png", png_template, "image/png")})
    assert r.status_code == 200
    return r.json()["data"]


def test_health(client):
    assert client.get("/api/health").json() == {"ok": True}


def test_get_layout_returns_defaults(client):
    r = client.get("/api/pdflayout")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["student_name"]["top"] == 150
    assert data["total_amount"]["bold"] is True
    assert data["updated_by"] == "System"


def test_update_single_element(client):
    before = client.get("/api/pdflayout").json()["data"]

    r = client.put(
        "/api/pdflayout/element/studentname",
        json={"top": 200, "left": 60, "font_size": 12, "max_height": 20, "bold": True, "text_align": "Right"},
    )

    assert r.status_code == 200
    data = r.json()["data"]
    assert data["student_name"] == {
        "top": 200,
        "left": 60,
        "font_size": 12,
        "max_height": 20,
        "bold": True,
        "text_align": "Right",
    }
    assert data["invoice_id"] == before["invoice_id"]
    assert client.get("/api/pdflayout").json()["data"]["student_name"]["top"] == 200


def test_unknown_element(client):
    r = client.put("/api/pdflayout/element/Logo", json={"top": 1, "left": 1})
    assert r.status_code == 400
    assert "Invalid element name" in r.json()["detail"]


def test_out_of_range_element(client):
    r = client.put("/api/pdflayout/element/StudentName", json={"top": 1001, "left": 1})
    assert r.status_code == 400
    body = r.json()
    assert body["ok"] is False
    assert body["errors"] == ["student_name.top must be between 0 and 1000 (got 1001)"]


def test_full_update_reports_every_error(client):
    layout = client.get("/api/pdflayout").json()["data"]
    layout["student_name"]["top"] = 1001
    layout["contact_info"]["font_size"] = 5

    r = client.put("/api/pdflayout", json=layout)

    assert r.status_code == 400
    assert len(r.json()["errors"]) == 2
    assert client.get("/api/pdflayout").json()["data"]["student_name"]["top"] == 150


def test_full_update_and_reset(client):
    layout = client.get("/api/pdflayout").json()["data"]
    layout["payment_note"]["top"] = 700
    layout["updated_by"] = "marije"

    r = client.put("/api/pdflayout", json=layout)
    assert r.status_code == 200
    assert r.json()["data"]["payment_note"]["top"] == 700
    assert r.json()["data"]["updated_by"] == "marije"

    r = client.post("/api/pdflayout/reset")
    assert r.status_code == 200
    assert r.json()["data"]["payment_note"]["top"] == 500


def test_elements_and_defaults(client):
    elements = client.get("/api/pdflayout/elements").json()["data"]
    assert len(elements) == 10
    assert elements["ContactInfo"] == "Contact Information"

    defaults = client.get("/api/pdflayout/defaults").json()["data"]
    assert defaults["contact_info"]["top"] == 600


def test_preview(client, png_template):
    assert client.get("/api/pdflayout/preview").status_code == 404

    _upload_template(client, png_template)

    r = client.get("/api/pdflayout/preview")
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert r.content.startswith(b"%PDF")

    layout = client.get("/api/pdflayout/defaults").json()["data"]
    layout["student_name"]["top"] = 700
    r = client.post("/api/pdflayout/preview", json={"layout_settings": layout})
    assert r.status_code == 200
    # previews never persist
    assert client.get("/api/pdflayout").json()["data"]["student_name"]["top"] == 150


def test_template_upload_validation(client):
    r = client.post("/api/templates", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert r.status_code == 400
    assert client.get("/api/templates/info").json()["data"]["has_template"] is False


def test_students_and_invoices_flow(client, png_template):
    _upload_template(client, png_template)

    r = client.post("/api/students", json={"name": "Anna de Vries", "email": "anna@example.nl"})
    assert r.status_code == 201
    sid = r.json()["id"]
    assert client.get(f"/api/students/{sid}").json()["name"] == "Anna de Vries"

    r = client.post(
        "/api/invoices/batch-generate",
        json={"student_ids": [sid], "amount_total": "121.00", "vat": 21, "description": "Spring term"},
    )
    assert r.status_code == 200
    result = r.json()
    assert result["success_count"] == 1
    assert result["total_amount"] == 121.0
    inv_id = result["successful_invoices"][0]["id"]

    r = client.get(f"/api/invoices/file/{inv_id}")
    assert r.status_code == 200
    assert r.content.startswith(b"%PDF")

    r = client.get(f"/api/students/{sid}/invoices")
    assert [i["id"] for i in r.json()["invoices"]] == [inv_id]

    assert client.delete(f"/api/students/{sid}").status_code == 204
    assert client.get(f"/api/invoices/{inv_id}").status_code == 404
    assert client.get(f"/api/students/{sid}").status_code == 404


def test_batch_request_validation(client):
    r = client.post("/api/invoices/batch-generate", json={"student_ids": [], "amount_total": 0, "vat": 21})
    assert r.status_code == 400
    assert r.json()["ok"] is False
    assert len(r.json()["errors"]) == 2


def test_unknown_student_is_404(client):
    assert client.get("/api/students/nope").status_code == 404
    assert client.put("/api/students/nope", json={"name": "x"}).status_code == 404


def test_storage_failure_is_503(client, monkeypatch):
    def fail(self, key):
        raise StorageFailure("database unavailable")

    monkeypatch.setattr(SettingsDocuments, "find_one", fail)

    r = client.get("/api/pdflayout")
    assert r.status_code == 503
    assert r.json()["detail"] == "database unavailable"
