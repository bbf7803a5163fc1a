# scheve_cms/api_main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Body, Depends, FastAPI, File, HTTPException, Request, Response, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from scheve_cms.clock import Clock, get_clock
from scheve_cms.config import get_settings
from scheve_cms.db import get_db, init_db
from scheve_cms.errors import SchoolAdminError
from scheve_cms.layout.dispatch import available_fields, resolve_field
from scheve_cms.layout.position import LayoutPosition
from scheve_cms.layout.settings import LayoutSettings, default_layout_settings
from scheve_cms.schemas import BatchInvoiceRequest, StudentIn
from scheve_cms.services.invoices import InvoiceService, generate_invoices, invoice_to_dict
from scheve_cms.services.keys import invoice_file_name
from scheve_cms.services.layout_service import LayoutService, get_renderer
from scheve_cms.services.students import StudentService, student_to_dict
from scheve_cms.services.templates import TemplateService
from scheve_cms.storage.factory import get_storage
from scheve_cms.styling.invoice.renderer import DocumentRenderer

settings = get_settings()

logger = logging.getLogger("scheve_cms.api")
if not logging.getLogger().handlers:
    logging.basicConfig(level=settings.log_level)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_db()
    yield


app = FastAPI(title="Scheve CMS API", lifespan=lifespan)

# CORS for local frontend dev (React/Vite/etc.)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SchoolAdminError)
async def school_admin_error_handler(request: Request, exc: SchoolAdminError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        errors.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return JSONResponse(status_code=400, content={"ok": False, "detail": "Validation failed", "errors": errors})


def get_layout_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    renderer: DocumentRenderer = Depends(get_renderer),
) -> LayoutService:
    return LayoutService(db, renderer, clock=clock)


@app.get("/")
def root():
    return {"ok": True, "try": ["/docs", "/api/health", "/api/students", "/api/pdflayout"]}


@app.get("/api/health")
def health():
    return {"ok": True}


# ------------------------------------------------------------
# Students
# ------------------------------------------------------------
@app.get("/api/students")
def list_students(db: Session = Depends(get_db)):
    return {"items": [student_to_dict(s) for s in StudentService(db).list()]}


@app.get("/api/students/{student_id}")
def get_student(student_id: str, db: Session = Depends(get_db)):
    student = StudentService(db).get(student_id)
    if not student:
        raise HTTPException(status_code=404, detail="Not found")
    return student_to_dict(student)


@app.get("/api/students/{student_id}/invoices")
def get_student_with_invoices(student_id: str, db: Session = Depends(get_db)):
    found = StudentService(db).get_with_invoices(student_id)
    if not found:
        raise HTTPException(status_code=404, detail="Not found")
    student, invoices = found
    return {"student": student_to_dict(student), "invoices": [invoice_to_dict(i) for i in invoices]}


@app.post("/api/students", status_code=201)
def create_student(body: StudentIn, db: Session = Depends(get_db)):
    student = StudentService(db).create(body.model_dump())
    return student_to_dict(student)


@app.put("/api/students/{student_id}")
def update_student(student_id: str, body: StudentIn, db: Session = Depends(get_db)):
    student = StudentService(db).update(student_id, body.model_dump())
    if not student:
        raise HTTPException(status_code=404, detail="Not found")
    return student_to_dict(student)


@app.delete("/api/students/{student_id}", status_code=204)
def delete_student(student_id: str, db: Session = Depends(get_db), storage=Depends(get_storage)):
    if not StudentService(db).delete(student_id, storage=storage):
        raise HTTPException(status_code=404, detail="Not found")
    return Response(status_code=204)


# ------------------------------------------------------------
# Invoices
# ------------------------------------------------------------
@app.get("/api/invoices")
def list_invoices(db: Session = Depends(get_db)):
    return {"items": [invoice_to_dict(i) for i in InvoiceService(db).list()]}


@app.get("/api/invoices/{invoice_id}")
def get_invoice(invoice_id: str, db: Session = Depends(get_db)):
    invoice = InvoiceService(db).get(invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Not found")
    return invoice_to_dict(invoice)


@app.delete("/api/invoices/{invoice_id}", status_code=204)
def delete_invoice(invoice_id: str, db: Session = Depends(get_db), storage=Depends(get_storage)):
    if not InvoiceService(db).delete(invoice_id, storage=storage):
        raise HTTPException(status_code=404, detail="Not found")
    return Response(status_code=204)


@app.get("/api/invoices/file/{invoice_id}")
def get_invoice_file(invoice_id: str, db: Session = Depends(get_db), storage=Depends(get_storage)):
    invoice = InvoiceService(db).get(invoice_id)
    if not invoice or not invoice.invoice_pdf_path:
        raise HTTPException(status_code=404, detail="Not found")
    if not storage.exists(invoice.invoice_pdf_path):
        raise HTTPException(status_code=404, detail="Invoice file missing")

    filename = invoice_file_name(str(invoice.id))
    return Response(
        content=storage.read_bytes(invoice.invoice_pdf_path),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.post("/api/invoices/batch-generate")
def batch_generate(
    body: BatchInvoiceRequest,
    db: Session = Depends(get_db),
    storage=Depends(get_storage),
    clock: Clock = Depends(get_clock),
    layout: LayoutService = Depends(get_layout_service),
):
    result = generate_invoices(
        db,
        student_ids=body.student_ids,
        amount_total=body.amount_total,
        vat=body.vat,
        description=body.description,
        layout=layout,
        storage=storage,
        clock=clock,
    )
    return result.to_dict()


# ------------------------------------------------------------
# PDF layout
# ------------------------------------------------------------
@app.get("/api/pdflayout")
def get_layout_settings(layout: LayoutService = Depends(get_layout_service)):
    return {"ok": True, "data": layout.get_layout_settings().to_dict()}


@app.put("/api/pdflayout")
def update_layout_settings(body: dict = Body(...), layout: LayoutService = Depends(get_layout_service)):
    new_settings = LayoutSettings.from_dict(body)
    updated = layout.update_layout_settings(new_settings, updated_by=body.get("updated_by"))
    return {"ok": True, "message": "Layout settings updated successfully", "data": updated.to_dict()}


@app.put("/api/pdflayout/element/{element_name}")
def update_element_position(
    element_name: str,
    body: dict = Body(...),
    layout: LayoutService = Depends(get_layout_service),
):
    field = resolve_field(element_name)
    position = LayoutPosition.from_dict(body, prefix=field.attr)
    updated = layout.update_element_position(field.key, position, updated_by=body.get("updated_by"))
    return {"ok": True, "message": f"Updated {field.key} position", "data": updated.to_dict()}


@app.post("/api/pdflayout/reset")
def reset_layout(layout: LayoutService = Depends(get_layout_service)):
    reset = layout.reset_layout_to_default()
    return {"ok": True, "message": "Layout settings reset to default", "data": reset.to_dict()}


def _preview_response(layout: LayoutService, layout_settings: LayoutSettings | None) -> Response:
    pdf_bytes = layout.render_preview(layout_settings)
    filename = f"layout_preview_{layout.clock.now():%Y%m%d_%H%M%S}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )


@app.get("/api/pdflayout/preview")
def preview_current_layout(layout: LayoutService = Depends(get_layout_service)):
    return _preview_response(layout, None)


@app.post("/api/pdflayout/preview")
def preview_layout(body: dict | None = Body(default=None), layout: LayoutService = Depends(get_layout_service)):
    raw = (body or {}).get("layout_settings")
    layout_settings = LayoutSettings.from_dict(raw) if raw is not None else None
    if layout_settings is not None:
        layout_settings.ensure_valid()
    return _preview_response(layout, layout_settings)


@app.get("/api/pdflayout/elements")
def get_available_elements():
    return {"ok": True, "message": "Available PDF elements", "data": available_fields()}


@app.get("/api/pdflayout/defaults")
def get_default_layout():
    return {"ok": True, "message": "Default layout settings", "data": default_layout_settings().to_dict()}


# ------------------------------------------------------------
# Invoice template
# ------------------------------------------------------------
@app.post("/api/templates")
async def upload_template(
    file: UploadFile = File(...),
    storage=Depends(get_storage),
    layout: LayoutService = Depends(get_layout_service),
):
    data = await file.read()
    result = TemplateService(storage, layout.system_settings).upload(file.filename or "", data)
    return {"ok": True, "data": result.to_dict()}


@app.get("/api/templates/info")
def template_info(storage=Depends(get_storage), layout: LayoutService = Depends(get_layout_service)):
    return {"ok": True, "data": TemplateService(storage, layout.system_settings).info().to_dict()}
