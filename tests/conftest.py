import io
import os
import tempfile
from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

# scheve_cms.db needs a database url at import time
_TMP = tempfile.mkdtemp(prefix="scheve-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'app.db')}"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["STORAGE_ROOT"] = os.path.join(_TMP, "storage")

import pytest
from PIL import Image, ImageDraw
from reportlab.lib.pagesizes import LETTER
from reportlab.pdfgen import canvas
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from scheve_cms import models  # noqa: F401
from scheve_cms.clock import FixedClock
from scheve_cms.db import Base
from scheve_cms.services.layout_service import LayoutService
from scheve_cms.services.settings_documents import SettingsDocuments
from scheve_cms.storage.local_storage import LocalFileStorage
from scheve_cms.styling.base import RendererConfig
from scheve_cms.styling.invoice.renderer import DocumentRenderer

NOW = datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    s = session_factory()
    yield s
    s.close()


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def documents(db):
    return SettingsDocuments(db)


@pytest.fixture
def storage(tmp_path):
    return LocalFileStorage(tmp_path / "storage")


@pytest.fixture
def renderer(storage):
    return DocumentRenderer(storage, RendererConfig())


@pytest.fixture
def layout_service(db, renderer, clock):
    return LayoutService(db, renderer, clock=clock)


@pytest.fixture
def png_template():
    img = Image.new("RGB", (595, 842), "white")
    draw = ImageDraw.Draw(img)
    draw.rectangle([20, 20, 575, 120], fill=(220, 220, 220))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def pdf_template():
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=LETTER, invariant=1)
    c.setFont("Helvetica-Bold", 18)
    c.drawString(40, 740, "SCHEVE SCHILDERSCHOOL")
    c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture
def student():
    return SimpleNamespace(
        id="s-1",
        name="Anna de Vries",
        address="Kerkstraat 1, 2586 AB Den Haag",
        email="anna@example.nl",
    )


@pytest.fixture
def invoice():
    return SimpleNamespace(
        id="inv-0001",
        date=NOW,
        amount_total=Decimal("121.00"),
        vat=Decimal("21"),
        description="Spring term oil painting",
    )


@pytest.fixture
def client(session_factory, storage, clock, renderer):
    from fastapi.testclient import TestClient

    from scheve_cms.api_main import app
    from scheve_cms.clock import get_clock
    from scheve_cms.db import get_db
    from scheve_cms.services.layout_service import get_renderer
    from scheve_cms.storage.factory import get_storage

    def override_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_renderer] = lambda: renderer
    yield TestClient(app)
    app.dependency_overrides.clear()
