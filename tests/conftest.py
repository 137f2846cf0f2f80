"""
Shared pytest fixtures - in‑memory SQLite + FastAPI TestClient + fake OCR.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.models import ReceiptModel  # noqa: F401  - register model
from app.main import app
from app.ocr import OcrClient

# StaticPool ensures all connections share the same in-memory database
_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_Session = sessionmaker(autocommit=False, autoflush=False, bind=_ENGINE)


@pytest.fixture(autouse=True)
def _reset_tables():
    Base.metadata.create_all(bind=_ENGINE)
    yield
    Base.metadata.drop_all(bind=_ENGINE)


@pytest.fixture()
def db():
    session = _Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db):
    def _override():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = _override
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


class FakeOcrClient(OcrClient):
    """Returns canned text keyed by the raw image bytes."""

    def __init__(self, texts: dict[bytes, str | None]):
        self.texts = texts
        self.calls = 0

    def detect_text(self, image_bytes: bytes):
        self.calls += 1
        if image_bytes not in self.texts:
            raise RuntimeError("unreadable image")
        return self.texts[image_bytes]


@pytest.fixture()
def fake_ocr():
    return FakeOcrClient
