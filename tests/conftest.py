import os

# test config before app.config is imported anywhere
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "test")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import Settings, get_settings
from app.db import Base, get_db
from app.dependencies import get_storage_service
from app.services.storage import MemoryStorage
from tests.pdf_factory import make_form_template, make_marker_pdf, make_png


@pytest.fixture
def anyio_backend():
    # run async tests on asyncio only (no trio)
    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture
def storage(settings) -> MemoryStorage:
    """Memory store seeded with the form template, terms, disclosure and logo."""
    return MemoryStorage(
        {
            settings.PDF_TEMPLATE_KEY: make_form_template(),
            settings.PDF_TERMS_KEY: make_marker_pdf("TERMS", pages=2),
            settings.PDF_DISCLOSURE_KEY: make_marker_pdf("DISCLOSURE", pages=1),
            settings.BRAND_LOGO_KEY: make_png(400, 100),
        }
    )


@pytest.fixture
def db_session():
    # one shared connection so the in-memory db survives across threads
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    from app import models  # noqa: F401  (registers tables)

    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    db = Session()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session, storage):
    from app.main import app

    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_storage_service] = lambda: storage
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
