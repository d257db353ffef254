# tests/conftest.py
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.services.analytics import AnalyticsSettings
from infra.db.base import Base
from infra.services import build_service_dict


@pytest.fixture
def session_factory():
    # separate in-memory DB for tests, shared by every session of the factory
    engine = create_engine(
        "sqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    try:
        yield factory
    finally:
        engine.dispose()


@pytest.fixture
def session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def services(session_factory):
    return build_service_dict(session_factory, settings=AnalyticsSettings(fetch_workers=1))
