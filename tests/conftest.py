"""Shared test fixtures."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from src.config import settings
from src.core.crafting.grid import GridValidator
from src.core.crafting.synthesis import WeaponSynthesizer
from src.core.crafting.templates import TemplateRegistry
from src.core.event_bus import EventBus
from src.db.database import create_db_engine, create_session_factory
from src.db.models import Base
from src.main import create_app
from src.services.catalog_service import MaterialCatalog
from src.services.ledger_service import InventoryLedger

TEMPLATES_PATH = Path(settings.TEMPLATES_PATH)
MATERIALS_PATH = Path(settings.MATERIALS_PATH)


@pytest.fixture()
def session_factory(tmp_path) -> sessionmaker[Session]:
    """스레드 간 공유 가능한 임시 파일 SQLite."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'forge.db'}")
    Base.metadata.create_all(bind=engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture()
def bus() -> EventBus:
    return EventBus()


@pytest.fixture()
def catalog(session_factory) -> MaterialCatalog:
    catalog = MaterialCatalog(session_factory)
    catalog.sync_from_json(MATERIALS_PATH)
    return catalog


@pytest.fixture()
def ledger(session_factory, bus, catalog) -> InventoryLedger:
    """카탈로그가 채워진 DB 위의 원장."""
    return InventoryLedger(session_factory, bus, lock_timeout=5.0)


@pytest.fixture()
def registry() -> TemplateRegistry:
    registry = TemplateRegistry()
    registry.load_from_json(TEMPLATES_PATH)
    return registry


@pytest.fixture()
def synthesizer(registry) -> WeaponSynthesizer:
    return WeaponSynthesizer(registry)


@pytest.fixture()
def validator() -> GridValidator:
    return GridValidator()


@pytest.fixture()
def client() -> TestClient:
    """FastAPI TestClient wired to an in-memory SQLite database."""
    app = create_app("sqlite:///:memory:")
    with TestClient(app) as test_client:
        yield test_client
