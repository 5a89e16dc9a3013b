"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI

from src.api.crafting import router as crafting_router
from src.api.health import router as health_router
from src.config import settings
from src.core.crafting.grid import GridValidator
from src.core.crafting.ledger import OwnerLockTable
from src.core.crafting.synthesis import ScalingPolicy, WeaponSynthesizer
from src.core.crafting.templates import TemplateRegistry
from src.core.event_bus import EventBus
from src.core.logging import get_logger, setup_logging
from src.db.database import create_db_engine, create_session_factory
from src.db.models import Base
from src.services.audit_service import CraftAuditService
from src.services.catalog_service import MaterialCatalog
from src.services.crafting_service import CraftingService
from src.services.ledger_service import InventoryLedger
from src.services.synthesis import get_synthesis_provider

setup_logging(settings.LOG_LEVEL, debug=settings.DEBUG)
logger = get_logger(__name__)


def init_state(app: FastAPI, database_url: str) -> None:
    """Build process-wide state once and attach it to ``app.state``."""
    # DB 엔진 + 테이블 생성
    logger.info("Connecting to database...")
    db_engine = create_db_engine(database_url, echo=settings.DEBUG)
    Base.metadata.create_all(bind=db_engine)
    session_factory = create_session_factory(db_engine)
    app.state.db_engine = db_engine
    app.state.session_factory = session_factory
    logger.info("Database tables created.")

    event_bus = EventBus()
    app.state.event_bus = event_bus
    app.state.audit = CraftAuditService(event_bus)

    # 재료 카탈로그
    catalog = MaterialCatalog(session_factory)
    catalog.sync_from_json(settings.MATERIALS_PATH)
    app.state.catalog = catalog

    # 무기 템플릿 + 합성기
    registry = TemplateRegistry()
    registry.load_from_json(settings.TEMPLATES_PATH)
    policy = ScalingPolicy(
        attack_per_material=settings.ATTACK_PER_MATERIAL,
        defense_per_material=settings.DEFENSE_PER_MATERIAL,
        speed_per_material=settings.SPEED_PER_MATERIAL,
        magic_per_material=settings.MAGIC_PER_MATERIAL,
    )
    synthesizer = WeaponSynthesizer(registry, policy)
    provider = get_synthesis_provider(synthesizer)
    app.state.synthesizer = synthesizer
    app.state.synthesis_provider = provider
    logger.info("Synthesis provider initialized: %s", provider.name)

    # 원장 + 크래프팅 트랜잭션
    ledger = InventoryLedger(
        session_factory=session_factory,
        event_bus=event_bus,
        locks=OwnerLockTable(),
        lock_timeout=settings.LEDGER_LOCK_TIMEOUT,
    )
    app.state.ledger = ledger
    app.state.crafting_service = CraftingService(
        validator=GridValidator(settings.REQUIRED_MATERIAL_COUNT),
        ledger=ledger,
        provider=provider,
        event_bus=event_bus,
        catalog=catalog,
    )
    logger.info("CraftingService initialized.")


def teardown_state(app: FastAPI) -> None:
    """Release what ``init_state`` acquired."""
    db_engine = getattr(app.state, "db_engine", None)
    if db_engine is not None:
        db_engine.dispose()
    app.state.audit.close()
    app.state.event_bus.clear()


def create_app(database_url: Optional[str] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler for startup and shutdown events."""
        init_state(app, database_url or settings.DATABASE_URL)
        yield
        logger.info("Shutting down...")
        teardown_state(app)

    app = FastAPI(title="Grid Forge", lifespan=lifespan)
    app.include_router(health_router)
    app.include_router(crafting_router)
    return app


app = create_app()
