"""CraftAuditService 테스트 - 이벤트 구독 + 집계"""

import logging

from src.core.crafting.grid import GridValidator
from src.core.crafting.models import CraftRequest, WeaponCategory
from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.services.audit_service import AUDITED_EVENTS, CraftAuditService
from src.services.crafting_service import CraftingService
from src.services.synthesis.local import LocalSynthesisProvider
from tests.helpers import cross_positions, make_grid


class TestSubscription:
    def test_subscribes_every_audited_event(self) -> None:
        bus = EventBus()
        CraftAuditService(bus)
        assert bus.handler_count == len(AUDITED_EVENTS)

    def test_close_unsubscribes(self) -> None:
        bus = EventBus()
        CraftAuditService(bus).close()
        assert bus.handler_count == 0


class TestCounting:
    def test_counts_per_event_type(self) -> None:
        bus = EventBus()
        audit = CraftAuditService(bus)
        for tx in ("t1", "t2"):
            bus.emit(
                GameEvent(
                    EventTypes.CRAFT_COMMITTED,
                    {"owner_id": "u1", "transaction_id": tx},
                    "crafting_service",
                )
            )
        bus.emit(GameEvent(EventTypes.MATERIAL_ADDED, {"owner_id": "u1"}, "ledger_service"))
        assert audit.counts() == {
            EventTypes.CRAFT_COMMITTED: 2,
            EventTypes.MATERIAL_ADDED: 1,
        }

    def test_rollback_logged_as_warning(self, caplog) -> None:
        bus = EventBus()
        CraftAuditService(bus)
        with caplog.at_level(logging.INFO, logger="src.services.audit_service"):
            bus.emit(
                GameEvent(
                    EventTypes.CRAFT_ROLLED_BACK,
                    {"owner_id": "u1", "transaction_id": "t9", "materials": {"iron": 15}},
                    "crafting_service",
                )
            )
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "t9" in warnings[0].getMessage()


class TestEndToEnd:
    def test_craft_through_service(self, ledger, bus, catalog, synthesizer) -> None:
        audit = CraftAuditService(bus)
        service = CraftingService(
            GridValidator(), ledger, LocalSynthesisProvider(synthesizer), bus, catalog
        )
        ledger.replenish("u1", "iron", 15)
        service.execute(
            "u1", CraftRequest(grid=make_grid(cross_positions()), category=WeaponCategory.SWORDS)
        )

        counts = audit.counts()
        assert EventTypes.OWNER_CREATED not in counts
        assert counts[EventTypes.MATERIAL_ADDED] == 1
        assert counts[EventTypes.MATERIALS_DEDUCTED] == 1
        assert counts[EventTypes.CRAFT_COMMITTED] == 1
