"""크래프팅 감사 Service - 트랜잭션/원장 이벤트를 구조화 로그로 남긴다

EventBus 구독만 한다. 다른 서비스를 호출하지 않는다.
"""

import threading
from collections import Counter

from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.logging import get_logger

logger = get_logger(__name__)

AUDITED_EVENTS = (
    EventTypes.CRAFT_COMMITTED,
    EventTypes.CRAFT_REJECTED,
    EventTypes.CRAFT_ROLLED_BACK,
    EventTypes.MATERIALS_DEDUCTED,
    EventTypes.MATERIALS_RECREDITED,
    EventTypes.MATERIAL_ADDED,
    EventTypes.OWNER_CREATED,
)


class CraftAuditService:
    """이벤트별 발생 횟수 집계 + 감사 로그"""

    def __init__(self, event_bus: EventBus):
        self._bus = event_bus
        self._counts: Counter[str] = Counter()
        self._lock = threading.Lock()
        self._register_event_handlers()

    def _register_event_handlers(self) -> None:
        """EventBus 구독"""
        for event_type in AUDITED_EVENTS:
            self._bus.subscribe(event_type, self._on_event)

    def close(self) -> None:
        """EventBus 구독 해제"""
        for event_type in AUDITED_EVENTS:
            self._bus.unsubscribe(event_type, self._on_event)

    def counts(self) -> dict[str, int]:
        """{event_type: 발생 횟수}"""
        with self._lock:
            return dict(self._counts)

    def _on_event(self, event: GameEvent) -> None:
        with self._lock:
            self._counts[event.event_type] += 1

        data = event.data
        if event.event_type == EventTypes.CRAFT_ROLLED_BACK:
            logger.warning(
                "audit %s tx=%s owner=%s materials=%s",
                event.event_type,
                data.get("transaction_id"),
                data.get("owner_id"),
                data.get("materials"),
            )
        else:
            logger.info(
                "audit %s owner=%s %s",
                event.event_type,
                data.get("owner_id"),
                {k: v for k, v in data.items() if k != "owner_id"},
            )
