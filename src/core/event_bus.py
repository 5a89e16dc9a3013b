"""EventBus - 크래프팅 트랜잭션/원장 이벤트 통신 인프라

규칙:
- 서비스는 다른 서비스를 직접 import하지 않는다
- 이벤트는 식별자(ID)와 수량만 전달한다
- 전파 깊이 최대 MAX_DEPTH 단계
- 한 체인(최상위 발행 1회의 전파 범위)에서 동일 이벤트 중복 발행 금지
- 체인 상태(깊이, 중복 추적)는 스레드별로 분리된다
"""

import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Set

from src.core.logging import get_logger

logger = get_logger(__name__)

MAX_DEPTH = 5  # 한 트랜잭션 내 이벤트 전파 최대 깊이


@dataclass
class GameEvent:
    """이벤트 데이터 컨테이너

    Args:
        event_type: 이벤트 유형 (예: "craft_committed", "material_added")
        data: 이벤트 데이터 (ID 위주, 무거운 객체 금지)
        source: 발행한 서비스 이름
    """

    event_type: str
    data: Dict[str, Any]
    source: str

    # 내부 추적용 (외부에서 설정하지 않음)
    _depth: int = field(default=0, repr=False)


# 핸들러 타입: GameEvent를 받는 callable
EventHandler = Callable[[GameEvent], None]


class _ChainState(threading.local):
    def __init__(self) -> None:
        self.depth = 0
        self.emitted: Set[str] = set()  # "source:event_type" 중복 방지


class EventBus:
    """동기식 이벤트 버스

    여러 요청 스레드가 하나의 버스를 공유한다. 구독 목록은 락으로 보호하고,
    핸들러는 발행한 스레드에서 동기 호출된다.

    사용 패턴:
        bus = EventBus()
        bus.subscribe("craft_committed", audit.handle_craft_committed)
        bus.emit(GameEvent(event_type="craft_committed", data={"owner_id": "u1"}, source="crafting_service"))
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._lock = threading.RLock()
        self._chain = _ChainState()

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """이벤트 구독 등록"""
        with self._lock:
            self._handlers[event_type].append(handler)
        logger.debug("EventBus 구독: %s → %s", event_type, handler.__qualname__)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        """이벤트 구독 해제"""
        with self._lock:
            try:
                self._handlers[event_type].remove(handler)
            except ValueError:
                logger.warning(
                    "핸들러 미등록: %s → %s", event_type, handler.__qualname__
                )
                return
        logger.debug("EventBus 구독 해제: %s → %s", event_type, handler.__qualname__)

    def emit(self, event: GameEvent) -> None:
        """이벤트 발행. 등록된 핸들러를 동기 호출.

        안전장치:
        1. 전파 깊이 MAX_DEPTH 초과 시 무시
        2. 같은 체인에서 동일 source의 동일 event_type 재발행 시 무시
        핸들러 예외는 로그만 남기고 다음 핸들러로 진행한다.
        """
        chain = self._chain
        if chain.depth >= MAX_DEPTH:
            logger.warning(
                "EventBus 전파 깊이 초과 (%d): %s:%s 무시됨",
                MAX_DEPTH,
                event.source,
                event.event_type,
            )
            return

        chain_key = f"{event.source}:{event.event_type}"
        if chain_key in chain.emitted:
            logger.warning("EventBus 중복 이벤트 차단: %s", chain_key)
            return

        is_root = chain.depth == 0
        chain.emitted.add(chain_key)
        event._depth = chain.depth

        with self._lock:
            handlers = list(self._handlers.get(event.event_type, []))

        try:
            if not handlers:
                logger.debug("EventBus: %s 구독자 없음", event.event_type)
                return

            logger.debug(
                "EventBus 전파: %s (source=%s, depth=%d, handlers=%d)",
                event.event_type,
                event.source,
                chain.depth,
                len(handlers),
            )

            chain.depth += 1
            try:
                for handler in handlers:
                    try:
                        handler(event)
                    except Exception:
                        logger.exception(
                            "EventBus 핸들러 에러: %s (event=%s)",
                            handler.__qualname__,
                            event.event_type,
                        )
            finally:
                chain.depth -= 1
        finally:
            # 최상위 발행이 끝나면 체인 종료
            if is_root:
                chain.emitted.clear()

    def reset_chain(self) -> None:
        """현재 스레드의 체인 상태 강제 초기화."""
        self._chain.emitted.clear()
        self._chain.depth = 0

    def clear(self) -> None:
        """모든 구독 해제 (테스트용)"""
        with self._lock:
            self._handlers.clear()
        self.reset_chain()

    @property
    def handler_count(self) -> int:
        """등록된 총 핸들러 수"""
        with self._lock:
            return sum(len(h) for h in self._handlers.values())
