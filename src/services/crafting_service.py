"""크래프팅 트랜잭션 Service - 검증 → 차감 → 합성 → 커밋 또는 보상

상태 흐름:
    received → validating → invalid
                          → deducting → insufficient_material
                                      → synthesizing → committed
                                                     → synthesis_failed → compensating → rolled_back

차감 이후 실패(예외, 취소 포함)는 반드시 재적립으로 보상한 뒤 호출자에게 전달한다.
"""

import uuid
from typing import Mapping, Optional

from src.core.crafting.errors import SynthesisUnavailableError
from src.core.crafting.grid import GridValidator
from src.core.crafting.models import (
    CraftOutcome,
    CraftRequest,
    CraftStatus,
    Material,
    ServiceUnavailable,
    TransactionState,
)
from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.logging import get_logger
from src.services.catalog_service import MaterialCatalog
from src.services.ledger_service import InventoryLedger
from src.services.synthesis.base import SynthesisProvider

logger = get_logger(__name__)

SOURCE = "crafting_service"


class CraftingService:
    """크래프팅 오케스트레이터. 요청마다 독립 트랜잭션."""

    def __init__(
        self,
        validator: GridValidator,
        ledger: InventoryLedger,
        provider: SynthesisProvider,
        event_bus: EventBus,
        catalog: Optional[MaterialCatalog] = None,
    ):
        self._validator = validator
        self._ledger = ledger
        self._provider = provider
        self._bus = event_bus
        self._catalog = catalog

    def execute(self, owner_id: str, request: CraftRequest) -> CraftOutcome:
        """크래프팅 1회 실행.

        구조 위반 / 재료 부족 / 합성 장애는 CraftOutcome으로 반환.
        카탈로그에 없는 재료는 UnknownMaterialError (원장 접근 전).
        그 외 예외는 보상 후 그대로 전파.
        """
        outcome = CraftOutcome(
            transaction_id=str(uuid.uuid4()),
            status=CraftStatus.INVALID_GRID,
            states=[TransactionState.RECEIVED],
        )

        # 1. 그리드 검증
        outcome.states.append(TransactionState.VALIDATING)
        verdict = self._validator.validate(request.grid)
        if not verdict.valid:
            outcome.states.append(TransactionState.INVALID)
            outcome.reason = verdict.violation
            logger.info(
                "Craft %s rejected for %s: %s",
                outcome.transaction_id,
                owner_id,
                verdict.violation.detail,
            )
            self._emit_rejected(owner_id, outcome)
            return outcome

        # 2. 필요 multiset + 카탈로그 확인
        required = request.grid.material_counts()
        materials = self._lookup_materials(required)

        # 3. 원자적 차감
        outcome.states.append(TransactionState.DEDUCTING)
        result = self._ledger.check_and_deduct(owner_id, required)
        if not result.committed:
            outcome.states.append(TransactionState.INSUFFICIENT_MATERIAL)
            outcome.status = CraftStatus.INSUFFICIENT_MATERIAL
            outcome.reason = result.shortfall
            outcome.owner_quantities = result.quantities
            self._emit_rejected(owner_id, outcome)
            return outcome

        # 4. 합성
        outcome.states.append(TransactionState.SYNTHESIZING)
        try:
            item = self._provider.synthesize(request.category, required, materials)
        except SynthesisUnavailableError as e:
            outcome.owner_quantities = self._roll_back(owner_id, required, outcome)
            outcome.status = CraftStatus.SERVICE_UNAVAILABLE
            outcome.reason = ServiceUnavailable(detail=str(e))
            return outcome
        except BaseException:
            logger.exception(
                "Craft %s: unexpected synthesis failure", outcome.transaction_id
            )
            self._roll_back(owner_id, required, outcome)
            raise

        # 5. 커밋
        outcome.states.append(TransactionState.COMMITTED)
        outcome.status = CraftStatus.COMMITTED
        outcome.item = item
        outcome.consumed = dict(required)
        outcome.owner_quantities = result.quantities

        self._bus.emit(
            GameEvent(
                event_type=EventTypes.CRAFT_COMMITTED,
                data={
                    "transaction_id": outcome.transaction_id,
                    "owner_id": owner_id,
                    "category": request.category.value,
                    "item_name": item.name,
                    "consumed": dict(required),
                },
                source=SOURCE,
            )
        )
        logger.info(
            "Crafted %s (%s) for %s with %d materials [%s]",
            item.name,
            request.category.value,
            owner_id,
            sum(required.values()),
            outcome.transaction_id,
        )
        return outcome

    def _lookup_materials(
        self, required: Mapping[str, int]
    ) -> Optional[dict[str, Material]]:
        if self._catalog is None:
            return None
        return self._catalog.require_all(required)

    def _roll_back(
        self, owner_id: str, deducted: Mapping[str, int], outcome: CraftOutcome
    ) -> dict[str, int]:
        """보상: 차감분 재적립. 반환: 복구된 수량."""
        outcome.states.append(TransactionState.SYNTHESIS_FAILED)
        outcome.states.append(TransactionState.COMPENSATING)
        logger.warning(
            "Craft %s: synthesis failed, re-crediting %s to %s",
            outcome.transaction_id,
            dict(deducted),
            owner_id,
        )
        try:
            quantities = self._ledger.recredit(owner_id, deducted)
        except BaseException:
            logger.critical(
                "Craft %s: compensation failed, %s stranded for %s",
                outcome.transaction_id,
                dict(deducted),
                owner_id,
                exc_info=True,
            )
            raise
        outcome.states.append(TransactionState.ROLLED_BACK)

        self._bus.emit(
            GameEvent(
                event_type=EventTypes.CRAFT_ROLLED_BACK,
                data={
                    "transaction_id": outcome.transaction_id,
                    "owner_id": owner_id,
                    "materials": dict(deducted),
                },
                source=SOURCE,
            )
        )
        return quantities

    def _emit_rejected(self, owner_id: str, outcome: CraftOutcome) -> None:
        self._bus.emit(
            GameEvent(
                event_type=EventTypes.CRAFT_REJECTED,
                data={
                    "transaction_id": outcome.transaction_id,
                    "owner_id": owner_id,
                    "reason": outcome.status.value,
                },
                source=SOURCE,
            )
        )
