"""재료 원장 Service - 소유자별 수량 저장 + 원자적 check-and-deduct

소유자 단위 락(OwnerLockTable) 안에서 단일 DB 트랜잭션으로 읽고 쓴다.
소유자 레코드와 항목은 with_for_update()로 읽어, 행 잠금을 지원하는
백엔드에서는 프로세스 간에도 직렬화된다.
"""

from typing import Mapping, Optional

from sqlalchemy.orm import Session, sessionmaker

from src.core.crafting.errors import UnknownMaterialError
from src.core.crafting.ledger import (
    OwnerLockTable,
    apply_credit,
    apply_deduction,
    find_shortfall,
    validate_multiset,
)
from src.core.crafting.models import LedgerResult
from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.logging import get_logger
from src.db.models import InventoryEntryModel, MaterialModel, OwnerModel

logger = get_logger(__name__)

SOURCE = "ledger_service"


class InventoryLedger:
    """소유자별 재료 수량 원장"""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        event_bus: EventBus,
        locks: Optional[OwnerLockTable] = None,
        lock_timeout: float = 5.0,
    ):
        self._session_factory = session_factory
        self._bus = event_bus
        self._locks = locks if locks is not None else OwnerLockTable()
        self._lock_timeout = lock_timeout

    # === 소유자 ===

    def ensure_owner(
        self, owner_id: str, email: str = "", display_name: str = ""
    ) -> bool:
        """소유자 레코드가 없으면 빈 인벤토리로 생성. 반환: 새로 생성 여부."""
        with self._locks.hold(owner_id, self._lock_timeout):
            with self._session_factory() as db, db.begin():
                if self._get_owner(db, owner_id) is not None:
                    return False
                db.add(
                    OwnerModel(owner_id=owner_id, email=email, display_name=display_name)
                )

        self._bus.emit(
            GameEvent(
                event_type=EventTypes.OWNER_CREATED,
                data={"owner_id": owner_id},
                source=SOURCE,
            )
        )
        logger.info("Created owner record for %s", owner_id)
        return True

    def owner_exists(self, owner_id: str) -> bool:
        with self._session_factory() as db:
            return self._get_owner(db, owner_id) is not None

    # === 조회 ===

    def get_quantities(self, owner_id: str) -> dict[str, int]:
        """{material_id: quantity}. 소유자가 없으면 빈 dict."""
        with self._session_factory() as db:
            rows = self._load_entries(db, owner_id)
            return {r.material_id: r.quantity for r in rows}

    # === check-and-deduct ===

    def check_and_deduct(
        self, owner_id: str, required: Mapping[str, int]
    ) -> LedgerResult:
        """전부 충분하면 전부 차감, 하나라도 부족하면 아무것도 바꾸지 않는다.

        락 대기가 lock_timeout을 넘으면 LedgerBusyError (변경 없음).
        """
        validate_multiset(required)

        with self._locks.hold(owner_id, self._lock_timeout):
            with self._session_factory() as db, db.begin():
                self._get_owner(db, owner_id, for_update=True)
                rows = self._load_entries(db, owner_id, for_update=True)
                quantities = {r.material_id: r.quantity for r in rows}

                shortfall = find_shortfall(quantities, required)
                if shortfall is not None:
                    logger.info(
                        "Deduct rejected for %s: need %d of %s, have %d",
                        owner_id,
                        shortfall.required,
                        shortfall.material_id,
                        shortfall.available,
                    )
                    return LedgerResult(
                        committed=False, quantities=quantities, shortfall=shortfall
                    )

                updated = apply_deduction(quantities, required)
                self._write_entries(db, owner_id, rows, updated, required)

        self._bus.emit(
            GameEvent(
                event_type=EventTypes.MATERIALS_DEDUCTED,
                data={"owner_id": owner_id, "materials": dict(required)},
                source=SOURCE,
            )
        )
        logger.debug("Deducted %s from %s", dict(required), owner_id)
        return LedgerResult(committed=True, quantities=updated)

    # === 보상 (재적립) ===

    def recredit(self, owner_id: str, deducted: Mapping[str, int]) -> dict[str, int]:
        """차감된 multiset을 그대로 되돌린다. 반환: 재적립 후 수량.

        보상 경로이므로 락을 시간 제한 없이 기다린다.
        """
        validate_multiset(deducted)

        with self._locks.hold(owner_id):
            with self._session_factory() as db, db.begin():
                if self._get_owner(db, owner_id, for_update=True) is None:
                    db.add(OwnerModel(owner_id=owner_id))
                    db.flush()
                rows = self._load_entries(db, owner_id, for_update=True)
                quantities = {r.material_id: r.quantity for r in rows}
                updated = apply_credit(quantities, deducted)
                self._write_entries(db, owner_id, rows, updated, deducted)

        self._bus.emit(
            GameEvent(
                event_type=EventTypes.MATERIALS_RECREDITED,
                data={"owner_id": owner_id, "materials": dict(deducted)},
                source=SOURCE,
            )
        )
        logger.info("Re-credited %s to %s", dict(deducted), owner_id)
        return updated

    # === 보충 ===

    def replenish(self, owner_id: str, material_id: str, amount: int = 1) -> int:
        """재료 적립 (카탈로그에 있는 재료만). 소유자가 없으면 생성. 반환: 새 수량."""
        validate_multiset({material_id: amount})

        with self._locks.hold(owner_id, self._lock_timeout):
            with self._session_factory() as db, db.begin():
                if db.get(MaterialModel, material_id) is None:
                    raise UnknownMaterialError([material_id])
                if self._get_owner(db, owner_id, for_update=True) is None:
                    db.add(OwnerModel(owner_id=owner_id))
                    db.flush()
                rows = self._load_entries(db, owner_id, for_update=True)
                quantities = {r.material_id: r.quantity for r in rows}
                updated = apply_credit(quantities, {material_id: amount})
                self._write_entries(db, owner_id, rows, updated, {material_id: amount})

        self._bus.emit(
            GameEvent(
                event_type=EventTypes.MATERIAL_ADDED,
                data={
                    "owner_id": owner_id,
                    "material_id": material_id,
                    "amount": amount,
                },
                source=SOURCE,
            )
        )
        logger.debug("Added %d x %s to %s", amount, material_id, owner_id)
        return updated[material_id]

    # === DB 헬퍼 ===

    def _get_owner(
        self, db: Session, owner_id: str, for_update: bool = False
    ) -> Optional[OwnerModel]:
        q = db.query(OwnerModel).filter(OwnerModel.owner_id == owner_id)
        if for_update:
            q = q.with_for_update()
        return q.first()

    def _load_entries(
        self, db: Session, owner_id: str, for_update: bool = False
    ) -> list[InventoryEntryModel]:
        q = db.query(InventoryEntryModel).filter(
            InventoryEntryModel.owner_id == owner_id
        )
        if for_update:
            q = q.with_for_update()
        return q.all()

    def _write_entries(
        self,
        db: Session,
        owner_id: str,
        rows: list[InventoryEntryModel],
        updated: Mapping[str, int],
        touched: Mapping[str, int],
    ) -> None:
        """touched 재료만 반영. updated에 없는 재료는 행 삭제 (0 수량 금지)."""
        by_material = {r.material_id: r for r in rows}
        for material_id in touched:
            row = by_material.get(material_id)
            new_quantity = updated.get(material_id, 0)
            if new_quantity == 0:
                if row is not None:
                    db.delete(row)
            elif row is None:
                db.add(
                    InventoryEntryModel(
                        owner_id=owner_id,
                        material_id=material_id,
                        quantity=new_quantity,
                    )
                )
            else:
                row.quantity = new_quantity
