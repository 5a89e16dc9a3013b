"""재료 원장 계산 - 순수 함수 + 소유자별 락 테이블

수량 dict는 {material_id: quantity > 0} 형태. 0 수량 항목은 존재하지 않는다.
저장소 접근은 services.ledger_service가 담당한다.
"""

from __future__ import annotations

import logging
import threading
import weakref
from collections import Counter
from contextlib import contextmanager
from typing import Iterable, Iterator, Mapping, Optional

from .errors import LedgerBusyError
from .models import InsufficientMaterial

logger = logging.getLogger(__name__)


def count_required(material_ids: Iterable[str]) -> dict[str, int]:
    """재료 ID 나열 → multiset"""
    return dict(Counter(material_ids))


def validate_multiset(required: Mapping[str, int]) -> None:
    """모든 수량이 양의 정수인지. 아니면 ValueError."""
    for material_id, amount in required.items():
        if not material_id:
            raise ValueError("material_id must be a non-empty string")
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 1:
            raise ValueError(
                f"quantity for {material_id} must be a positive integer, got {amount!r}"
            )


def find_shortfall(
    quantities: Mapping[str, int], required: Mapping[str, int]
) -> Optional[InsufficientMaterial]:
    """처음 부족한 재료. material_id 정렬 순서로 검사해 결과가 결정적이다."""
    for material_id in sorted(required):
        needed = required[material_id]
        available = quantities.get(material_id, 0)
        if available < needed:
            return InsufficientMaterial(
                material_id=material_id, required=needed, available=available
            )
    return None


def apply_deduction(
    quantities: Mapping[str, int], required: Mapping[str, int]
) -> dict[str, int]:
    """차감 후 새 수량 dict. 0이 된 재료는 제거.

    부족한 재료가 있으면 ValueError - 호출 전에 find_shortfall로 확인할 것.
    """
    shortfall = find_shortfall(quantities, required)
    if shortfall is not None:
        raise ValueError(
            f"Cannot deduct {shortfall.required} of {shortfall.material_id}: "
            f"only {shortfall.available} available"
        )

    updated = dict(quantities)
    for material_id, amount in required.items():
        remaining = updated[material_id] - amount
        if remaining == 0:
            del updated[material_id]
        else:
            updated[material_id] = remaining
    return updated


def apply_credit(
    quantities: Mapping[str, int], credited: Mapping[str, int]
) -> dict[str, int]:
    """적립 후 새 수량 dict. apply_deduction의 역연산."""
    updated = dict(quantities)
    for material_id, amount in credited.items():
        updated[material_id] = updated.get(material_id, 0) + amount
    return updated


class OwnerLockTable:
    """소유자별 상호배제 구간.

    같은 소유자에 대한 check-and-deduct / 재적립 / 보충을 직렬화한다.
    서로 다른 소유자는 경합하지 않는다.
    락은 누군가 잡고 있거나 기다리는 동안에만 테이블에 남는다.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._guard = threading.Lock()

    def lock_for(self, owner_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(owner_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[owner_id] = lock
            return lock

    @contextmanager
    def hold(self, owner_id: str, timeout: Optional[float] = None) -> Iterator[None]:
        """owner_id 락 획득. timeout 초과 시 LedgerBusyError.

        timeout=None이면 무기한 대기 (보상 경로 전용).
        """
        lock = self.lock_for(owner_id)
        if timeout is None:
            acquired = lock.acquire()
        else:
            acquired = lock.acquire(timeout=timeout)
        if not acquired:
            logger.warning("Ledger lock timeout: owner=%s (%.1fs)", owner_id, timeout)
            raise LedgerBusyError(owner_id, timeout)
        try:
            yield
        finally:
            lock.release()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
