"""테스트 공용 헬퍼 - 그리드 모양, 테스트용 합성 provider"""

import threading
import time
from typing import Mapping, Optional

from src.core.crafting.errors import SynthesisUnavailableError
from src.core.crafting.models import GRID_SIZE, CraftedItem, Grid, Material, WeaponCategory
from src.services.synthesis.base import SynthesisProvider

CENTER = (GRID_SIZE // 2, GRID_SIZE // 2)


# ── 그리드 모양 ──────────────────────────────────────────


def cross_positions() -> list[tuple[int, int]]:
    """중심 행 전체(9) + 중심 열 6칸 = 15칸, 중심 포함, 연결."""
    row = [(4, c) for c in range(GRID_SIZE)]
    col = [(r, 4) for r in (1, 2, 3, 5, 6, 7)]
    return row + col


def split_positions() -> list[tuple[int, int]]:
    """중심 행 9칸 + 맨 윗줄 6칸 = 15칸, 중심 포함, 두 덩어리."""
    return [(4, c) for c in range(GRID_SIZE)] + [(0, c) for c in range(6)]


def corner_positions() -> list[tuple[int, int]]:
    """윗줄 9칸 + 둘째 줄 6칸 = 15칸, 연결, 중심 없음."""
    return [(0, c) for c in range(GRID_SIZE)] + [(1, c) for c in range(6)]


def make_grid(
    positions: list[tuple[int, int]],
    material_id: str = "iron",
    materials: Optional[list[str]] = None,
) -> Grid:
    """positions 순서대로 materials를 배치 (없으면 전부 material_id)."""
    placements = {}
    for i, pos in enumerate(positions):
        placements[pos] = materials[i] if materials else material_id
    return Grid.from_placements(placements)


# ── 합성 provider 대역 ───────────────────────────────────


class FailingProvider(SynthesisProvider):
    """지정한 예외를 던지는 provider"""

    def __init__(self, error: BaseException) -> None:
        self._error = error
        self.calls = 0

    @property
    def name(self) -> str:
        return "failing"

    def is_available(self) -> bool:
        return False

    def synthesize(
        self,
        category: WeaponCategory,
        consumed: Mapping[str, int],
        materials: Optional[Mapping[str, Material]] = None,
    ) -> CraftedItem:
        self.calls += 1
        raise self._error


class SlowProvider(SynthesisProvider):
    """inner에 위임하기 전에 delay초 대기. 동시 실행 겹침 유도용."""

    def __init__(self, inner: SynthesisProvider, delay: float = 0.05) -> None:
        self._inner = inner
        self._delay = delay
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "slow"

    def is_available(self) -> bool:
        return True

    def synthesize(
        self,
        category: WeaponCategory,
        consumed: Mapping[str, int],
        materials: Optional[Mapping[str, Material]] = None,
    ) -> CraftedItem:
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(self._delay)
            return self._inner.synthesize(category, consumed, materials)
        finally:
            with self._lock:
                self.active -= 1


def unavailable() -> FailingProvider:
    return FailingProvider(SynthesisUnavailableError("Crafting service unavailable"))
