"""그리드 구조 검증 - 개수 / 중심 / 연결성

순수 함수. 어떤 재료가 놓였는지가 아니라 점유 패턴만 본다.
규칙은 고정 우선순위로 평가하며 처음 실패한 규칙이 사유가 된다.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Iterable

from .models import Grid, GridRule, GridVerdict, InvalidGrid, Position

logger = logging.getLogger(__name__)

REQUIRED_MATERIAL_COUNT = 15

# 4방향 인접 (대각선 제외)
NEIGHBOR_OFFSETS: tuple[Position, ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))


def neighbors(position: Position) -> Iterable[Position]:
    row, col = position
    for dr, dc in NEIGHBOR_OFFSETS:
        yield (row + dr, col + dc)


def is_connected(positions: Iterable[Position]) -> bool:
    """점유 좌표 집합이 4-인접 기준 단일 연결 요소인지. BFS.

    빈 집합은 True (판정할 요소 없음).
    """
    occupied = set(positions)
    if not occupied:
        return True

    start = next(iter(occupied))
    visited = {start}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for nxt in neighbors(current):
            if nxt in occupied and nxt not in visited:
                visited.add(nxt)
                queue.append(nxt)

    return len(visited) == len(occupied)


def count_components(positions: Iterable[Position]) -> int:
    """연결 요소 수. 연결성 위반 사유 메시지용."""
    remaining = set(positions)
    components = 0
    while remaining:
        components += 1
        queue = deque([remaining.pop()])
        while queue:
            current = queue.popleft()
            for nxt in neighbors(current):
                if nxt in remaining:
                    remaining.remove(nxt)
                    queue.append(nxt)
    return components


class GridValidator:
    """그리드 판정기. 상태 없음, 스레드 간 공유 가능."""

    def __init__(self, required_count: int = REQUIRED_MATERIAL_COUNT) -> None:
        if required_count < 1:
            raise ValueError(f"required_count must be >= 1, got {required_count}")
        self.required_count = required_count

    def validate(self, grid: Grid) -> GridVerdict:
        """개수 → 중심 → 연결성 순서로 판정."""
        positions = grid.occupied_positions()
        count = len(positions)

        if count != self.required_count:
            return self._reject(
                GridRule.COUNT,
                f"Crafting requires exactly {self.required_count} materials, got {count}",
                count,
            )

        if not grid.is_occupied(*grid.center):
            row, col = grid.center
            return self._reject(
                GridRule.CENTER,
                f"Center cell ({row}, {col}) must hold a material",
                count,
            )

        if not is_connected(positions):
            components = count_components(positions)
            return self._reject(
                GridRule.CONNECTIVITY,
                f"Materials must form one connected shape, found {components} groups",
                count,
            )

        return GridVerdict(occupied_count=count)

    def _reject(self, rule: GridRule, detail: str, count: int) -> GridVerdict:
        logger.debug("Grid rejected (%s): %s", rule.value, detail)
        return GridVerdict(
            occupied_count=count,
            violation=InvalidGrid(rule=rule, detail=detail, occupied_count=count),
        )
