"""그리드 검증 테스트: 개수 / 중심 / 연결성 + 무작위 패턴 대조"""

from __future__ import annotations

import random

import pytest

from src.core.crafting.grid import (
    GridValidator,
    REQUIRED_MATERIAL_COUNT,
    count_components,
    is_connected,
)
from src.core.crafting.models import (
    EMPTY,
    GRID_SIZE,
    Grid,
    GridRule,
    OccupiedCell,
)
from tests.helpers import (
    CENTER,
    corner_positions,
    cross_positions,
    make_grid,
    split_positions,
)


def _oracle_valid(occupied: set[tuple[int, int]]) -> bool:
    """재귀 flood-fill 기준 판정"""
    if len(occupied) != REQUIRED_MATERIAL_COUNT or CENTER not in occupied:
        return False

    seen: set[tuple[int, int]] = set()

    def fill(r: int, c: int) -> None:
        if (r, c) in seen or (r, c) not in occupied:
            return
        seen.add((r, c))
        fill(r + 1, c)
        fill(r - 1, c)
        fill(r, c + 1)
        fill(r, c - 1)

    fill(*next(iter(occupied)))
    return seen == occupied


def _random_walk_shape(rng: random.Random, size: int) -> set[tuple[int, int]]:
    """연결된 모양을 키우다가 가끔 떨어진 칸을 섞는다."""
    start = (rng.randrange(GRID_SIZE), rng.randrange(GRID_SIZE))
    shape = {start}
    while len(shape) < size:
        if rng.random() < 0.1:
            shape.add((rng.randrange(GRID_SIZE), rng.randrange(GRID_SIZE)))
            continue
        r, c = rng.choice(sorted(shape))
        dr, dc = rng.choice([(1, 0), (-1, 0), (0, 1), (0, -1)])
        nr, nc = r + dr, c + dc
        if 0 <= nr < GRID_SIZE and 0 <= nc < GRID_SIZE:
            shape.add((nr, nc))
    return shape


# ── Grid 모델 ────────────────────────────────────────────────


class TestGridModel:
    def test_from_rows_maps_none_to_empty(self) -> None:
        rows = [[None] * GRID_SIZE for _ in range(GRID_SIZE)]
        rows[4][4] = "iron"
        grid = Grid.from_rows(rows)
        assert grid.cell(0, 0) is EMPTY
        assert grid.cell(4, 4) == OccupiedCell("iron")
        assert grid.center == (4, 4)

    def test_wrong_row_count_rejected(self) -> None:
        with pytest.raises(ValueError):
            Grid.from_rows([[None] * GRID_SIZE for _ in range(GRID_SIZE - 1)])

    def test_ragged_row_rejected(self) -> None:
        rows = [[None] * GRID_SIZE for _ in range(GRID_SIZE)]
        rows[3] = [None] * (GRID_SIZE + 1)
        with pytest.raises(ValueError):
            Grid.from_rows(rows)

    def test_empty_material_id_rejected(self) -> None:
        rows = [[None] * GRID_SIZE for _ in range(GRID_SIZE)]
        rows[0][0] = ""
        with pytest.raises(ValueError):
            Grid.from_rows(rows)

    def test_material_counts(self) -> None:
        positions = cross_positions()
        materials = ["iron"] * 10 + ["oak"] * 5
        grid = make_grid(positions, materials=materials)
        assert grid.material_counts() == {"iron": 10, "oak": 5}

    def test_to_rows_round_trip(self) -> None:
        grid = make_grid(cross_positions())
        assert Grid.from_rows(grid.to_rows()) == grid


# ── 개별 규칙 ────────────────────────────────────────────────


class TestCountRule:
    def test_empty_grid(self, validator: GridValidator) -> None:
        verdict = validator.validate(make_grid([]))
        assert not verdict.valid
        assert verdict.violation.rule == GridRule.COUNT
        assert verdict.occupied_count == 0

    def test_fourteen_reports_actual_count(self, validator: GridValidator) -> None:
        verdict = validator.validate(make_grid(cross_positions()[:14]))
        assert verdict.violation.rule == GridRule.COUNT
        assert verdict.violation.occupied_count == 14
        assert "got 14" in verdict.violation.detail

    def test_sixteen_rejected(self, validator: GridValidator) -> None:
        verdict = validator.validate(make_grid(cross_positions() + [(3, 3)]))
        assert verdict.violation.rule == GridRule.COUNT
        assert verdict.occupied_count == 16

    def test_count_checked_before_center(self, validator: GridValidator) -> None:
        verdict = validator.validate(make_grid([(0, 0)]))
        assert verdict.violation.rule == GridRule.COUNT


class TestCenterRule:
    def test_connected_without_center(self, validator: GridValidator) -> None:
        verdict = validator.validate(make_grid(corner_positions()))
        assert not verdict.valid
        assert verdict.violation.rule == GridRule.CENTER

    def test_disconnected_without_center_reports_center(
        self, validator: GridValidator
    ) -> None:
        positions = [(0, c) for c in range(GRID_SIZE)] + [(8, c) for c in range(6)]
        verdict = validator.validate(make_grid(positions))
        assert verdict.violation.rule == GridRule.CENTER


class TestConnectivityRule:
    def test_split_shape_with_center(self, validator: GridValidator) -> None:
        verdict = validator.validate(make_grid(split_positions()))
        assert not verdict.valid
        assert verdict.violation.rule == GridRule.CONNECTIVITY
        assert "2 groups" in verdict.violation.detail

    def test_diagonal_is_not_adjacent(self, validator: GridValidator) -> None:
        positions = cross_positions()
        positions.remove((1, 4))
        positions.append((1, 3))  # (2,4)와 대각선으로만 닿음
        verdict = validator.validate(make_grid(positions))
        assert verdict.violation.rule == GridRule.CONNECTIVITY

    def test_cross_is_valid(self, validator: GridValidator) -> None:
        verdict = validator.validate(make_grid(cross_positions()))
        assert verdict.valid
        assert verdict.violation is None
        assert verdict.occupied_count == 15

    def test_materials_do_not_matter(self, validator: GridValidator) -> None:
        mixed = ["iron", "oak", "void_dust"] * 5
        a = validator.validate(make_grid(cross_positions(), materials=mixed))
        b = validator.validate(make_grid(cross_positions(), material_id="oak"))
        assert a == b


class TestConnectivityHelpers:
    def test_empty_set_does_not_crash(self) -> None:
        assert is_connected([]) is True
        assert count_components([]) == 0

    def test_single_cell(self) -> None:
        assert is_connected([(2, 2)])

    def test_two_components(self) -> None:
        assert count_components([(0, 0), (0, 1), (5, 5)]) == 2


class TestCustomCount:
    def test_required_count_configurable(self) -> None:
        validator = GridValidator(required_count=3)
        grid = make_grid([(4, 3), (4, 4), (4, 5)])
        assert validator.validate(grid).valid

    def test_invalid_required_count(self) -> None:
        with pytest.raises(ValueError):
            GridValidator(required_count=0)


# ── 무작위 패턴 대조 ─────────────────────────────────────────


class TestAgainstFloodFillOracle:
    @pytest.mark.parametrize("seed", range(5))
    def test_random_patterns_match_oracle(
        self, validator: GridValidator, seed: int
    ) -> None:
        rng = random.Random(seed)
        for _ in range(200):
            size = rng.choice([0, 1, 13, 14, 15, 15, 15, 16, 20])
            shape = _random_walk_shape(rng, size) if size else set()
            if rng.random() < 0.5 and len(shape) == 15 and CENTER not in shape:
                # 중심 포함 케이스 비율 확보
                shape.discard(next(iter(sorted(shape))))
                shape.add(CENTER)
            verdict = validator.validate(make_grid(sorted(shape)))
            assert verdict.valid == _oracle_valid(shape), sorted(shape)

    def test_validation_is_stable(self, validator: GridValidator) -> None:
        grid = make_grid(split_positions())
        assert validator.validate(grid) == validator.validate(grid)
