"""크래프팅 도메인 모델 (DB 무관)"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence, Union

GRID_SIZE = 9  # 9x9 고정, 중심 (4, 4)

Position = tuple[int, int]  # (row, col)


# ── 셀 ──────────────────────────────────────────────────


@dataclass(frozen=True)
class EmptyCell:
    """빈 칸"""

    @property
    def is_empty(self) -> bool:
        return True


@dataclass(frozen=True)
class OccupiedCell:
    """재료가 놓인 칸"""

    material_id: str

    def __post_init__(self) -> None:
        if not self.material_id:
            raise ValueError("material_id must be a non-empty string")

    @property
    def is_empty(self) -> bool:
        return False


Cell = Union[EmptyCell, OccupiedCell]

EMPTY = EmptyCell()


def cell_from_wire(value: Optional[str]) -> Cell:
    """와이어 표현(nullable 문자열) → Cell. None만 빈 칸."""
    if value is None:
        return EMPTY
    return OccupiedCell(value)


# ── 그리드 ──────────────────────────────────────────────


@dataclass(frozen=True)
class Grid:
    """N×N 불변 그리드. 요청마다 생성되고 트랜잭션 후 버려진다."""

    cells: tuple[tuple[Cell, ...], ...]

    def __post_init__(self) -> None:
        size = len(self.cells)
        if size == 0:
            raise ValueError("Grid must have at least one row")
        for row in self.cells:
            if len(row) != size:
                raise ValueError(f"Grid must be square: expected {size} columns")

    @classmethod
    def from_rows(
        cls, rows: Sequence[Sequence[Optional[str]]], size: int = GRID_SIZE
    ) -> "Grid":
        """nullable 문자열 2차원 배열 → Grid. 크기가 다르면 ValueError."""
        if len(rows) != size:
            raise ValueError(f"Grid must have {size} rows, got {len(rows)}")
        parsed = []
        for r, row in enumerate(rows):
            if len(row) != size:
                raise ValueError(
                    f"Grid row {r} must have {size} cells, got {len(row)}"
                )
            parsed.append(tuple(cell_from_wire(value) for value in row))
        return cls(cells=tuple(parsed))

    @classmethod
    def from_placements(
        cls, placements: dict[Position, str], size: int = GRID_SIZE
    ) -> "Grid":
        """{(row, col): material_id} → Grid. 테스트/도구용 편의 생성자."""
        rows: list[list[Optional[str]]] = [[None] * size for _ in range(size)]
        for (r, c), material_id in placements.items():
            rows[r][c] = material_id
        return cls.from_rows(rows, size=size)

    @property
    def size(self) -> int:
        return len(self.cells)

    @property
    def center(self) -> Position:
        return (self.size // 2, self.size // 2)

    def cell(self, row: int, col: int) -> Cell:
        return self.cells[row][col]

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size

    def is_occupied(self, row: int, col: int) -> bool:
        return not self.cells[row][col].is_empty

    def occupied_positions(self) -> list[Position]:
        """행 우선 순서의 점유 좌표 목록"""
        return [
            (r, c)
            for r, row in enumerate(self.cells)
            for c, cell in enumerate(row)
            if not cell.is_empty
        ]

    def material_counts(self) -> dict[str, int]:
        """점유 칸의 재료 multiset."""
        counts: Counter[str] = Counter()
        for row in self.cells:
            for cell in row:
                if isinstance(cell, OccupiedCell):
                    counts[cell.material_id] += 1
        return dict(counts)

    def to_rows(self) -> list[list[Optional[str]]]:
        return [
            [cell.material_id if isinstance(cell, OccupiedCell) else None for cell in row]
            for row in self.cells
        ]


# ── 카테고리 / 등급 ─────────────────────────────────────


class WeaponCategory(str, Enum):
    """출력 무기 카테고리 (닫힌 집합)"""

    SWORDS = "swords"
    STAVES = "staves"
    SHIELDS = "shields"
    SNIPERS = "snipers"


class Rarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"

    @property
    def rank(self) -> int:
        """0(common) ~ 4(legendary)"""
        return list(Rarity).index(self)


# ── 재료 카탈로그 레코드 ────────────────────────────────


@dataclass(frozen=True)
class Material:
    """카탈로그 재료 원형 - 불변. seed_materials.json에서 로드."""

    material_id: str
    name: str
    level: int = 1
    description: str = ""
    lore: str = ""

    # 포인트 예산
    stat_points: int = 0
    effect_points: int = 0
    elemental_chance_points: int = 0
    elemental_distribution: tuple[float, ...] = ()


# ── 무기 ────────────────────────────────────────────────


STAT_FIELDS = ("attack", "defense", "speed", "magic")


@dataclass(frozen=True)
class WeaponStats:
    """템플릿에 정의된 필드만 값을 가진다. None = 해당 스탯 없음."""

    attack: Optional[int] = None
    defense: Optional[int] = None
    speed: Optional[int] = None
    magic: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict[str, int]) -> "WeaponStats":
        unknown = set(data) - set(STAT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown stat fields: {sorted(unknown)}")
        return cls(**{k: int(v) for k, v in data.items()})

    def to_dict(self) -> dict[str, int]:
        return {
            name: getattr(self, name)
            for name in STAT_FIELDS
            if getattr(self, name) is not None
        }


@dataclass(frozen=True)
class WeaponTemplate:
    """카테고리별 무기 원형 - 불변. weapon_templates.json에서 로드."""

    template_id: str
    category: WeaponCategory
    item_type: str  # "sword", "staff", ...
    name: str
    description: str
    base_stats: WeaponStats
    effects: tuple[str, ...] = ()
    rarity: Rarity = Rarity.COMMON
    min_level: int = 0  # 소비 재료 평균 레벨 하한


@dataclass(frozen=True)
class CraftedItem:
    """합성 결과물. 코어는 저장하지 않고 반환만 한다."""

    name: str
    category: WeaponCategory
    item_type: str
    description: str
    stats: WeaponStats
    effects: tuple[str, ...]
    rarity: Rarity

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.item_type,
            "category": self.category.value,
            "description": self.description,
            "stats": self.stats.to_dict(),
            "effects": list(self.effects),
            "rarity": self.rarity.value,
        }


# ── 요청 / 결과 ─────────────────────────────────────────


@dataclass(frozen=True)
class CraftRequest:
    grid: Grid
    category: WeaponCategory


class GridRule(str, Enum):
    """그리드 규칙 - 평가 우선순위 순서"""

    COUNT = "count"
    CENTER = "center"
    CONNECTIVITY = "connectivity"


@dataclass(frozen=True)
class InvalidGrid:
    rule: GridRule
    detail: str
    occupied_count: int

    code = "invalid_grid"


@dataclass(frozen=True)
class InsufficientMaterial:
    material_id: str
    required: int
    available: int

    code = "insufficient_material"

    @property
    def shortfall(self) -> int:
        return self.required - self.available


@dataclass(frozen=True)
class ServiceUnavailable:
    detail: str

    code = "service_unavailable"


Rejection = Union[InvalidGrid, InsufficientMaterial, ServiceUnavailable]


@dataclass(frozen=True)
class GridVerdict:
    occupied_count: int
    violation: Optional[InvalidGrid] = None

    @property
    def valid(self) -> bool:
        return self.violation is None


@dataclass(frozen=True)
class LedgerResult:
    """check_and_deduct 결과. committed=False면 어떤 수량도 바뀌지 않았다."""

    committed: bool
    quantities: dict[str, int]
    shortfall: Optional[InsufficientMaterial] = None


class CraftStatus(str, Enum):
    COMMITTED = "committed"
    INVALID_GRID = "invalid_grid"
    INSUFFICIENT_MATERIAL = "insufficient_material"
    SERVICE_UNAVAILABLE = "service_unavailable"


class TransactionState(str, Enum):
    RECEIVED = "received"
    VALIDATING = "validating"
    INVALID = "invalid"
    DEDUCTING = "deducting"
    INSUFFICIENT_MATERIAL = "insufficient_material"
    SYNTHESIZING = "synthesizing"
    COMMITTED = "committed"
    SYNTHESIS_FAILED = "synthesis_failed"
    COMPENSATING = "compensating"
    ROLLED_BACK = "rolled_back"


TERMINAL_STATES = frozenset(
    {
        TransactionState.INVALID,
        TransactionState.INSUFFICIENT_MATERIAL,
        TransactionState.COMMITTED,
        TransactionState.ROLLED_BACK,
    }
)


@dataclass
class CraftOutcome:
    """트랜잭션 결과. committed이면 item/consumed, 아니면 reason."""

    transaction_id: str
    status: CraftStatus
    item: Optional[CraftedItem] = None
    consumed: dict[str, int] = field(default_factory=dict)
    reason: Optional[Rejection] = None
    states: list[TransactionState] = field(default_factory=list)
    owner_quantities: dict[str, int] = field(default_factory=dict)

    @property
    def committed(self) -> bool:
        return self.status == CraftStatus.COMMITTED

    @property
    def final_state(self) -> Optional[TransactionState]:
        return self.states[-1] if self.states else None
