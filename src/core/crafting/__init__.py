"""크래프팅 Core - 순수 Python, DB 무관"""

from .errors import (
    CraftingError,
    LedgerBusyError,
    SynthesisUnavailableError,
    UnknownCategoryError,
    UnknownMaterialError,
)
from .grid import GridValidator, REQUIRED_MATERIAL_COUNT, is_connected
from .ledger import OwnerLockTable, apply_credit, apply_deduction, find_shortfall
from .models import (
    EMPTY,
    GRID_SIZE,
    CraftedItem,
    CraftOutcome,
    CraftRequest,
    CraftStatus,
    EmptyCell,
    Grid,
    GridRule,
    GridVerdict,
    InsufficientMaterial,
    InvalidGrid,
    LedgerResult,
    Material,
    OccupiedCell,
    Rarity,
    ServiceUnavailable,
    TransactionState,
    WeaponCategory,
    WeaponStats,
    WeaponTemplate,
)
from .synthesis import DEFAULT_SCALING, ScalingPolicy, WeaponSynthesizer
from .templates import TemplateRegistry

__all__ = [
    "CraftingError",
    "LedgerBusyError",
    "SynthesisUnavailableError",
    "UnknownCategoryError",
    "UnknownMaterialError",
    "GridValidator",
    "REQUIRED_MATERIAL_COUNT",
    "is_connected",
    "OwnerLockTable",
    "apply_credit",
    "apply_deduction",
    "find_shortfall",
    "EMPTY",
    "GRID_SIZE",
    "CraftedItem",
    "CraftOutcome",
    "CraftRequest",
    "CraftStatus",
    "EmptyCell",
    "Grid",
    "GridRule",
    "GridVerdict",
    "InsufficientMaterial",
    "InvalidGrid",
    "LedgerResult",
    "Material",
    "OccupiedCell",
    "Rarity",
    "ServiceUnavailable",
    "TransactionState",
    "WeaponCategory",
    "WeaponStats",
    "WeaponTemplate",
    "DEFAULT_SCALING",
    "ScalingPolicy",
    "WeaponSynthesizer",
    "TemplateRegistry",
]
