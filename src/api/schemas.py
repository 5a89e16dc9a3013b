"""API request/response schemas."""

from typing import Optional

from pydantic import BaseModel, Field

from src.core.crafting.models import GRID_SIZE, WeaponCategory


# === Request Schemas ===


class CraftRequestBody(BaseModel):
    """크래프팅 요청"""

    grid: list[list[Optional[str]]] = Field(
        ...,
        min_length=GRID_SIZE,
        max_length=GRID_SIZE,
        description=f"{GRID_SIZE}x{GRID_SIZE} 배열, 빈 칸은 null",
    )
    weaponType: WeaponCategory = Field(..., description="무기 카테고리")


class SynthRequestBody(BaseModel):
    """상태 없는 합성 요청 (원격 합성 백엔드용)"""

    weaponType: WeaponCategory
    materials: dict[str, int] = Field(..., description="{material_id: count}")


class AddMaterialRequest(BaseModel):
    """재료 적립 요청"""

    material_id: str = Field(..., min_length=1)
    amount: int = Field(1, ge=1, le=999)


class InitUserRequest(BaseModel):
    """소유자 초기화 요청"""

    email: str = ""
    display_name: str = ""


# === Response Schemas ===


class WeaponInfo(BaseModel):
    """제작된 무기"""

    name: str
    type: str
    category: str
    description: str
    stats: dict[str, int]
    effects: list[str]
    rarity: str


class CraftResponse(BaseModel):
    """크래프팅 성공 응답"""

    success: bool
    transaction_id: str
    weapon: WeaponInfo
    consumed: dict[str, int]


class SynthResponse(BaseModel):
    success: bool
    weapon: WeaponInfo


class MaterialInfo(BaseModel):
    """공개 가능한 재료 정보"""

    id: str
    name: str
    description: str
    level: int


class InventoryItem(BaseModel):
    material: MaterialInfo
    quantity: int


class InventoryResponse(BaseModel):
    inventory: list[InventoryItem] = []


class AddMaterialResponse(BaseModel):
    success: bool
    material: MaterialInfo
    quantity: int


class InitUserResponse(BaseModel):
    success: bool
    message: str
    userId: str


class ErrorResponse(BaseModel):
    """에러 응답"""

    success: bool = False
    reason: str
    error: str
