"""Crafting API endpoints.

The caller's identity arrives pre-authenticated in the ``X-Owner-Id`` header;
this service never verifies tokens.
"""

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from src.api.schemas import (
    AddMaterialRequest,
    AddMaterialResponse,
    CraftRequestBody,
    CraftResponse,
    ErrorResponse,
    InitUserRequest,
    InitUserResponse,
    InventoryItem,
    InventoryResponse,
    MaterialInfo,
    SynthRequestBody,
    SynthResponse,
    WeaponInfo,
)
from src.config import settings
from src.core.crafting.errors import LedgerBusyError, UnknownMaterialError
from src.core.crafting.models import (
    CraftedItem,
    CraftRequest,
    CraftStatus,
    Grid,
    InsufficientMaterial,
    InvalidGrid,
    Material,
)
from src.core.crafting.ledger import validate_multiset
from src.core.crafting.synthesis import WeaponSynthesizer
from src.core.logging import get_logger
from src.services.catalog_service import MaterialCatalog
from src.services.crafting_service import CraftingService
from src.services.ledger_service import InventoryLedger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["crafting"])


def get_owner_id(x_owner_id: str = Header(..., alias="X-Owner-Id")) -> str:
    """인증된 소유자 ID (외부 신원 제공자가 주입)"""
    owner_id = x_owner_id.strip()
    if not owner_id:
        raise HTTPException(status_code=401, detail="No owner id provided")
    return owner_id


def get_crafting_service(request: Request) -> CraftingService:
    """CraftingService 인스턴스 반환 (의존성 주입)"""
    service: CraftingService = request.app.state.crafting_service
    return service


def get_ledger(request: Request) -> InventoryLedger:
    """InventoryLedger 인스턴스 반환 (의존성 주입)"""
    ledger: InventoryLedger = request.app.state.ledger
    return ledger


def get_catalog(request: Request) -> MaterialCatalog:
    """MaterialCatalog 인스턴스 반환 (의존성 주입)"""
    catalog: MaterialCatalog = request.app.state.catalog
    return catalog


def get_synthesizer(request: Request) -> WeaponSynthesizer:
    """WeaponSynthesizer 인스턴스 반환 (의존성 주입)"""
    synthesizer: WeaponSynthesizer = request.app.state.synthesizer
    return synthesizer


def _build_weapon_info(item: CraftedItem) -> WeaponInfo:
    return WeaponInfo(**item.to_dict())


def _build_material_info(material: Material) -> MaterialInfo:
    """클라이언트에 공개 가능한 필드만"""
    return MaterialInfo(
        id=material.material_id,
        name=material.name,
        description=material.description,
        level=material.level,
    )


def _error(status_code: int, reason: str, error: str, **extra) -> HTTPException:
    detail = {"success": False, "reason": reason, "error": error}
    detail.update(extra)
    return HTTPException(status_code=status_code, detail=detail)


@router.post(
    "/craft-request",
    response_model=CraftResponse,
    responses={
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
def craft_request(
    body: CraftRequestBody,
    owner_id: str = Depends(get_owner_id),
    service: CraftingService = Depends(get_crafting_service),
) -> CraftResponse:
    """
    크래프팅 실행

    그리드 검증 → 재료 원자적 차감 → 무기 합성.
    실패 시 어떤 규칙/재료가 문제인지 구조화된 사유를 반환합니다.
    """
    try:
        grid = Grid.from_rows(body.grid)
    except ValueError as e:
        raise _error(400, "invalid_request", str(e))

    try:
        outcome = service.execute(owner_id, CraftRequest(grid=grid, category=body.weaponType))
    except UnknownMaterialError as e:
        raise _error(400, "unknown_material", str(e), material_ids=e.material_ids)
    except LedgerBusyError as e:
        raise _error(409, "ledger_busy", str(e))

    if outcome.status == CraftStatus.COMMITTED:
        return CraftResponse(
            success=True,
            transaction_id=outcome.transaction_id,
            weapon=_build_weapon_info(outcome.item),
            consumed=outcome.consumed,
        )

    reason = outcome.reason
    if isinstance(reason, InvalidGrid):
        raise _error(
            400,
            reason.code,
            reason.detail,
            rule=reason.rule.value,
            occupied_count=reason.occupied_count,
        )
    if isinstance(reason, InsufficientMaterial):
        raise _error(
            400,
            reason.code,
            f"Insufficient materials: need {reason.required} of "
            f"{reason.material_id}, have {reason.available}",
            material_id=reason.material_id,
            required=reason.required,
            available=reason.available,
        )
    raise _error(503, "service_unavailable", "Crafting service unavailable")


@router.post(
    "/craft",
    response_model=SynthResponse,
    responses={400: {"model": ErrorResponse}},
)
def craft(
    body: SynthRequestBody,
    synthesizer: WeaponSynthesizer = Depends(get_synthesizer),
) -> SynthResponse:
    """
    상태 없는 무기 합성

    원장을 건드리지 않습니다. 원격 합성 백엔드로 사용됩니다.
    """
    try:
        validate_multiset(body.materials)
    except ValueError as e:
        raise _error(400, "invalid_request", str(e))

    material_count = sum(body.materials.values())
    if material_count != settings.REQUIRED_MATERIAL_COUNT:
        raise _error(
            400,
            "invalid_request",
            f"Crafting requires exactly {settings.REQUIRED_MATERIAL_COUNT} "
            f"materials, got {material_count}",
        )

    item = synthesizer.synthesize(body.weaponType, body.materials)
    logger.info("Synthesized %s with %d materials", item.name, material_count)
    return SynthResponse(success=True, weapon=_build_weapon_info(item))


@router.get("/inventory", response_model=InventoryResponse)
def get_inventory(
    owner_id: str = Depends(get_owner_id),
    ledger: InventoryLedger = Depends(get_ledger),
    catalog: MaterialCatalog = Depends(get_catalog),
) -> InventoryResponse:
    """
    인벤토리 조회

    소유자가 없으면 빈 인벤토리로 생성합니다. 카탈로그에 없는 재료는 생략합니다.
    """
    try:
        ledger.ensure_owner(owner_id)
    except LedgerBusyError as e:
        raise _error(409, "ledger_busy", str(e))

    quantities = ledger.get_quantities(owner_id)
    materials = catalog.get_many(quantities)

    items = [
        InventoryItem(material=_build_material_info(materials[mid]), quantity=qty)
        for mid, qty in sorted(quantities.items())
        if mid in materials
    ]
    return InventoryResponse(inventory=items)


@router.post(
    "/add-material",
    response_model=AddMaterialResponse,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def add_material(
    body: AddMaterialRequest,
    owner_id: str = Depends(get_owner_id),
    ledger: InventoryLedger = Depends(get_ledger),
    catalog: MaterialCatalog = Depends(get_catalog),
) -> AddMaterialResponse:
    """
    재료 적립

    지정한 재료를 지정 수량만큼 인벤토리에 추가합니다.
    """
    try:
        quantity = ledger.replenish(owner_id, body.material_id, body.amount)
    except UnknownMaterialError as e:
        raise _error(400, "unknown_material", str(e), material_ids=e.material_ids)
    except LedgerBusyError as e:
        raise _error(409, "ledger_busy", str(e))

    material = catalog.get(body.material_id)
    return AddMaterialResponse(
        success=True, material=_build_material_info(material), quantity=quantity
    )


@router.post("/init-user", response_model=InitUserResponse)
def init_user(
    body: InitUserRequest,
    owner_id: str = Depends(get_owner_id),
    ledger: InventoryLedger = Depends(get_ledger),
) -> InitUserResponse:
    """
    소유자 초기화

    레코드가 없을 때만 빈 인벤토리로 생성합니다.
    """
    try:
        created = ledger.ensure_owner(
            owner_id, email=body.email, display_name=body.display_name
        )
    except LedgerBusyError as e:
        raise _error(409, "ledger_busy", str(e))

    message = "User initialized" if created else "User already initialized"
    return InitUserResponse(success=True, message=message, userId=owner_id)
