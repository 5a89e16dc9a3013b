"""크래프팅 도메인 예외

구조 위반(그리드)과 재료 부족은 예외가 아니라 결과 값(GridVerdict, LedgerResult)으로 반환한다.
여기 정의된 예외는 입력 검증 실패, 일시적 의존성 장애, 계약 위반만 표현한다.
"""


class CraftingError(Exception):
    """크래프팅 예외 공통 base"""


class UnknownCategoryError(CraftingError, ValueError):
    """등록되지 않은 무기 카테고리 - 요청 파싱 단계에서 걸러졌어야 함"""

    def __init__(self, category: str) -> None:
        super().__init__(f"Unknown weapon category: {category}")
        self.category = category


class UnknownMaterialError(CraftingError, ValueError):
    """카탈로그에 없는 재료 ID - 입력 검증 에러"""

    def __init__(self, material_ids: list[str]) -> None:
        super().__init__(f"Unknown materials: {', '.join(material_ids)}")
        self.material_ids = material_ids


class SynthesisUnavailableError(CraftingError, RuntimeError):
    """합성 백엔드 장애. 재시도 가능."""


class LedgerBusyError(CraftingError, RuntimeError):
    """소유자 원장 락 획득 시간 초과. 변경 없음, 재시도 가능."""

    def __init__(self, owner_id: str, timeout: float) -> None:
        super().__init__(
            f"Ledger for owner {owner_id} is busy (waited {timeout:.1f}s)"
        )
        self.owner_id = owner_id
        self.timeout = timeout
