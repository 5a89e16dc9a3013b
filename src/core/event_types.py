"""이벤트 유형 상수

크래프팅 트랜잭션과 재료 원장이 발행하는 이벤트.
"""


class EventTypes:
    """이벤트 유형 문자열 상수"""

    # crafting_service
    CRAFT_COMMITTED = "craft_committed"
    CRAFT_REJECTED = "craft_rejected"
    CRAFT_ROLLED_BACK = "craft_rolled_back"

    # ledger_service
    MATERIALS_DEDUCTED = "materials_deducted"
    MATERIALS_RECREDITED = "materials_recredited"
    MATERIAL_ADDED = "material_added"
    OWNER_CREATED = "owner_created"
