"""무기 합성 - 카테고리 템플릿 + 소비 재료 수 기반 스탯 스케일링

순수 함수. 같은 카테고리와 같은 재료 multiset이면 항상 같은 결과.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from .models import CraftedItem, Material, WeaponCategory, WeaponStats, WeaponTemplate
from .templates import TemplateRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScalingPolicy:
    """재료 1개당 스탯 증가량. 템플릿에 없는 스탯에는 적용하지 않는다."""

    attack_per_material: int = 2
    defense_per_material: int = 1
    speed_per_material: int = 0
    magic_per_material: int = 1

    def apply(self, base: WeaponStats, material_count: int) -> WeaponStats:
        def scaled(value: Optional[int], per_material: int) -> Optional[int]:
            if value is None:
                return None
            return value + per_material * material_count

        return WeaponStats(
            attack=scaled(base.attack, self.attack_per_material),
            defense=scaled(base.defense, self.defense_per_material),
            speed=scaled(base.speed, self.speed_per_material),
            magic=scaled(base.magic, self.magic_per_material),
        )


DEFAULT_SCALING = ScalingPolicy()


def mean_material_level(
    consumed: Mapping[str, int], materials: Optional[Mapping[str, Material]]
) -> float:
    """소비 수량 가중 평균 레벨. 카탈로그 정보가 없으면 0."""
    if not materials:
        return 0.0
    total = 0
    weighted = 0
    for material_id, amount in consumed.items():
        material = materials.get(material_id)
        if material is None:
            continue
        total += amount
        weighted += material.level * amount
    if total == 0:
        return 0.0
    return weighted / total


class WeaponSynthesizer:
    """템플릿 선택 + 스케일링. 상태 없음, 스레드 간 공유 가능."""

    def __init__(
        self, registry: TemplateRegistry, policy: ScalingPolicy = DEFAULT_SCALING
    ) -> None:
        self._registry = registry
        self._policy = policy

    @property
    def policy(self) -> ScalingPolicy:
        return self._policy

    def select_template(
        self,
        category: WeaponCategory,
        consumed: Mapping[str, int],
        materials: Optional[Mapping[str, Material]] = None,
    ) -> WeaponTemplate:
        return self._registry.select(category, mean_material_level(consumed, materials))

    def synthesize(
        self,
        category: WeaponCategory,
        consumed: Mapping[str, int],
        materials: Optional[Mapping[str, Material]] = None,
    ) -> CraftedItem:
        """consumed: {material_id: count}. materials: 카탈로그 레코드 (선택)."""
        template = self.select_template(category, consumed, materials)
        material_count = sum(consumed.values())
        stats = self._policy.apply(template.base_stats, material_count)

        logger.debug(
            "Synthesized %s from %d materials (template=%s)",
            template.name,
            material_count,
            template.template_id,
        )
        return CraftedItem(
            name=template.name,
            category=template.category,
            item_type=template.item_type,
            description=template.description,
            stats=stats,
            effects=template.effects,
            rarity=template.rarity,
        )
