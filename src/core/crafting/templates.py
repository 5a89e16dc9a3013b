"""무기 템플릿 저장소 - JSON 로드, 카테고리별 조회"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from .errors import UnknownCategoryError
from .models import Rarity, WeaponCategory, WeaponStats, WeaponTemplate

logger = logging.getLogger(__name__)


class TemplateRegistry:
    """
    무기 템플릿 저장소.
    카테고리 → 템플릿 목록 (min_level 오름차순). 프로세스 시작 시 1회 로드.
    """

    def __init__(self) -> None:
        self._templates: dict[WeaponCategory, list[WeaponTemplate]] = {}

    def load_from_json(self, path: str | Path) -> int:
        """weapon_templates.json 로드. 반환: 로드된 수량.

        JSON 배열의 각 객체를 WeaponTemplate으로 변환.
        category / rarity는 문자열 → enum, stats는 dict → WeaponStats.
        """
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            raw_list: list[dict] = json.load(f)

        count = 0
        for raw in raw_list:
            try:
                template = WeaponTemplate(
                    template_id=raw["template_id"],
                    category=WeaponCategory(raw["category"]),
                    item_type=raw["type"],
                    name=raw["name"],
                    description=raw.get("description", ""),
                    base_stats=WeaponStats.from_dict(raw.get("stats", {})),
                    effects=tuple(raw.get("effects", [])),
                    rarity=Rarity(raw.get("rarity", "common")),
                    min_level=int(raw.get("min_level", 0)),
                )
                self.register(template)
                count += 1
            except (KeyError, ValueError) as e:
                logger.warning(
                    "Failed to load template: %s: %s", raw.get("template_id", "?"), e
                )

        logger.info("Loaded %d weapon templates from %s", count, path)
        return count

    def register(self, template: WeaponTemplate) -> None:
        """템플릿 등록. 같은 template_id가 있으면 경고 후 교체."""
        bucket = self._templates.setdefault(template.category, [])
        for i, existing in enumerate(bucket):
            if existing.template_id == template.template_id:
                logger.warning("Overwriting existing template: %s", template.template_id)
                del bucket[i]
                break
        bucket.append(template)
        bucket.sort(key=lambda t: (t.min_level, t.template_id))

    def templates_for(self, category: WeaponCategory) -> list[WeaponTemplate]:
        """카테고리 템플릿 목록. 없으면 UnknownCategoryError."""
        bucket = self._templates.get(category)
        if not bucket:
            raise UnknownCategoryError(getattr(category, "value", str(category)))
        return list(bucket)

    def select(self, category: WeaponCategory, level: float = 0.0) -> WeaponTemplate:
        """level 이하 min_level 중 최대인 템플릿. 해당 없으면 최저 템플릿."""
        bucket = self.templates_for(category)
        chosen = bucket[0]
        for template in bucket:
            if template.min_level <= level:
                chosen = template
        return chosen

    def get(self, template_id: str) -> Optional[WeaponTemplate]:
        for bucket in self._templates.values():
            for template in bucket:
                if template.template_id == template_id:
                    return template
        return None

    def categories(self) -> list[WeaponCategory]:
        return [c for c in WeaponCategory if self._templates.get(c)]

    def count(self) -> int:
        """등록된 템플릿 수."""
        return sum(len(b) for b in self._templates.values())
