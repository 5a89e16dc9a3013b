"""재료 카탈로그 Service - seed JSON → DB 동기화, 읽기 전용 조회

크래프팅 코어는 재료의 정체성과 개수만 필요하다.
레벨 / 포인트 예산은 합성 시 템플릿 선택에만 쓰인다.
"""

import json
from pathlib import Path
from typing import Iterable, Optional

from sqlalchemy.orm import Session, sessionmaker

from src.core.crafting.errors import UnknownMaterialError
from src.core.crafting.models import Material
from src.core.logging import get_logger
from src.db.models import MaterialModel

logger = get_logger(__name__)


def load_materials_json(path: str | Path) -> list[Material]:
    """seed_materials.json 로드. 잘못된 항목은 경고 후 건너뛴다."""
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        raw_list: list[dict] = json.load(f)

    materials = []
    for raw in raw_list:
        try:
            materials.append(
                Material(
                    material_id=raw["material_id"],
                    name=raw["name"],
                    level=int(raw.get("level", 1)),
                    description=raw.get("description", ""),
                    lore=raw.get("lore", ""),
                    stat_points=int(raw.get("stat_points", 0)),
                    effect_points=int(raw.get("effect_points", 0)),
                    elemental_chance_points=int(raw.get("elemental_chance_points", 0)),
                    elemental_distribution=tuple(
                        float(x) for x in raw.get("elemental_distribution", [])
                    ),
                )
            )
        except (KeyError, ValueError) as e:
            logger.warning(
                "Failed to load material: %s: %s", raw.get("material_id", "?"), e
            )
    return materials


class MaterialCatalog:
    """재료 원형 조회 (읽기 전용)"""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def sync_from_json(self, path: str | Path) -> int:
        """seed 데이터 → DB. 이미 있는 material_id는 건드리지 않는다.
        반환: 새로 추가된 수량.
        """
        materials = load_materials_json(path)
        count = 0
        with self._session_factory() as db, db.begin():
            for material in materials:
                if db.get(MaterialModel, material.material_id) is None:
                    db.add(self._to_orm(material))
                    count += 1
        logger.info("Synced %d materials to DB", count)
        return count

    def get(self, material_id: str) -> Optional[Material]:
        with self._session_factory() as db:
            orm = db.get(MaterialModel, material_id)
            return self._to_core(orm) if orm is not None else None

    def get_many(self, material_ids: Iterable[str]) -> dict[str, Material]:
        """존재하는 재료만 반환."""
        ids = sorted(set(material_ids))
        if not ids:
            return {}
        with self._session_factory() as db:
            rows = (
                db.query(MaterialModel).filter(MaterialModel.material_id.in_(ids)).all()
            )
            return {r.material_id: self._to_core(r) for r in rows}

    def require_all(self, material_ids: Iterable[str]) -> dict[str, Material]:
        """모두 존재해야 한다. 없는 ID가 있으면 UnknownMaterialError."""
        ids = sorted(set(material_ids))
        found = self.get_many(ids)
        missing = [m for m in ids if m not in found]
        if missing:
            raise UnknownMaterialError(missing)
        return found

    def count(self) -> int:
        with self._session_factory() as db:
            return db.query(MaterialModel).count()

    # === ORM ↔ Core 변환 ===

    def _to_core(self, orm: MaterialModel) -> Material:
        return Material(
            material_id=orm.material_id,
            name=orm.name,
            level=orm.level,
            description=orm.description or "",
            lore=orm.lore or "",
            stat_points=orm.stat_points,
            effect_points=orm.effect_points,
            elemental_chance_points=orm.elemental_chance_points,
            elemental_distribution=tuple(orm.elemental_distribution or ()),
        )

    def _to_orm(self, core: Material) -> MaterialModel:
        return MaterialModel(
            material_id=core.material_id,
            name=core.name,
            description=core.description,
            lore=core.lore,
            level=core.level,
            stat_points=core.stat_points,
            effect_points=core.effect_points,
            elemental_chance_points=core.elemental_chance_points,
            elemental_distribution=list(core.elemental_distribution),
        )
