"""Application configuration loaded from environment variables and .env file."""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DATA_DIR = Path(__file__).resolve().parent / "data"


class Settings(BaseSettings):
    """Application settings.

    Values are loaded from environment variables first,
    then from a .env file in the project root as fallback.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    DATABASE_URL: str = "sqlite:///./dev.db"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Crafting rules
    REQUIRED_MATERIAL_COUNT: int = 15

    # Synthesis scaling (per consumed material)
    ATTACK_PER_MATERIAL: int = 2
    DEFENSE_PER_MATERIAL: int = 1
    MAGIC_PER_MATERIAL: int = 1
    SPEED_PER_MATERIAL: int = 0

    # Seed data
    TEMPLATES_PATH: str = str(DATA_DIR / "weapon_templates.json")
    MATERIALS_PATH: str = str(DATA_DIR / "seed_materials.json")

    # Synthesis provider settings
    SYNTHESIS_PROVIDER: str = "local"
    SYNTHESIS_URL: Optional[str] = None
    SYNTHESIS_TIMEOUT: float = 5.0

    # Seconds to wait for an owner's ledger lock before reporting busy
    LEDGER_LOCK_TIMEOUT: float = 5.0


settings = Settings()
