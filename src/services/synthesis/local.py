"""In-process synthesis provider."""

from typing import Mapping, Optional

from src.core.crafting.models import CraftedItem, Material, WeaponCategory
from src.core.crafting.synthesis import WeaponSynthesizer
from src.services.synthesis.base import SynthesisProvider


class LocalSynthesisProvider(SynthesisProvider):
    """Runs the deterministic WeaponSynthesizer in the calling thread.

    Never fails for a registered category.
    """

    def __init__(self, synthesizer: WeaponSynthesizer) -> None:
        self._synthesizer = synthesizer

    @property
    def name(self) -> str:
        """Return the provider name."""
        return "local"

    def is_available(self) -> bool:
        """Check if the provider is available."""
        return True

    def synthesize(
        self,
        category: WeaponCategory,
        consumed: Mapping[str, int],
        materials: Optional[Mapping[str, Material]] = None,
    ) -> CraftedItem:
        return self._synthesizer.synthesize(category, consumed, materials)
