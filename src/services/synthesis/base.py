"""Abstract base class for synthesis providers."""

from abc import ABC, abstractmethod
from typing import Mapping, Optional

from src.core.crafting.models import CraftedItem, Material, WeaponCategory


class SynthesisProvider(ABC):
    """Abstract base class for synthesis providers.

    A provider turns a weapon category and the consumed material multiset
    into a crafted item. Providers backed by an external process raise
    ``SynthesisUnavailableError`` when that process cannot answer.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider name."""
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider is available and configured."""
        ...

    @abstractmethod
    def synthesize(
        self,
        category: WeaponCategory,
        consumed: Mapping[str, int],
        materials: Optional[Mapping[str, Material]] = None,
    ) -> CraftedItem:
        """Produce the crafted item.

        Args:
            category: Weapon category, already validated at request parsing.
            consumed: Material multiset taken from the grid ({id: count}).
            materials: Optional catalog records for the consumed ids.

        Returns:
            The crafted item.
        """
        ...
