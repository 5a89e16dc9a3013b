"""Factory for creating synthesis provider instances."""

from typing import Optional

from src.config import settings
from src.core.crafting.synthesis import WeaponSynthesizer
from src.core.logging import get_logger
from src.services.synthesis.base import SynthesisProvider
from src.services.synthesis.local import LocalSynthesisProvider
from src.services.synthesis.remote import RemoteSynthesisProvider

logger = get_logger(__name__)


def get_synthesis_provider(
    synthesizer: WeaponSynthesizer, provider_name: Optional[str] = None
) -> SynthesisProvider:
    """Get a synthesis provider instance.

    Args:
        synthesizer: Local synthesizer, used directly or as the fallback.
        provider_name: Optional provider name. If not specified,
                      uses SYNTHESIS_PROVIDER from config.

    Returns:
        A SynthesisProvider instance.
    """
    name = provider_name or settings.SYNTHESIS_PROVIDER

    if name == "local":
        logger.debug("Using LocalSynthesisProvider")
        return LocalSynthesisProvider(synthesizer)

    if name == "remote":
        if settings.SYNTHESIS_URL:
            return RemoteSynthesisProvider(
                url=settings.SYNTHESIS_URL, timeout=settings.SYNTHESIS_TIMEOUT
            )
        logger.warning("SYNTHESIS_URL not set, falling back to LocalSynthesisProvider")
        return LocalSynthesisProvider(synthesizer)

    logger.warning("Unknown provider '%s', falling back to LocalSynthesisProvider", name)
    return LocalSynthesisProvider(synthesizer)
