"""Synthesis provider module."""

from src.services.synthesis.base import SynthesisProvider
from src.services.synthesis.factory import get_synthesis_provider
from src.services.synthesis.local import LocalSynthesisProvider
from src.services.synthesis.remote import RemoteSynthesisProvider

__all__ = [
    "SynthesisProvider",
    "LocalSynthesisProvider",
    "RemoteSynthesisProvider",
    "get_synthesis_provider",
]
