"""Synthesis provider that calls a crafting service over HTTP."""

import threading
from typing import Any, Mapping, Optional

import requests

from src.core.crafting.errors import SynthesisUnavailableError
from src.core.crafting.models import (
    CraftedItem,
    Material,
    Rarity,
    WeaponCategory,
    WeaponStats,
)
from src.core.logging import get_logger
from src.services.synthesis.base import SynthesisProvider

logger = get_logger(__name__)


class RemoteSynthesisProvider(SynthesisProvider):
    """POSTs ``{"weaponType", "materials"}`` to a crafting service.

    Every call is bounded by ``timeout`` seconds so that a transaction
    waiting on it can always compensate in bounded time.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize the remote provider.

        Args:
            url: Full URL of the crafting endpoint (e.g. ``http://host/api/craft``).
            timeout: Connect/read timeout in seconds.
            session: Optional requests session shared by all callers (tests).
                Without one, each worker thread gets its own session.
        """
        self._url = url
        self._timeout = timeout
        self._shared_session = session
        self._local = threading.local()
        logger.info("RemoteSynthesisProvider targeting %s", self._url)

    @property
    def name(self) -> str:
        """Return the provider name."""
        return "remote"

    def is_available(self) -> bool:
        """Check if the provider is configured."""
        return bool(self._url)

    def synthesize(
        self,
        category: WeaponCategory,
        consumed: Mapping[str, int],
        materials: Optional[Mapping[str, Material]] = None,
    ) -> CraftedItem:
        """Call the crafting service.

        Raises:
            SynthesisUnavailableError: On transport failure, non-2xx status,
                an unsuccessful body or an unparseable weapon.
        """
        if not self.is_available():
            raise SynthesisUnavailableError("Remote synthesis URL is not configured")

        payload = {"weaponType": category.value, "materials": dict(consumed)}
        try:
            response = self._get_session().post(self._url, json=payload, timeout=self._timeout)
        except requests.RequestException as e:
            logger.error("Failed to call crafting service: %s", e)
            raise SynthesisUnavailableError("Crafting service unavailable") from e

        if not response.ok:
            logger.error(
                "Crafting service error: %s %s", response.status_code, response.text
            )
            raise SynthesisUnavailableError(
                f"Crafting service returned {response.status_code}"
            )

        try:
            body = response.json()
        except ValueError as e:
            raise SynthesisUnavailableError("Crafting service returned invalid JSON") from e

        if not body.get("success") or not isinstance(body.get("weapon"), dict):
            raise SynthesisUnavailableError(
                body.get("error") or "Crafting service reported failure"
            )

        try:
            return parse_weapon(body["weapon"], category)
        except (KeyError, TypeError, ValueError) as e:
            raise SynthesisUnavailableError(f"Malformed weapon from crafting service: {e}") from e

    def _get_session(self) -> requests.Session:
        """Return the injected session, or this thread's own session."""
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
        return session


def parse_weapon(data: dict[str, Any], category: WeaponCategory) -> CraftedItem:
    """Wire weapon dict → CraftedItem."""
    return CraftedItem(
        name=data["name"],
        category=WeaponCategory(data.get("category", category.value)),
        item_type=data["type"],
        description=data.get("description", ""),
        stats=WeaponStats.from_dict(data.get("stats", {})),
        effects=tuple(data.get("effects", [])),
        rarity=Rarity(data["rarity"]),
    )
