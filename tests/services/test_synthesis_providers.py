"""Tests for synthesis provider module."""

import threading
from unittest.mock import MagicMock, patch

import pytest
import requests

from src.core.crafting.errors import SynthesisUnavailableError
from src.core.crafting.models import Rarity, WeaponCategory, WeaponStats
from src.services.synthesis import (
    LocalSynthesisProvider,
    RemoteSynthesisProvider,
    SynthesisProvider,
    get_synthesis_provider,
)
from src.services.synthesis.remote import parse_weapon

URL = "http://forge.internal/api/craft"

WEAPON = {
    "name": "Voidrender Blade",
    "type": "sword",
    "category": "swords",
    "description": "A blade forged from the void.",
    "stats": {"attack": 140, "speed": 75, "magic": 75},
    "effects": ["Ignores 30% of enemy armor"],
    "rarity": "legendary",
}


def _response(status_code: int = 200, body=None, json_error: bool = False) -> MagicMock:
    response = MagicMock()
    response.ok = 200 <= status_code < 300
    response.status_code = status_code
    response.text = str(body)
    if json_error:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = body
    return response


def _remote(response=None, error=None) -> tuple[RemoteSynthesisProvider, MagicMock]:
    session = MagicMock()
    if error is not None:
        session.post.side_effect = error
    else:
        session.post.return_value = response
    return RemoteSynthesisProvider(URL, timeout=2.5, session=session), session


class TestLocalSynthesisProvider:
    """Tests for LocalSynthesisProvider class."""

    def test_name_and_availability(self, synthesizer):
        """LocalSynthesisProvider is always available."""
        provider = LocalSynthesisProvider(synthesizer)
        assert provider.name == "local"
        assert provider.is_available() is True

    def test_delegates_to_synthesizer(self, synthesizer):
        """Local output matches the synthesizer exactly."""
        provider = LocalSynthesisProvider(synthesizer)
        consumed = {"iron": 15}
        assert provider.synthesize(WeaponCategory.SNIPERS, consumed) == synthesizer.synthesize(
            WeaponCategory.SNIPERS, consumed
        )


class TestRemoteSynthesisProvider:
    """Tests for RemoteSynthesisProvider class."""

    def test_posts_weapon_type_and_materials(self):
        """Request body and timeout are sent as configured."""
        provider, session = _remote(_response(body={"success": True, "weapon": WEAPON}))

        item = provider.synthesize(WeaponCategory.SWORDS, {"iron": 15})

        session.post.assert_called_once_with(
            URL, json={"weaponType": "swords", "materials": {"iron": 15}}, timeout=2.5
        )
        assert item.name == "Voidrender Blade"
        assert item.stats == WeaponStats(attack=140, speed=75, magic=75)
        assert item.rarity == Rarity.LEGENDARY

    def test_name(self):
        provider, _ = _remote(_response())
        assert provider.name == "remote"

    def test_not_available_without_url(self):
        """An empty URL fails without a network call."""
        session = MagicMock()
        provider = RemoteSynthesisProvider("", session=session)
        assert provider.is_available() is False
        with pytest.raises(SynthesisUnavailableError):
            provider.synthesize(WeaponCategory.SWORDS, {"iron": 15})
        session.post.assert_not_called()

    @pytest.mark.parametrize(
        "error", [requests.Timeout("slow"), requests.ConnectionError("refused")]
    )
    def test_transport_errors(self, error):
        provider, _ = _remote(error=error)
        with pytest.raises(SynthesisUnavailableError):
            provider.synthesize(WeaponCategory.SWORDS, {"iron": 15})

    def test_error_status(self):
        provider, _ = _remote(_response(503, body={"success": False}))
        with pytest.raises(SynthesisUnavailableError, match="503"):
            provider.synthesize(WeaponCategory.SWORDS, {"iron": 15})

    def test_invalid_json(self):
        provider, _ = _remote(_response(json_error=True))
        with pytest.raises(SynthesisUnavailableError):
            provider.synthesize(WeaponCategory.SWORDS, {"iron": 15})

    def test_reported_failure(self):
        provider, _ = _remote(_response(body={"success": False, "error": "forge cold"}))
        with pytest.raises(SynthesisUnavailableError, match="forge cold"):
            provider.synthesize(WeaponCategory.SWORDS, {"iron": 15})

    def test_malformed_weapon(self):
        broken = {k: v for k, v in WEAPON.items() if k != "rarity"}
        provider, _ = _remote(_response(body={"success": True, "weapon": broken}))
        with pytest.raises(SynthesisUnavailableError, match="Malformed"):
            provider.synthesize(WeaponCategory.SWORDS, {"iron": 15})

    @patch("src.services.synthesis.remote.requests.Session")
    def test_session_per_thread(self, mock_session_cls: MagicMock):
        """Without an injected session each worker thread gets its own."""
        mock_session_cls.side_effect = lambda: MagicMock()
        provider = RemoteSynthesisProvider(URL)

        main_session = provider._get_session()
        assert provider._get_session() is main_session

        seen = []
        worker = threading.Thread(target=lambda: seen.append(provider._get_session()))
        worker.start()
        worker.join()

        assert seen[0] is not main_session
        assert mock_session_cls.call_count == 2

    def test_injected_session_shared(self):
        provider, session = _remote(_response())
        seen = []
        worker = threading.Thread(target=lambda: seen.append(provider._get_session()))
        worker.start()
        worker.join()
        assert seen == [session]


class TestParseWeapon:
    """Tests for wire weapon parsing."""

    def test_category_defaults_to_request(self):
        data = {k: v for k, v in WEAPON.items() if k != "category"}
        item = parse_weapon(data, WeaponCategory.SWORDS)
        assert item.category == WeaponCategory.SWORDS
        assert item.effects == ("Ignores 30% of enemy armor",)

    def test_unknown_rarity(self):
        with pytest.raises(ValueError):
            parse_weapon({**WEAPON, "rarity": "mythic"}, WeaponCategory.SWORDS)


class TestSynthesisProviderFactory:
    """Tests for synthesis provider factory."""

    def test_factory_returns_local_by_name(self, synthesizer):
        provider = get_synthesis_provider(synthesizer, "local")
        assert isinstance(provider, SynthesisProvider)
        assert isinstance(provider, LocalSynthesisProvider)

    @patch("src.services.synthesis.factory.settings")
    def test_factory_returns_remote_with_url(self, mock_settings: MagicMock, synthesizer):
        mock_settings.SYNTHESIS_PROVIDER = "remote"
        mock_settings.SYNTHESIS_URL = URL
        mock_settings.SYNTHESIS_TIMEOUT = 1.0

        provider = get_synthesis_provider(synthesizer)

        assert isinstance(provider, RemoteSynthesisProvider)
        assert provider.name == "remote"

    @patch("src.services.synthesis.factory.settings")
    def test_factory_fallback_without_url(self, mock_settings: MagicMock, synthesizer):
        mock_settings.SYNTHESIS_PROVIDER = "remote"
        mock_settings.SYNTHESIS_URL = None

        provider = get_synthesis_provider(synthesizer)

        assert isinstance(provider, LocalSynthesisProvider)

    def test_factory_unknown_name(self, synthesizer):
        assert isinstance(get_synthesis_provider(synthesizer, "gemini"), LocalSynthesisProvider)
