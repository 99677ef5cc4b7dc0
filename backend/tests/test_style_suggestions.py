"""
Tests for the style suggestion client.

Run with: pytest tests/test_style_suggestions.py -v
"""
import base64
from unittest.mock import MagicMock

import pytest
import requests

from domain.models import DEFAULT_SETTINGS, BackgroundType, StyleSuggestion
from services.style_suggestions import (
    StyleSuggestionClient,
    apply_style_suggestion,
    parse_suggestion,
)
from settings import settings as app_settings


def _session_returning(payload=None, exc=None, json_exc=None):
    session = MagicMock()
    if exc is not None:
        session.post.side_effect = exc
        return session
    response = MagicMock()
    response.raise_for_status.return_value = None
    if json_exc is not None:
        response.json.side_effect = json_exc
    else:
        response.json.return_value = payload
    session.post.return_value = response
    return session


class TestParseSuggestion:
    def test_valid(self):
        assert parse_suggestion({"background": " #fff ", "shadow": 30}) == StyleSuggestion("#fff", 30.0)

    @pytest.mark.parametrize(
        "data",
        [
            None,
            [],
            {"background": "#fff"},
            {"shadow": 10},
            {"background": "", "shadow": 10},
            {"background": "#fff", "shadow": "10"},
            {"background": "#fff", "shadow": True},
        ],
    )
    def test_invalid(self, data):
        assert parse_suggestion(data) is None


class TestClient:
    def test_posts_image_and_parses(self):
        session = _session_returning({"background": "linear-gradient(#000, #fff)", "shadow": 55})
        client = StyleSuggestionClient("https://style.example/api/", api_key="k", timeout=5, session=session)

        suggestion = client.suggest(b"\x89PNG", "image/png")

        assert suggestion == StyleSuggestion("linear-gradient(#000, #fff)", 55.0)
        args, kwargs = session.post.call_args
        assert args[0] == "https://style.example/api"
        assert kwargs["json"]["image"] == base64.b64encode(b"\x89PNG").decode("ascii")
        assert kwargs["json"]["mime_type"] == "image/png"
        assert kwargs["headers"]["Authorization"] == "Bearer k"
        assert kwargs["timeout"] == 5

    def test_unconfigured_skips_request(self, monkeypatch):
        monkeypatch.setattr(app_settings, "STYLE_SUGGEST_URL", None)
        session = MagicMock()
        client = StyleSuggestionClient(session=session)
        assert not client.configured
        assert client.suggest(b"data") is None
        session.post.assert_not_called()

    def test_network_error(self):
        session = _session_returning(exc=requests.ConnectionError("down"))
        client = StyleSuggestionClient("https://style.example", session=session)
        assert client.suggest(b"data") is None

    def test_http_error(self):
        session = _session_returning({"background": "#fff", "shadow": 1})
        session.post.return_value.raise_for_status.side_effect = requests.HTTPError("500")
        client = StyleSuggestionClient("https://style.example", session=session)
        assert client.suggest(b"data") is None

    def test_non_json_body(self):
        session = _session_returning(json_exc=ValueError("no json"))
        client = StyleSuggestionClient("https://style.example", session=session)
        assert client.suggest(b"data") is None

    def test_incomplete_body(self):
        session = _session_returning({"background": "#fff"})
        client = StyleSuggestionClient("https://style.example", session=session)
        assert client.suggest(b"data") is None


class TestApply:
    def test_sets_background_and_shadow(self):
        updated = apply_style_suggestion(DEFAULT_SETTINGS, StyleSuggestion("#123456", 70))
        assert updated.background == "#123456"
        assert updated.background_type == BackgroundType.AI
        assert updated.shadow == 70
        assert updated.padding == DEFAULT_SETTINGS.padding

    def test_shadow_clamped(self):
        assert apply_style_suggestion(DEFAULT_SETTINGS, StyleSuggestion("#fff", 140)).shadow == 100
        assert apply_style_suggestion(DEFAULT_SETTINGS, StyleSuggestion("#fff", -3)).shadow == 0
