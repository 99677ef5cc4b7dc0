"""
Client for the remote style-suggestion service.

The service looks at the image and proposes a background (a CSS color or
gradient) and a shadow intensity. It is strictly optional: any failure
leaves the current settings untouched.
"""
from __future__ import annotations

import base64
import logging
from typing import Any, Optional

import requests

from domain.models import BackgroundType, LayoutSettings, StyleSuggestion
from settings import settings as app_settings

logger = logging.getLogger(__name__)

SHADOW_MIN = 0.0
SHADOW_MAX = 100.0


def parse_suggestion(data: Any) -> Optional[StyleSuggestion]:
    """Validate a service response body; None when it is unusable."""
    if not isinstance(data, dict):
        return None
    background = data.get("background")
    shadow = data.get("shadow")
    if not isinstance(background, str) or not background.strip():
        return None
    if isinstance(shadow, bool) or not isinstance(shadow, (int, float)):
        return None
    return StyleSuggestion(background=background.strip(), shadow=float(shadow))


class StyleSuggestionClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or app_settings.STYLE_SUGGEST_URL or "").rstrip("/")
        self.api_key = api_key if api_key is not None else app_settings.STYLE_SUGGEST_API_KEY
        self.timeout = timeout if timeout is not None else app_settings.STYLE_SUGGEST_TIMEOUT
        self.session = session or requests.Session()
        self.logger = logging.getLogger(__name__)

    @property
    def configured(self) -> bool:
        return bool(self.base_url)

    def suggest(self, image_bytes: bytes, mime_type: str = "image/png") -> Optional[StyleSuggestion]:
        """
        Ask the service for a style. Returns None on any failure.
        """
        if not self.configured:
            self.logger.info("style suggestion skipped: STYLE_SUGGEST_URL not set")
            return None

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        body = {
            "image": base64.b64encode(image_bytes).decode("ascii"),
            "mime_type": mime_type,
        }
        try:
            resp = self.session.post(self.base_url, json=body, headers=headers, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as exc:
            self.logger.warning("style suggestion request failed: %s", exc)
            return None
        except ValueError:
            self.logger.warning("style suggestion returned a non-JSON body")
            return None

        suggestion = parse_suggestion(data)
        if suggestion is None:
            self.logger.warning("style suggestion response missing background/shadow: %r", data)
        return suggestion


def apply_style_suggestion(current: LayoutSettings, suggestion: StyleSuggestion) -> LayoutSettings:
    """Adopt the suggested background and shadow; everything else is kept."""
    shadow = min(max(suggestion.shadow, SHADOW_MIN), SHADOW_MAX)
    return current.updated(
        background=suggestion.background,
        background_type=BackgroundType.AI,
        shadow=shadow,
    )


_default_client: Optional[StyleSuggestionClient] = None


def get_default_style_client() -> StyleSuggestionClient:
    global _default_client
    if _default_client is None:
        _default_client = StyleSuggestionClient()
    return _default_client
