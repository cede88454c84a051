# providers/libre.py
import logging

import requests

from autotranslate.providers.base import BaseProvider
from autotranslate.providers.models import (
    AVAILABILITY_TIMEOUT_SECONDS,
    DEFAULT_LIBRE_URL,
    LIBRE,
    ProviderConfig,
)

logger = logging.getLogger(__name__)


class LibreTranslateProvider(BaseProvider):
    """Motor autoalojado (o la instancia pública) de LibreTranslate."""

    def __init__(self, config: ProviderConfig, session: requests.Session | None = None):
        self._config  = config
        base          = (config.api_url or DEFAULT_LIBRE_URL).rstrip("/")
        self._url     = base + "/translate"
        self._probe   = base + "/languages"
        self._session = session or requests.Session()

    @property
    def name(self) -> str:
        return LIBRE

    @property
    def api_url(self) -> str:
        return self._url

    def translate(self, text: str, source_lang: str, target_lang: str) -> str | None:
        if not text or source_lang == target_lang:
            return text

        payload = {
            "q":      text,
            "source": source_lang,
            "target": target_lang,
            "format": "text",
        }
        if self._config.api_key:
            payload["api_key"] = self._config.api_key

        try:
            response = self._session.post(
                self._url,
                json    = payload,
                timeout = self._config.timeout_seconds,
            )
        except requests.RequestException as e:
            logger.warning("LibreTranslate error de red: %s", e)
            return None

        try:
            result = response.json()
        except ValueError:
            logger.warning(
                "LibreTranslate respuesta no JSON (HTTP %d)", response.status_code
            )
            return None

        if not isinstance(result, dict):
            logger.warning("LibreTranslate respuesta inesperada: %r", result)
            return None

        if response.status_code != 200:
            logger.warning(
                "LibreTranslate HTTP %d: %s",
                response.status_code, result.get("error", "sin detalle"),
            )
            return None

        translated = result.get("translatedText")
        if isinstance(translated, str):
            return translated

        if "error" in result:
            logger.warning("LibreTranslate API error: %s", result["error"])
        else:
            logger.warning("LibreTranslate respuesta sin translatedText")
        return None

    def is_available(self) -> bool:
        try:
            response = self._session.get(self._probe, timeout=AVAILABILITY_TIMEOUT_SECONDS)
        except requests.RequestException as e:
            logger.info("LibreTranslate no disponible: %s", e)
            return False
        return response.status_code == 200
