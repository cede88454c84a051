# providers/deepl.py
import logging
from typing import Optional

import requests

from autotranslate.providers.base import BaseProvider
from autotranslate.providers.models import (
    AVAILABILITY_TIMEOUT_SECONDS,
    DEEPL_FREE,
    DEEPL_PRO,
    USAGE_TIMEOUT_SECONDS,
    ProviderConfig,
)

logger = logging.getLogger(__name__)

_FREE_API_BASE = "https://api-free.deepl.com/v2"
_PRO_API_BASE  = "https://api.deepl.com/v2"

# Las keys del plan gratuito terminan en ":fx"
_FREE_KEY_SUFFIX = ":fx"

# Códigos de dos letras del engine -> códigos DeepL.
# Si un lado del par no está aquí, el adaptador rechaza en vez de adivinar.
LANGUAGE_MAP: dict[str, str] = {
    "en": "EN",
    "de": "DE",
    "fr": "FR",
    "es": "ES",
    "it": "IT",
    "pt": "PT",
    "ru": "RU",
    "ja": "JA",
    "zh": "ZH",
    "pl": "PL",
    "nl": "NL",
    "hu": "HU",
    "ko": "KO",
    "ar": "AR",
    "th": "TH",   # DeepL puede no soportarlo: la API devolverá error
}


def is_free_key(api_key: str) -> bool:
    return api_key.endswith(_FREE_KEY_SUFFIX)


def map_language_code(lang: str) -> Optional[str]:
    return LANGUAGE_MAP.get(lang.lower()) if lang else None


class DeepLProvider(BaseProvider):
    """
    API comercial de DeepL. El tier (free/pro) se deduce del formato de la key
    y decide tanto el endpoint como el nombre con el que se cuenta la quota.
    """

    def __init__(self, config: ProviderConfig, session: requests.Session | None = None):
        if not config.api_key:
            raise ValueError("DeepLProvider necesita api_key")
        self._config  = config
        self._api_key = config.api_key
        self._free    = is_free_key(self._api_key)
        self._base    = config.api_url.rstrip("/") if config.api_url else (
            _FREE_API_BASE if self._free else _PRO_API_BASE
        )
        self._session = session or requests.Session()

    @property
    def name(self) -> str:
        return DEEPL_FREE if self._free else DEEPL_PRO

    @property
    def api_url(self) -> str:
        return f"{self._base}/translate"

    def translate(self, text: str, source_lang: str, target_lang: str) -> str | None:
        if not text or source_lang == target_lang:
            return None

        deepl_from = map_language_code(source_lang)
        deepl_to   = map_language_code(target_lang)
        if not deepl_from or not deepl_to:
            logger.warning(
                "DeepL: par de idiomas no soportado %s -> %s", source_lang, target_lang
            )
            return None

        data = {
            "text":                text,
            "source_lang":         deepl_from,
            "target_lang":         deepl_to,
            "preserve_formatting": "1",
        }

        try:
            response = self._session.post(
                self.api_url,
                headers = self._auth_headers(),
                data    = data,
                timeout = self._config.timeout_seconds,
            )
        except requests.RequestException as e:
            logger.warning("DeepL error de red: %s", e)
            return None

        if response.status_code in (401, 403):
            logger.error("DeepL rechazó la API key (HTTP %d)", response.status_code)
            return None

        try:
            result = response.json()
        except ValueError:
            logger.warning("DeepL respuesta no JSON (HTTP %d)", response.status_code)
            return None

        try:
            return str(result["translations"][0]["text"])
        except (KeyError, IndexError, TypeError):
            pass

        if isinstance(result, dict) and "message" in result:
            logger.warning("DeepL API error: %s", result["message"])
        else:
            logger.warning("DeepL respuesta sin traducción (HTTP %d)", response.status_code)
        return None

    def is_available(self) -> bool:
        try:
            response = self._session.get(
                f"{self._base}/usage",
                headers = self._auth_headers(),
                timeout = AVAILABILITY_TIMEOUT_SECONDS,
            )
        except requests.RequestException as e:
            logger.info("DeepL no disponible: %s", e)
            return False
        return response.status_code == 200

    def get_usage(self) -> dict | None:
        """
        Uso reportado por DeepL: {'character_count': N, 'character_limit': M}.
        None si no se pudo consultar.
        """
        try:
            response = self._session.get(
                f"{self._base}/usage",
                headers = self._auth_headers(),
                timeout = USAGE_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("No se pudo consultar el uso de DeepL: %s", e)
            return None

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"DeepL-Auth-Key {self._api_key}"}
