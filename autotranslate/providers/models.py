# providers/models.py
from dataclasses import dataclass
from typing import Optional


LIBRE      = "libre"
DEEPL_FREE = "deepl_free"
DEEPL_PRO  = "deepl_pro"

PROVIDER_IDS = (LIBRE, DEEPL_FREE, DEEPL_PRO)

PROVIDER_LABELS = {
    LIBRE:      "LibreTranslate",
    DEEPL_FREE: "DeepL Free",
    DEEPL_PRO:  "DeepL Pro",
}

# Caracteres/mes. El operador puede sobreescribirlos desde el config.
DEFAULT_MONTHLY_LIMITS: dict[str, int] = {
    LIBRE:      1_000_000,
    DEEPL_FREE: 500_000,
    DEEPL_PRO:  10_000_000,
}

# Límite para un provider que no aparece ni en defaults ni en config
FALLBACK_MONTHLY_LIMIT = 500_000

DEFAULT_LIBRE_URL = "https://libretranslate.com"

TRANSLATE_TIMEOUT_SECONDS = 30
AVAILABILITY_TIMEOUT_SECONDS = 5
USAGE_TIMEOUT_SECONDS = 10


@dataclass
class ProviderConfig:
    """Configuración de un backend de traducción."""
    name:               str
    api_url:            Optional[str] = None
    api_key:            Optional[str] = None
    timeout_seconds:    int           = TRANSLATE_TIMEOUT_SECONDS
