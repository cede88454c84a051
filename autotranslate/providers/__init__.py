# providers/__init__.py
from autotranslate.providers.base import BaseProvider
from autotranslate.providers.libre import LibreTranslateProvider
from autotranslate.providers.deepl import DeepLProvider, LANGUAGE_MAP
from autotranslate.providers.models import (
    ProviderConfig,
    DEFAULT_MONTHLY_LIMITS,
    FALLBACK_MONTHLY_LIMIT,
    PROVIDER_IDS,
    PROVIDER_LABELS,
    LIBRE, DEEPL_FREE, DEEPL_PRO,
)

__all__ = [
    "BaseProvider",
    "LibreTranslateProvider",
    "DeepLProvider",
    "LANGUAGE_MAP",
    "ProviderConfig",
    "DEFAULT_MONTHLY_LIMITS",
    "FALLBACK_MONTHLY_LIMIT",
    "PROVIDER_IDS",
    "PROVIDER_LABELS",
    "LIBRE", "DEEPL_FREE", "DEEPL_PRO",
]
