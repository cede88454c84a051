# autotranslate/factory.py
import logging
from dataclasses import dataclass
from typing import Optional

from autotranslate.admin import AdminCommands
from autotranslate.cache.store import CacheStore
from autotranslate.cache.sweeper import CacheSweeper
from autotranslate.config_loader import Settings, load_settings
from autotranslate.orchestrator import TranslationOrchestrator
from autotranslate.providers.base import BaseProvider
from autotranslate.providers.deepl import DeepLProvider
from autotranslate.providers.libre import LibreTranslateProvider
from autotranslate.providers.models import DEEPL_FREE, DEEPL_PRO, LIBRE, ProviderConfig
from autotranslate.quota import QuotaTracker
from autotranslate.storage.repository import Repository

logger = logging.getLogger(__name__)


@dataclass
class Engine:
    """Todas las piezas construidas una sola vez y pasadas explícitamente."""
    settings:     Settings
    repo:         Repository
    cache:        CacheStore
    quota:        QuotaTracker
    provider:     BaseProvider
    orchestrator: TranslationOrchestrator
    admin:        AdminCommands
    sweeper:      CacheSweeper

    def close(self) -> None:
        self.sweeper.stop()
        self.repo.close()


def build_engine(
    settings:    Optional[Settings] = None,
    config_path: Optional[str]      = None,
    db_path:     Optional[str]      = None,
) -> Engine:
    """
    Ensambla el engine con todas sus dependencias.
    Punto de entrada único para el CLI y los tests de integración.
    """
    settings = settings or load_settings(config_path)

    repo     = Repository(db_path=db_path or settings.db_path)
    cache    = CacheStore(settings.cache_dir, ttl_days=settings.cache_ttl_days)
    quota    = QuotaTracker(repo, settings.monthly_limits)
    provider = build_provider(settings)

    orchestrator = TranslationOrchestrator(
        cache    = cache,
        quota    = quota,
        repo     = repo,
        provider = provider,
    )

    return Engine(
        settings     = settings,
        repo         = repo,
        cache        = cache,
        quota        = quota,
        provider     = provider,
        orchestrator = orchestrator,
        admin        = AdminCommands(orchestrator, cache, repo, quota),
        sweeper      = CacheSweeper(cache, interval_seconds=settings.sweep_interval_hours * 3600),
    )


def build_provider(settings: Settings) -> BaseProvider:
    """
    Elige el adaptador a partir del provider configurado.
    Si se pide DeepL sin api_key, cae a LibreTranslate con un warning.
    """
    if settings.provider in (DEEPL_FREE, DEEPL_PRO):
        if settings.deepl_api_key:
            provider = DeepLProvider(ProviderConfig(
                name               = settings.provider,
                api_key            = settings.deepl_api_key,
                timeout_seconds    = settings.timeout_seconds,
            ))
            if provider.name != settings.provider:
                logger.warning(
                    "Configurado '%s' pero la api_key es de tipo '%s'; se usa '%s'",
                    settings.provider, provider.name, provider.name,
                )
            return provider

        logger.warning("%s sin deepl_api_key, usando LibreTranslate", settings.provider)

    elif settings.provider != LIBRE:
        raise ValueError(f"Provider no soportado: '{settings.provider}'")

    return LibreTranslateProvider(ProviderConfig(
        name               = LIBRE,
        api_url            = settings.libre_url,
        api_key            = settings.libre_api_key,
        timeout_seconds    = settings.timeout_seconds,
    ))
