# autotranslate/admin.py
import logging
from dataclasses import dataclass
from typing import Optional

from autotranslate.cache.models import CacheStats
from autotranslate.cache.store import CacheStore
from autotranslate.orchestrator import TranslationOrchestrator
from autotranslate.providers.deepl import DeepLProvider
from autotranslate.providers.models import PROVIDER_IDS
from autotranslate.quota import QuotaTracker
from autotranslate.storage.models import HistoryPage, MonthlyUsage, StatsReport
from autotranslate.storage.repository import Repository, current_month

logger = logging.getLogger(__name__)

CONTENT_TYPES = ("title", "content", "both")
CACHE_SCOPES  = ("all", "expired", "language")

_WARNING_PERCENT = 75
_DANGER_PERCENT  = 90


@dataclass
class BulkItem:
    post_id: int
    title:   str = ""
    content: str = ""


@dataclass
class BulkResult:
    post_id: int
    title:   Optional[str] = None
    content: Optional[str] = None


@dataclass
class ProviderUsage:
    provider: str
    used:     int
    limit:    int

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.used)

    @property
    def percentage(self) -> float:
        return (self.used / self.limit) * 100 if self.limit > 0 else 0.0

    @property
    def level(self) -> str:
        if self.percentage >= _DANGER_PERCENT:
            return "danger"
        if self.percentage >= _WARNING_PERCENT:
            return "warning"
        return "ok"


class AdminCommands:
    """
    Operaciones de administración como comandos discretos:
    parámetros tipados in, conteos/resúmenes out. Sin streaming.
    """

    def __init__(
        self,
        orchestrator: TranslationOrchestrator,
        cache:        CacheStore,
        repo:         Repository,
        quota:        QuotaTracker,
    ):
        self._orchestrator = orchestrator
        self._cache        = cache
        self._repo         = repo
        self._quota        = quota

    # ------------------------------------------------------------------
    # Traducción masiva
    # ------------------------------------------------------------------

    def bulk_translate(
        self,
        items:        list[BulkItem],
        source_lang:  str,
        target_lang:  str,
        content_type: str = "both",
    ) -> list[BulkResult]:
        if content_type not in CONTENT_TYPES:
            raise ValueError(
                f"content_type inválido: '{content_type}'. Opciones: {', '.join(CONTENT_TYPES)}"
            )

        results = []
        for item in items:
            result = BulkResult(post_id=item.post_id)
            if content_type in ("title", "both"):
                result.title = self._orchestrator.translate(
                    item.title, source_lang, target_lang, use_cache=True, post_id=item.post_id,
                )
            if content_type in ("content", "both"):
                result.content = self._orchestrator.translate(
                    item.content, source_lang, target_lang, use_cache=True, post_id=item.post_id,
                )
            results.append(result)

        logger.info("Bulk: %d items %s -> %s", len(results), source_lang, target_lang)
        return results

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    def clear_cache(self, scope: str, language: Optional[str] = None) -> int:
        if scope == "all":
            return self._cache.clear_all()
        if scope == "expired":
            return self._cache.clear_expired()
        if scope == "language":
            if not language:
                raise ValueError("El scope 'language' necesita un idioma")
            return self._cache.clear_language(language)
        raise ValueError(f"Scope inválido: '{scope}'. Opciones: {', '.join(CACHE_SCOPES)}")

    def cache_stats(self) -> CacheStats:
        return self._cache.stats()

    # ------------------------------------------------------------------
    # Historial
    # ------------------------------------------------------------------

    def history(
        self,
        page:     int           = 1,
        per_page: int           = 20,
        language: Optional[str] = None,
        provider: Optional[str] = None,
    ) -> HistoryPage:
        return self._repo.query_history(page=page, per_page=per_page,
                                        language=language, provider=provider)

    def clear_history(self, days: int = 30) -> int:
        if days < 0:
            raise ValueError("days no puede ser negativo")
        deleted = self._repo.delete_history_older_than(days)
        logger.info("Borradas %d entradas de historial con más de %d días", deleted, days)
        return deleted

    # ------------------------------------------------------------------
    # Stats y uso
    # ------------------------------------------------------------------

    def stats(self) -> StatsReport:
        """Mes actual y provider activo, desglosado por idioma."""
        provider = self._orchestrator.provider.name
        return StatsReport(
            month     = current_month(),
            provider  = provider,
            limit     = self._quota.limit_for(provider),
            languages = self._repo.monthly_stats(provider),
        )

    def provider_usage(self) -> list[ProviderUsage]:
        return [
            ProviderUsage(
                provider = provider,
                used     = self._repo.get_provider_usage(provider),
                limit    = self._quota.limit_for(provider),
            )
            for provider in PROVIDER_IDS
        ]

    def usage_history(self, months: int = 6) -> list[MonthlyUsage]:
        return self._repo.usage_history(months=months)

    def remote_usage(self) -> Optional[dict]:
        """Uso que reporta el propio provider. Solo DeepL lo expone."""
        provider = self._orchestrator.provider
        if not isinstance(provider, DeepLProvider):
            return None
        return provider.get_usage()

    def debug_info(self) -> dict:
        stats = self._cache.stats()
        return {
            "provider":       self._orchestrator.provider.name,
            "cache_dir":      str(self._cache.cache_dir),
            "cache_writable": self._cache.is_writable(),
            "tables_exist":   self._repo.tables_exist(),
            "cache_files":    stats.total_files,
            "cache_size":     stats.total_size,
        }
