# autotranslate/orchestrator.py
import logging
import sqlite3
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from autotranslate.cache.store import CacheError, CacheStore, make_cache_key
from autotranslate.providers.base import BaseProvider
from autotranslate.quota import QuotaTracker
from autotranslate.storage.repository import Repository

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Petición y resultado que consumen el CLI y AdminCommands
# ------------------------------------------------------------------

@dataclass
class TranslationRequest:
    text:        str
    source_lang: str
    target_lang: str
    use_cache:   bool          = True
    post_id:     Optional[int] = None
    user_id:     Optional[int] = None


class OutcomeStatus(Enum):
    PASSTHROUGH     = "passthrough"       # texto vacío o mismo idioma
    CACHE_HIT       = "cache_hit"
    TRANSLATED      = "translated"
    QUOTA_EXCEEDED  = "quota_exceeded"
    PROVIDER_FAILED = "provider_failed"


@dataclass
class TranslationOutcome:
    text:      str
    status:    OutcomeStatus
    provider:  Optional[str] = None
    cache_key: Optional[str] = None

    @property
    def translated(self) -> bool:
        return self.status in (OutcomeStatus.CACHE_HIT, OutcomeStatus.TRANSLATED)


# ------------------------------------------------------------------
# Orchestrator
# ------------------------------------------------------------------

class TranslationOrchestrator:
    """
    Coordina una traducción de extremo a extremo.
    No tiene lógica de negocio propia, solo coordina módulos:

        cache (lectura) -> quota -> provider -> cache (escritura)
                                             -> historial -> stats

    Contrato: ningún error sale de translate()/process(). Cualquier fallo
    degrada a devolver el texto original y queda solo en el log.
    """

    def __init__(
        self,
        cache:    CacheStore,
        quota:    QuotaTracker,
        repo:     Repository,
        provider: BaseProvider,
    ):
        self._cache    = cache
        self._quota    = quota
        self._repo     = repo
        self._provider = provider

    @property
    def provider(self) -> BaseProvider:
        return self._provider

    def translate(
        self,
        text:        str,
        source_lang: str,
        target_lang: str,
        use_cache:   bool          = True,
        post_id:     Optional[int] = None,
        user_id:     Optional[int] = None,
    ) -> str:
        """Devuelve la traducción, o el texto original si no se pudo traducir."""
        return self.process(TranslationRequest(
            text        = text,
            source_lang = source_lang,
            target_lang = target_lang,
            use_cache   = use_cache,
            post_id     = post_id,
            user_id     = user_id,
        )).text

    def process(self, request: TranslationRequest) -> TranslationOutcome:
        text = request.text

        # ── Guarda de entrada: sin cache, quota, historial ni stats ───
        if not text or request.source_lang == request.target_lang:
            return TranslationOutcome(text=text, status=OutcomeStatus.PASSTHROUGH)

        try:
            return self._run(request)
        except Exception:
            # Red de seguridad: una caída de traducción nunca rompe al caller
            logger.exception(
                "Error inesperado traduciendo %s -> %s",
                request.source_lang, request.target_lang,
            )
            return TranslationOutcome(text=text, status=OutcomeStatus.PROVIDER_FAILED)

    # ------------------------------------------------------------------
    # Máquina de estados
    # ------------------------------------------------------------------

    def _run(self, request: TranslationRequest) -> TranslationOutcome:
        text      = request.text
        source    = request.source_lang
        target    = request.target_lang
        provider  = self._provider.name
        cache_key = make_cache_key(text, source, target)
        chars     = len(text)

        # ── CACHE_LOOKUP ──────────────────────────────────────────────
        if request.use_cache:
            cached = self._cache_lookup(text, source, target)
            if cached is not None:
                logger.debug("Cache HIT: %s -> %s", source, target)
                self._record_stats(provider, target, chars, cache_hit=True)
                return TranslationOutcome(
                    text=cached, status=OutcomeStatus.CACHE_HIT,
                    provider=provider, cache_key=cache_key,
                )

        # ── QUOTA_CHECK ───────────────────────────────────────────────
        if self._quota_exceeded(provider, target, chars):
            logger.warning("Límite mensual superado para %s/%s", provider, target)
            return TranslationOutcome(
                text=text, status=OutcomeStatus.QUOTA_EXCEEDED,
                provider=provider, cache_key=cache_key,
            )

        # ── PROVIDER_CALL ─────────────────────────────────────────────
        try:
            translated = self._provider.translate(text, source, target)
        except Exception:
            logger.exception("El provider %s lanzó una excepción", provider)
            translated = None

        if not translated or translated == text:
            logger.info("Traducción FALLIDA: %s -> %s (%s)", source, target, provider)
            return TranslationOutcome(
                text=text, status=OutcomeStatus.PROVIDER_FAILED,
                provider=provider, cache_key=cache_key,
            )

        # ── CACHE_WRITE ───────────────────────────────────────────────
        if request.use_cache:
            self._cache_write(text, source, target, translated, provider, cache_key)

        # ── HISTORY_APPEND ────────────────────────────────────────────
        try:
            self._repo.append_history(
                original_text   = text,
                translated_text = translated,
                source_lang     = source,
                target_lang     = target,
                provider        = provider,
                cache_key       = cache_key,
                post_id         = request.post_id,
                user_id         = request.user_id,
            )
        except sqlite3.Error as e:
            logger.error("No se pudo guardar el historial: %s", e)

        # ── RECORD_MISS_STATS ─────────────────────────────────────────
        self._record_stats(provider, target, chars, cache_hit=False)

        logger.info("Traducción OK: %s -> %s (%s, %d chars)", source, target, provider, chars)
        return TranslationOutcome(
            text=translated, status=OutcomeStatus.TRANSLATED,
            provider=provider, cache_key=cache_key,
        )

    # ------------------------------------------------------------------
    # Pasos con degradación propia
    # ------------------------------------------------------------------

    def _cache_lookup(self, text: str, source: str, target: str) -> Optional[str]:
        """Un cache roto cuenta como miss: nunca bloquea la traducción."""
        try:
            entry = self._cache.get(text, source, target)
        except (CacheError, ValueError) as e:
            logger.warning("Error leyendo el cache, se trata como miss: %s", e)
            return None
        return entry.translated if entry is not None else None

    def _quota_exceeded(self, provider: str, target: str, chars: int) -> bool:
        try:
            return self._quota.would_exceed(provider, target, chars)
        except sqlite3.Error as e:
            # Stats best-effort: si no se puede leer el ledger, se admite
            logger.error("No se pudo consultar la quota, se admite la petición: %s", e)
            return False

    def _cache_write(
        self,
        text:       str,
        source:     str,
        target:     str,
        translated: str,
        provider:   str,
        cache_key:  str,
    ) -> None:
        try:
            self._cache.put(text, source, target, translated, provider)
            self._cache.log_usage(target, cache_key, len(text), provider)
        except (CacheError, ValueError) as e:
            logger.error("No se pudo escribir en el cache: %s", e)

    def _record_stats(self, provider: str, target: str, chars: int, cache_hit: bool) -> None:
        try:
            if cache_hit:
                self._repo.record_cache_hit(provider, target)
            else:
                self._repo.record_translation(provider, target, chars)
        except sqlite3.Error as e:
            logger.error("No se pudieron actualizar las stats: %s", e)
