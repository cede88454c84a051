# quota.py
import logging
from typing import Mapping, Optional

from autotranslate.providers.models import DEFAULT_MONTHLY_LIMITS, FALLBACK_MONTHLY_LIMIT
from autotranslate.storage.repository import Repository

logger = logging.getLogger(__name__)


class QuotaTracker:
    """
    Decide si una traducción cabe en el límite mensual de caracteres
    de (provider, idioma) ANTES de cualquier llamada de red.

    Es read-then-decide, no una reserva: dos peticiones concurrentes pueden
    pasar el check y sobrepasar un poco el límite. Es un guardarraíl
    operativo, no un corte de facturación, así que no hay locks.
    """

    def __init__(self, repo: Repository, limits: Optional[Mapping[str, int]] = None):
        self._repo   = repo
        self._limits = {**DEFAULT_MONTHLY_LIMITS, **(limits or {})}

    def limit_for(self, provider: str) -> int:
        return self._limits.get(provider, FALLBACK_MONTHLY_LIMIT)

    def would_exceed(self, provider: str, lang: str, additional_chars: int) -> bool:
        used  = self._repo.get_char_usage(provider, lang)
        limit = self.limit_for(provider)
        exceeded = used + additional_chars > limit
        if exceeded:
            logger.info(
                "Quota %s/%s: %d + %d > %d", provider, lang, used, additional_chars, limit
            )
        return exceeded

    def remaining(self, provider: str, lang: str) -> int:
        return max(0, self.limit_for(provider) - self._repo.get_char_usage(provider, lang))
