# storage/models.py
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class HistoryRecord:
    """Una traducción real (cache miss con éxito). Nunca se modifica."""
    original_text:   str
    translated_text: str
    source_lang:     str
    target_lang:     str
    provider:        str
    char_count:      int
    cache_key:       str
    created_at:      str
    post_id:         Optional[int] = None
    user_id:         Optional[int] = None
    id:              Optional[int] = None


@dataclass
class UsageCounter:
    """Fila del ledger mensual: una por (mes, provider, idioma)."""
    month:             str
    provider:          str
    language:          str
    char_count:        int = 0
    translation_count: int = 0
    cache_hits:        int = 0
    cache_misses:      int = 0


@dataclass
class HistoryPage:
    records:  list[HistoryRecord]
    total:    int
    page:     int
    per_page: int


@dataclass
class LanguageStats:
    language:          str
    char_count:        int
    translation_count: int
    cache_hits:        int
    cache_misses:      int


@dataclass
class StatsReport:
    month:       str
    provider:    str
    limit:       int
    languages:   list[LanguageStats] = field(default_factory=list)

    @property
    def total_chars(self) -> int:
        return sum(lang.char_count for lang in self.languages)

    @property
    def remaining(self) -> int:
        # Puede ser negativo: el límite es blando y se permite un pequeño overshoot
        return self.limit - self.total_chars


@dataclass
class MonthlyUsage:
    month:       str
    provider:    str
    total_chars: int
