# cache/models.py
from dataclasses import dataclass
from typing import Optional


@dataclass
class CacheEntry:
    """
    Traducción cacheada. En disco se guarda con el shape JSON histórico:
    {original, translated, from_lang, to_lang, provider, timestamp, chars, expires}
    """
    cache_key:   str
    original:    str
    translated:  str
    source_lang: str
    target_lang: str
    provider:    str
    created_at:  str
    expires_at:  Optional[int] = None   # None: entrada legacy, válida siempre
    chars:       int = 0

    def is_valid(self, now: float) -> bool:
        if self.expires_at is None:
            return True
        return now < self.expires_at

    def to_dict(self) -> dict:
        data = {
            "original":   self.original,
            "translated": self.translated,
            "from_lang":  self.source_lang,
            "to_lang":    self.target_lang,
            "provider":   self.provider,
            "timestamp":  self.created_at,
            "chars":      self.chars,
        }
        if self.expires_at is not None:
            data["expires"] = self.expires_at
        return data

    @classmethod
    def from_dict(cls, cache_key: str, data: dict) -> "CacheEntry":
        """
        Lanza KeyError/TypeError/ValueError si faltan campos obligatorios;
        el store lo convierte en CacheReadError.
        """
        expires = data.get("expires")
        original = data.get("original", "")
        return cls(
            cache_key   = cache_key,
            original    = original,
            translated  = data["translated"],
            source_lang = data.get("from_lang", ""),
            target_lang = data.get("to_lang", ""),
            provider    = data.get("provider", ""),
            created_at  = data.get("timestamp", ""),
            expires_at  = int(expires) if expires is not None else None,
            chars       = int(data.get("chars", len(original))),
        )


@dataclass
class CacheStats:
    total_files: int
    total_size:  int


def format_bytes(size: float, precision: int = 2) -> str:
    """1536 -> '1.5 KB'."""
    units = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    while size > 1024 and i < len(units) - 1:
        size /= 1024
        i += 1
    return f"{round(size, precision):g} {units[i]}"
