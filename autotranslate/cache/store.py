# cache/store.py
import hashlib
import json
import logging
import os
import re
import tempfile
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterator, Optional

from autotranslate.cache.models import CacheEntry, CacheStats

logger = logging.getLogger(__name__)

DEFAULT_TTL_DAYS = 30
_SECONDS_PER_DAY = 24 * 60 * 60

_LANG_RE = re.compile(r"^[A-Za-z]{2,3}([-_][A-Za-z0-9]{2,8})?$")

_USAGE_LOG = "usage.log"


class CacheError(Exception):
    """Base de los errores del cache. Nunca deben bloquear una traducción."""
    pass


class CacheReadError(CacheError):
    """El fichero existe pero no se puede leer o no es una entrada válida."""
    pass


class CacheWriteError(CacheError):
    """No se pudo persistir la entrada."""
    pass


def make_cache_key(text: str, source_lang: str, target_lang: str) -> str:
    """
    Hash de contenido de (texto, origen, destino). 32 caracteres hex.
    No es criptográfico: una colisión entre tuplas distintas es un riesgo aceptado.
    """
    return hashlib.md5(f"{text}{source_lang}{target_lang}".encode("utf-8")).hexdigest()


class CacheStore:
    """
    Cache de traducciones en ficheros JSON, particionado por idioma destino:
        <cache_dir>/<target_lang>/<cache_key>.json

    La validez se comprueba al leer. Una entrada expirada se trata como ausente
    pero NO se borra aquí: eso es trabajo del sweep y de los clear_*.
    """

    def __init__(
        self,
        cache_dir:   str | Path,
        ttl_days:    int                   = DEFAULT_TTL_DAYS,
        clock:       Callable[[], float]   = time.time,
    ):
        self._dir   = Path(cache_dir).expanduser()
        self._ttl   = ttl_days * _SECONDS_PER_DAY
        self._clock = clock

    @property
    def cache_dir(self) -> Path:
        return self._dir

    # ------------------------------------------------------------------
    # Lectura / escritura
    # ------------------------------------------------------------------

    def get(self, text: str, source_lang: str, target_lang: str) -> CacheEntry | None:
        key  = make_cache_key(text, source_lang, target_lang)
        path = self._entry_path(target_lang, key)

        if not path.is_file():
            return None

        entry = self._read_entry(path)
        if not entry.is_valid(self._clock()):
            logger.debug("Cache expirado: %s -> %s (%s)", source_lang, target_lang, key)
            return None
        return entry

    def put(
        self,
        text:        str,
        source_lang: str,
        target_lang: str,
        translated:  str,
        provider:    str,
        ttl_seconds: Optional[int] = None,
    ) -> CacheEntry:
        """
        Escribe (o reemplaza) la entrada. Last-writer-wins: se escribe a un
        temporal en el mismo directorio y se hace os.replace, así un lector
        nunca ve un fichero a medias.
        """
        key = make_cache_key(text, source_lang, target_lang)
        now = self._clock()
        ttl = self._ttl if ttl_seconds is None else ttl_seconds

        entry = CacheEntry(
            cache_key   = key,
            original    = text,
            translated  = translated,
            source_lang = source_lang,
            target_lang = target_lang,
            provider    = provider,
            created_at  = _format_timestamp(now),
            expires_at  = int(now + ttl),
            chars       = len(text),
        )

        path = self._entry_path(target_lang, key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(entry.to_dict(), f, ensure_ascii=False)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise CacheWriteError(f"No se pudo escribir {path}: {e}") from e

        return entry

    def log_usage(self, lang: str, cache_key: str, char_count: int, provider: str) -> None:
        """Añade una línea al usage.log plano del directorio de cache."""
        line = (
            f"{_format_timestamp(self._clock())} - {provider} - {lang} - "
            f"{char_count} chars - {cache_key}\n"
        )
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            with (self._dir / _USAGE_LOG).open("a", encoding="utf-8") as f:
                f.write(line)
        except OSError as e:
            raise CacheWriteError(f"No se pudo escribir {_USAGE_LOG}: {e}") from e

    # ------------------------------------------------------------------
    # Limpieza
    # ------------------------------------------------------------------

    def clear_all(self) -> int:
        cleared = 0
        for path in self._iter_entry_files():
            if _unlink(path):
                cleared += 1
        logger.info("Cache vaciado: %d entradas", cleared)
        return cleared

    def clear_expired(self) -> int:
        """
        Borra solo entradas con 'expires' en el pasado.
        Las legacy (sin 'expires') y las ilegibles se conservan.
        """
        now     = self._clock()
        cleared = 0
        for path in self._iter_entry_files():
            try:
                entry = self._read_entry(path)
            except CacheReadError as e:
                logger.warning("Saltando entrada ilegible en el sweep: %s", e)
                continue
            if entry.expires_at is not None and now > entry.expires_at:
                if _unlink(path):
                    cleared += 1
        logger.info("Limpiadas %d entradas expiradas del cache", cleared)
        return cleared

    def clear_language(self, lang: str) -> int:
        """Solo recorre el namespace del idioma, no el cache entero."""
        lang_dir = self._dir / _validate_lang(lang)
        if not lang_dir.is_dir():
            return 0
        cleared = 0
        for path in lang_dir.glob("*.json"):
            if _unlink(path):
                cleared += 1
        logger.info("Cache de '%s' vaciado: %d entradas", lang, cleared)
        return cleared

    def stats(self) -> CacheStats:
        total_files = 0
        total_size  = 0
        for path in self._iter_entry_files():
            try:
                total_size += path.stat().st_size
            except FileNotFoundError:
                continue   # borrado por otro proceso entre el glob y el stat
            total_files += 1
        return CacheStats(total_files=total_files, total_size=total_size)

    def is_writable(self) -> bool:
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError:
            return False
        return os.access(self._dir, os.W_OK)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _entry_path(self, target_lang: str, key: str) -> Path:
        return self._dir / _validate_lang(target_lang) / f"{key}.json"

    def _iter_entry_files(self) -> Iterator[Path]:
        if not self._dir.is_dir():
            return iter(())
        return (p for p in self._dir.glob("*/*.json") if p.is_file())

    @staticmethod
    def _read_entry(path: Path) -> CacheEntry:
        try:
            with path.open(encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise TypeError(f"se esperaba un objeto JSON, no {type(data).__name__}")
            return CacheEntry.from_dict(path.stem, data)
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise CacheReadError(f"Entrada de cache inválida {path}: {e}") from e


def _validate_lang(lang: str) -> str:
    """El idioma se usa como nombre de directorio: nada de separadores ni '..'."""
    if not isinstance(lang, str) or not _LANG_RE.match(lang):
        raise ValueError(f"Código de idioma inválido para el cache: {lang!r}")
    return lang


def _format_timestamp(epoch: float) -> str:
    return datetime.fromtimestamp(epoch, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _unlink(path: Path) -> bool:
    try:
        path.unlink()
        return True
    except FileNotFoundError:
        return False
