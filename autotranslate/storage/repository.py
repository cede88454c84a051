# storage/repository.py
import logging
import sqlite3
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from autotranslate.storage.db import get_connection, init_schema, tables_exist
from autotranslate.storage.models import (
    HistoryPage, HistoryRecord, LanguageStats,
    MonthlyUsage, UsageCounter,
)

logger = logging.getLogger(__name__)


def current_month(today: Optional[date] = None) -> str:
    """Clave de mes del ledger: 'YYYY-MM'."""
    return (today or date.today()).strftime("%Y-%m")


def _month_back(today: date, months: int) -> str:
    """Mes 'YYYY-MM' que queda `months` meses antes de `today`."""
    index = today.year * 12 + (today.month - 1) - months
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Repository:
    """
    Única interfaz entre el engine y SQLite: historial y contadores mensuales.
    Recibe un db_path para facilitar el testing con :memory:.
    """

    def __init__(self, db_path: str | None = None):
        self._conn = get_connection(db_path)
        init_schema(self._conn)

    # ------------------------------------------------------------------
    # Historial
    # ------------------------------------------------------------------

    def append_history(
        self,
        original_text:   str,
        translated_text: str,
        source_lang:     str,
        target_lang:     str,
        provider:        str,
        cache_key:       str,
        post_id:         Optional[int] = None,
        user_id:         Optional[int] = None,
    ) -> int:
        """
        Inserta una entrada de historial y devuelve su id.
        El historial es append-only: no hay update, solo borrado masivo por antigüedad.
        """
        created_at = _utc_now().isoformat(timespec="seconds")
        with self._conn:
            cursor = self._conn.execute(
                """
                INSERT INTO translation_history
                    (original_text, translated_text, from_lang, to_lang, provider,
                     char_count, post_id, user_id, created_at, cache_key)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (original_text, translated_text, source_lang, target_lang, provider,
                 len(original_text), post_id, user_id, created_at, cache_key),
            )
        return cursor.lastrowid  # type: ignore[return-value]

    def query_history(
        self,
        page:     int           = 1,
        per_page: int           = 20,
        language: Optional[str] = None,
        provider: Optional[str] = None,
    ) -> HistoryPage:
        """
        Lectura paginada, más reciente primero.
        El filtro de idioma matchea tanto el origen como el destino.
        """
        page     = max(1, page)
        per_page = max(1, per_page)

        where  = "WHERE 1=1"
        params: list = []

        if language:
            where += " AND (from_lang = ? OR to_lang = ?)"
            params.extend([language, language])

        if provider:
            where += " AND provider = ?"
            params.append(provider)

        rows = self._conn.execute(
            f"""
            SELECT * FROM translation_history {where}
            ORDER BY created_at DESC, id DESC
            LIMIT ? OFFSET ?
            """,
            (*params, per_page, (page - 1) * per_page),
        ).fetchall()

        total = self._conn.execute(
            f"SELECT COUNT(*) AS total FROM translation_history {where}",
            params,
        ).fetchone()["total"]

        return HistoryPage(
            records  = [self._row_to_history(r) for r in rows],
            total    = total,
            page     = page,
            per_page = per_page,
        )

    def delete_history_older_than(self, days: int, now: Optional[datetime] = None) -> int:
        """Borra las entradas con más de `days` días. Devuelve cuántas borró."""
        cutoff = ((now or _utc_now()) - timedelta(days=days)).isoformat(timespec="seconds")
        with self._conn:
            cursor = self._conn.execute(
                "DELETE FROM translation_history WHERE created_at < ?",
                (cutoff,),
            )
        return cursor.rowcount

    # ------------------------------------------------------------------
    # Contadores mensuales (ledger de quota)
    # ------------------------------------------------------------------

    def add_usage(
        self,
        provider:     str,
        language:     str,
        char_count:   int = 0,
        translations: int = 0,
        cache_hits:   int = 0,
        cache_misses: int = 0,
        month:        Optional[str] = None,
    ) -> None:
        """
        Upsert atómico: si ya existe la fila del mes la incrementa,
        si no existe la crea. Nunca read-modify-write en Python.
        """
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO translation_stats
                    (date_month, provider, language, char_count,
                     translation_count, cache_hits, cache_misses)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (date_month, provider, language)
                DO UPDATE SET
                    char_count        = char_count        + excluded.char_count,
                    translation_count = translation_count + excluded.translation_count,
                    cache_hits        = cache_hits        + excluded.cache_hits,
                    cache_misses      = cache_misses      + excluded.cache_misses
                """,
                (month or current_month(), provider, language,
                 char_count, translations, cache_hits, cache_misses),
            )

    def record_translation(self, provider: str, language: str, char_count: int) -> None:
        """Cache miss resuelto por el provider: cuenta caracteres y traducción."""
        self.add_usage(provider, language, char_count=char_count,
                       translations=1, cache_misses=1)

    def record_cache_hit(self, provider: str, language: str) -> None:
        """Cache hit: no consume quota del provider, solo suma el hit."""
        self.add_usage(provider, language, cache_hits=1)

    def get_char_usage(
        self,
        provider: str,
        language: str,
        month:    Optional[str] = None,
    ) -> int:
        row = self._conn.execute(
            """
            SELECT COALESCE(SUM(char_count), 0) AS used FROM translation_stats
            WHERE date_month = ? AND provider = ? AND language = ?
            """,
            (month or current_month(), provider, language),
        ).fetchone()
        return row["used"]

    def get_provider_usage(self, provider: str, month: Optional[str] = None) -> int:
        """Caracteres del mes para un provider sumando todos los idiomas."""
        row = self._conn.execute(
            """
            SELECT COALESCE(SUM(char_count), 0) AS used FROM translation_stats
            WHERE date_month = ? AND provider = ?
            """,
            (month or current_month(), provider),
        ).fetchone()
        return row["used"]

    def get_usage_counter(
        self,
        provider: str,
        language: str,
        month:    Optional[str] = None,
    ) -> UsageCounter | None:
        row = self._conn.execute(
            """
            SELECT * FROM translation_stats
            WHERE date_month = ? AND provider = ? AND language = ?
            """,
            (month or current_month(), provider, language),
        ).fetchone()
        return self._row_to_counter(row) if row else None

    def monthly_stats(self, provider: str, month: Optional[str] = None) -> list[LanguageStats]:
        """Estadísticas por idioma del mes para un provider."""
        rows = self._conn.execute(
            """
            SELECT language,
                   SUM(char_count)        AS chars,
                   SUM(translation_count) AS translations,
                   SUM(cache_hits)        AS hits,
                   SUM(cache_misses)      AS misses
            FROM translation_stats
            WHERE date_month = ? AND provider = ?
            GROUP BY language
            ORDER BY language ASC
            """,
            (month or current_month(), provider),
        ).fetchall()
        return [
            LanguageStats(
                language          = r["language"],
                char_count        = r["chars"],
                translation_count = r["translations"],
                cache_hits        = r["hits"],
                cache_misses      = r["misses"],
            )
            for r in rows
        ]

    def usage_history(self, months: int = 6, today: Optional[date] = None) -> list[MonthlyUsage]:
        """Caracteres por mes y provider de los últimos `months` meses."""
        since = _month_back(today or date.today(), months)
        rows = self._conn.execute(
            """
            SELECT date_month, provider, SUM(char_count) AS total_chars
            FROM translation_stats
            WHERE date_month >= ?
            GROUP BY date_month, provider
            ORDER BY date_month DESC, provider ASC
            """,
            (since,),
        ).fetchall()
        return [
            MonthlyUsage(month=r["date_month"], provider=r["provider"], total_chars=r["total_chars"])
            for r in rows
        ]

    def tables_exist(self) -> bool:
        return tables_exist(self._conn)

    # ------------------------------------------------------------------
    # Mapeo de rows a dataclasses
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_history(row: sqlite3.Row) -> HistoryRecord:
        return HistoryRecord(
            id              = row["id"],
            original_text   = row["original_text"],
            translated_text = row["translated_text"],
            source_lang     = row["from_lang"],
            target_lang     = row["to_lang"],
            provider        = row["provider"],
            char_count      = row["char_count"],
            cache_key       = row["cache_key"],
            created_at      = row["created_at"],
            post_id         = row["post_id"],
            user_id         = row["user_id"],
        )

    @staticmethod
    def _row_to_counter(row: sqlite3.Row) -> UsageCounter:
        return UsageCounter(
            month             = row["date_month"],
            provider          = row["provider"],
            language          = row["language"],
            char_count        = row["char_count"],
            translation_count = row["translation_count"],
            cache_hits        = row["cache_hits"],
            cache_misses      = row["cache_misses"],
        )

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    def close(self) -> None:
        self._conn.close()
