# storage/db.py
import sqlite3
import os
from pathlib import Path


_DEFAULT_DB_PATH = Path.home() / ".autotranslate" / "autotranslate.db"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS translation_history (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    original_text   TEXT    NOT NULL,
    translated_text TEXT    NOT NULL,
    from_lang       TEXT    NOT NULL,
    to_lang         TEXT    NOT NULL,
    provider        TEXT    NOT NULL,
    char_count      INTEGER NOT NULL,
    post_id         INTEGER,
    user_id         INTEGER,
    created_at      TEXT    NOT NULL,
    cache_key       TEXT    NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_history_from_lang  ON translation_history (from_lang);
CREATE INDEX IF NOT EXISTS idx_history_to_lang    ON translation_history (to_lang);
CREATE INDEX IF NOT EXISTS idx_history_provider   ON translation_history (provider);
CREATE INDEX IF NOT EXISTS idx_history_created_at ON translation_history (created_at);
CREATE INDEX IF NOT EXISTS idx_history_cache_key  ON translation_history (cache_key);

CREATE TABLE IF NOT EXISTS translation_stats (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    date_month        TEXT    NOT NULL,
    provider          TEXT    NOT NULL,
    language          TEXT    NOT NULL,
    char_count        INTEGER NOT NULL DEFAULT 0,
    translation_count INTEGER NOT NULL DEFAULT 0,
    cache_hits        INTEGER NOT NULL DEFAULT 0,
    cache_misses      INTEGER NOT NULL DEFAULT 0,
    UNIQUE (date_month, provider, language)
);
"""

TABLES = ("translation_history", "translation_stats")


def get_connection(db_path: str | None = None) -> sqlite3.Connection:
    """
    Abre y configura la conexión a SQLite.
    Siempre devuelve rows como dicts (row_factory).
    check_same_thread=False: el sweeper y los handlers pueden compartir la conexión.
    """
    path = db_path or os.environ.get("AUTOTRANSLATE_DB_PATH") or str(_DEFAULT_DB_PATH)

    if path != ":memory:":
        Path(path).expanduser().parent.mkdir(parents=True, exist_ok=True)
        path = str(Path(path).expanduser())

    conn = sqlite3.connect(path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL")   # lecturas concurrentes mientras se escribe
    return conn


def init_schema(conn: sqlite3.Connection) -> None:
    """Crea las tablas si no existen. Idempotente."""
    with conn:
        conn.executescript(_SCHEMA)


def tables_exist(conn: sqlite3.Connection) -> bool:
    """True si las dos tablas del engine están creadas."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name IN (?, ?)",
        TABLES,
    ).fetchall()
    return len(rows) == len(TABLES)
