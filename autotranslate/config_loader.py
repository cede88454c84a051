# config_loader.py
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from autotranslate.cache.store import DEFAULT_TTL_DAYS
from autotranslate.providers.models import (
    DEFAULT_LIBRE_URL,
    DEFAULT_MONTHLY_LIMITS,
    LIBRE,
    PROVIDER_IDS,
    TRANSLATE_TIMEOUT_SECONDS,
)

_DEFAULT_CONFIG_PATH = Path.home() / ".autotranslate" / "config.yaml"
_DEFAULT_CACHE_DIR   = Path.home() / ".autotranslate" / "cache"

_MIN_TTL_DAYS = 1
_MAX_TTL_DAYS = 365


class ConfigError(ValueError):
    """El config existe pero tiene valores inválidos."""
    pass


@dataclass
class Settings:
    """
    Configuración del engine. Se carga desde ~/.autotranslate/config.yaml.
    Los monthly_limits del config se mezclan sobre los defaults.
    """
    provider:             str            = LIBRE
    libre_url:            str            = DEFAULT_LIBRE_URL
    libre_api_key:        Optional[str]  = None
    deepl_api_key:        Optional[str]  = None
    cache_dir:            Path           = _DEFAULT_CACHE_DIR
    cache_ttl_days:       int            = DEFAULT_TTL_DAYS
    db_path:              Optional[str]  = None   # None: AUTOTRANSLATE_DB_PATH o el default
    sweep_interval_hours: float          = 24
    timeout_seconds:      int            = TRANSLATE_TIMEOUT_SECONDS
    monthly_limits:       dict[str, int] = field(
        default_factory=lambda: dict(DEFAULT_MONTHLY_LIMITS)
    )


def load_settings(config_path: Optional[str] = None) -> Settings:
    """
    Carga la configuración desde YAML.
    Resuelve variables de entorno en los valores (${VAR}).
    """
    path = Path(config_path or os.environ.get("AUTOTRANSLATE_CONFIG_PATH") or _DEFAULT_CONFIG_PATH)

    if not path.exists():
        raise FileNotFoundError(
            f"Config no encontrada en {path}. "
            f"Copia config.example.yaml a ~/.autotranslate/config.yaml"
        )

    with path.open(encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: se esperaba un mapping en la raíz del YAML")

    return parse_settings(raw)


def parse_settings(raw: dict) -> Settings:
    """Valida un dict ya cargado. Separado de load_settings para testear sin ficheros."""
    provider = str(raw.get("provider", LIBRE)).strip().lower()
    if provider not in PROVIDER_IDS:
        raise ConfigError(
            f"provider desconocido: '{provider}'. Opciones: {', '.join(PROVIDER_IDS)}"
        )

    ttl_days = _as_int(raw.get("cache_ttl_days", DEFAULT_TTL_DAYS), "cache_ttl_days")
    if not _MIN_TTL_DAYS <= ttl_days <= _MAX_TTL_DAYS:
        raise ConfigError(
            f"cache_ttl_days debe estar entre {_MIN_TTL_DAYS} y {_MAX_TTL_DAYS}: {ttl_days}"
        )

    sweep_hours = raw.get("sweep_interval_hours", 24)
    if not isinstance(sweep_hours, (int, float)) or isinstance(sweep_hours, bool) or sweep_hours <= 0:
        raise ConfigError(f"sweep_interval_hours debe ser un número positivo: {sweep_hours!r}")

    timeout = _as_int(raw.get("timeout_seconds", TRANSLATE_TIMEOUT_SECONDS), "timeout_seconds")
    if timeout <= 0:
        raise ConfigError(f"timeout_seconds debe ser positivo: {timeout}")

    limits = dict(DEFAULT_MONTHLY_LIMITS)
    custom = raw.get("monthly_limits") or {}
    if not isinstance(custom, dict):
        raise ConfigError("monthly_limits debe ser un mapping provider -> caracteres")
    for name, value in custom.items():
        limit = _as_int(value, f"monthly_limits.{name}")
        if limit < 0:
            raise ConfigError(f"monthly_limits.{name} no puede ser negativo")
        limits[str(name)] = limit

    cache_dir = _resolve_env(raw.get("cache_dir")) or str(_DEFAULT_CACHE_DIR)
    db_path   = _resolve_env(raw.get("db_path"))

    return Settings(
        provider             = provider,
        libre_url            = _resolve_env(raw.get("libre_url")) or DEFAULT_LIBRE_URL,
        libre_api_key        = _resolve_env(raw.get("libre_api_key")),
        deepl_api_key        = _resolve_env(raw.get("deepl_api_key")),
        cache_dir            = Path(cache_dir).expanduser(),
        cache_ttl_days       = ttl_days,
        db_path              = str(Path(db_path).expanduser()) if db_path and db_path != ":memory:" else db_path,
        sweep_interval_hours = float(sweep_hours),
        timeout_seconds      = timeout,
        monthly_limits       = limits,
    )


def _as_int(value, key: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{key} debe ser un entero: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} debe ser un entero: {value!r}") from None


def _resolve_env(value: Optional[str]) -> Optional[str]:
    """Expande ${VAR_NAME} desde el entorno."""
    if value is None:
        return None
    value = str(value)
    if not value.startswith("${"):
        return value or None
    var_name = value.strip("${}").strip()
    return os.environ.get(var_name) or None
