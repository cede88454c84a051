# autotranslate/cli.py
import json
import logging
import sys

import click
from dotenv import load_dotenv

from autotranslate.admin import CACHE_SCOPES, CONTENT_TYPES, BulkItem
from autotranslate.cache.models import format_bytes
from autotranslate.config_loader import ConfigError
from autotranslate.factory import Engine, build_engine
from autotranslate.orchestrator import OutcomeStatus, TranslationRequest
from autotranslate.providers.models import PROVIDER_LABELS


# Carga .env una sola vez, antes que cualquier otra cosa
load_dotenv()


# ------------------------------------------------------------------
# Grupo raíz
# ------------------------------------------------------------------

@click.group()
@click.version_option(package_name="autotranslate")
@click.option(
    "--config", "config_path",
    type    = click.Path(dir_okay=False),
    default = None,
    help    = "Ruta al config.yaml (por defecto ~/.autotranslate/config.yaml)",
)
@click.option("--verbose", "-v", is_flag=True, help="Log de depuración por stderr")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool):
    """
    autotranslate — traducción con cache, quotas mensuales e historial.

    Traduce con LibreTranslate o DeepL, reutiliza traducciones cacheadas
    y nunca rompe el contenido si el provider falla.
    """
    logging.basicConfig(
        level  = logging.DEBUG if verbose else logging.WARNING,
        format = "%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream = sys.stderr,
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


def _engine(ctx: click.Context) -> Engine:
    """Construye el engine la primera vez que un comando lo necesita."""
    if "engine" not in ctx.obj:
        try:
            engine = build_engine(config_path=ctx.obj.get("config_path"))
        except (FileNotFoundError, ConfigError, ValueError) as e:
            _abort(str(e))
        ctx.obj["engine"] = engine
        ctx.call_on_close(engine.close)
    return ctx.obj["engine"]


# ------------------------------------------------------------------
# autotranslate translate
# ------------------------------------------------------------------

@main.command()
@click.argument("text", required=False)
@click.option("--from", "source_lang", required=True, metavar="LANG", help="Idioma de origen (ej: en)")
@click.option("--to", "target_lang", required=True, metavar="LANG", help="Idioma de destino (ej: hu)")
@click.option("--no-cache", is_flag=True, help="No leer ni escribir el cache")
@click.option("--post-id", type=int, default=None, help="Post asociado (para el historial)")
@click.option("--user-id", type=int, default=None, help="Usuario asociado (para el historial)")
@click.pass_context
def translate(ctx, text, source_lang, target_lang, no_cache, post_id, user_id):
    """Traduce TEXT (o stdin si se omite). Si falla, devuelve el original."""
    if text is None:
        text = click.get_text_stream("stdin").read()

    if not text.strip():
        _abort("No hay texto para traducir.")

    _validate_lang(source_lang, "--from")
    _validate_lang(target_lang, "--to")

    if source_lang.lower() == target_lang.lower():
        _abort("El idioma de origen y destino no pueden ser el mismo.")

    outcome = _engine(ctx).orchestrator.process(TranslationRequest(
        text        = text,
        source_lang = source_lang.lower(),
        target_lang = target_lang.lower(),
        use_cache   = not no_cache,
        post_id     = post_id,
        user_id     = user_id,
    ))

    click.echo(outcome.text)

    if outcome.status == OutcomeStatus.QUOTA_EXCEEDED:
        _warn("Límite mensual superado: se devolvió el texto original.")
    elif outcome.status == OutcomeStatus.PROVIDER_FAILED:
        _warn("El provider no pudo traducir: se devolvió el texto original.")


# ------------------------------------------------------------------
# autotranslate bulk
# ------------------------------------------------------------------

@main.command()
@click.option(
    "--input", "input_file",
    required = True,
    type     = click.File("r", encoding="utf-8"),
    help     = "JSON con una lista de {post_id, title, content}",
)
@click.option("--from", "source_lang", required=True, metavar="LANG")
@click.option("--to", "target_lang", required=True, metavar="LANG")
@click.option(
    "--content-type",
    default      = "both",
    show_default = True,
    type         = click.Choice(CONTENT_TYPES, case_sensitive=False),
)
@click.pass_context
def bulk(ctx, input_file, source_lang, target_lang, content_type):
    """Traducción masiva de posts. Escribe el resultado como JSON."""
    _validate_lang(source_lang, "--from")
    _validate_lang(target_lang, "--to")

    try:
        raw = json.load(input_file)
        items = [
            BulkItem(
                post_id = int(entry["post_id"]),
                title   = entry.get("title", "") or "",
                content = entry.get("content", "") or "",
            )
            for entry in raw
        ]
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        _abort(f"Input inválido: {e}")

    results = _engine(ctx).admin.bulk_translate(
        items, source_lang.lower(), target_lang.lower(), content_type.lower(),
    )
    click.echo(json.dumps(
        [{"post_id": r.post_id, "title": r.title, "content": r.content} for r in results],
        ensure_ascii = False,
        indent       = 2,
    ))


# ------------------------------------------------------------------
# Historial
# ------------------------------------------------------------------

@main.command()
@click.option("--page", default=1, show_default=True, type=click.IntRange(min=1))
@click.option("--per-page", default=20, show_default=True, type=click.IntRange(1, 500))
@click.option("--lang", default=None, help="Filtra por idioma (origen o destino)")
@click.option("--provider", default=None, help="Filtra por provider")
@click.pass_context
def history(ctx, page, per_page, lang, provider):
    """Historial de traducciones, más reciente primero."""
    result = _engine(ctx).admin.history(page=page, per_page=per_page,
                                        language=lang, provider=provider)

    if not result.records:
        click.echo("[autotranslate] Sin entradas de historial.")
        return

    for r in result.records:
        click.echo(
            f"{r.created_at}  {r.source_lang}→{r.target_lang}  {r.provider:<10} "
            f"{r.char_count:>6} chars  {_preview(r.original_text)} → {_preview(r.translated_text)}"
        )
    pages = (result.total + result.per_page - 1) // result.per_page
    click.echo(f"[autotranslate] Página {result.page}/{pages} — {result.total} entradas")


@main.command("clear-history")
@click.option("--days", default=30, show_default=True, type=click.IntRange(min=0),
              help="Borra entradas con más de N días")
@click.pass_context
def clear_history(ctx, days):
    """Borra el historial antiguo."""
    deleted = _engine(ctx).admin.clear_history(days)
    click.echo(f"[autotranslate] Borradas {deleted} entradas con más de {days} días")


# ------------------------------------------------------------------
# Cache
# ------------------------------------------------------------------

@main.command("clear-cache")
@click.option("--scope", required=True, type=click.Choice(CACHE_SCOPES, case_sensitive=False))
@click.option("--lang", default=None, help="Idioma (solo con --scope language)")
@click.pass_context
def clear_cache(ctx, scope, lang):
    """Vacía el cache: todo, solo lo expirado, o un idioma."""
    if scope == "language" and not lang:
        _abort("--scope language necesita --lang.")
    try:
        cleared = _engine(ctx).admin.clear_cache(scope.lower(), lang)
    except ValueError as e:
        _abort(str(e))
    click.echo(f"[autotranslate] Eliminadas {cleared} entradas del cache")


@main.command("cache-info")
@click.pass_context
def cache_info(ctx):
    """Número de entradas y tamaño del cache."""
    engine = _engine(ctx)
    stats  = engine.admin.cache_stats()
    click.echo(f"[autotranslate]   Entradas   : {stats.total_files}")
    click.echo(f"[autotranslate]   Tamaño     : {format_bytes(stats.total_size)}")
    click.echo(f"[autotranslate]   Directorio : {engine.cache.cache_dir}")


@main.command()
@click.option("--loop", is_flag=True, help="Sigue corriendo y barre cada intervalo")
@click.pass_context
def sweep(ctx, loop):
    """Borra las entradas expiradas del cache."""
    sweeper = _engine(ctx).sweeper

    if not loop:
        cleared = sweeper.run_once()
        click.echo(f"[autotranslate] Limpiadas {cleared} entradas expiradas")
        return

    sweeper.start()
    click.echo("[autotranslate] Sweeper en marcha. Ctrl+C para parar.")
    try:
        sweeper.wait()
    except KeyboardInterrupt:
        click.echo("\n[autotranslate] Parando sweeper...")
    finally:
        sweeper.stop()


# ------------------------------------------------------------------
# Stats y uso
# ------------------------------------------------------------------

@main.command()
@click.pass_context
def stats(ctx):
    """Uso del mes actual del provider activo, por idioma."""
    report = _engine(ctx).admin.stats()

    click.echo("")
    click.echo("─" * 50)
    click.echo(f"[autotranslate] {_label(report.provider)} — {report.month}")
    for lang in report.languages:
        click.echo(
            f"[autotranslate]   {lang.language:<4} {lang.char_count:>10} chars  "
            f"{lang.translation_count:>5} trad.  {lang.cache_hits:>5} hits  "
            f"{lang.cache_misses:>5} misses"
        )
    click.echo(f"[autotranslate]   Total      : {report.total_chars:,}")
    click.echo(f"[autotranslate]   Límite     : {report.limit:,}")
    click.echo(f"[autotranslate]   Restante   : {report.remaining:,}")
    click.echo("─" * 50)


@main.command()
@click.option("--months", default=6, show_default=True, type=click.IntRange(min=1))
@click.pass_context
def usage(ctx, months):
    """Uso y límites de todos los providers, más el histórico mensual."""
    admin = _engine(ctx).admin

    for item in admin.provider_usage():
        color = {"danger": "red", "warning": "yellow"}.get(item.level)
        line = (
            f"[autotranslate] {_label(item.provider):<15} {item.used:>12,} / {item.limit:,} "
            f"({item.percentage:.1f}%) — restante {item.remaining:,}"
        )
        click.echo(click.style(line, fg=color) if color else line)

    remote = admin.remote_usage()
    if remote:
        click.echo(
            f"[autotranslate] Según DeepL      {remote.get('character_count', 0):>12,} / "
            f"{remote.get('character_limit', 0):,}"
        )

    rows = admin.usage_history(months)
    if not rows:
        click.echo("[autotranslate] Sin histórico de uso.")
        return

    click.echo("")
    for row in rows:
        click.echo(f"[autotranslate]   {row.month}  {_label(row.provider):<15} {row.total_chars:>12,}")


@main.command()
@click.pass_context
def check(ctx):
    """Diagnóstico: provider, cache y base de datos."""
    engine = _engine(ctx)
    info   = engine.admin.debug_info()

    available = engine.provider.is_available()
    click.echo(f"[autotranslate]   Provider   : {_label(info['provider'])} "
               f"({_ok(available, 'disponible', 'no responde')})")
    click.echo(f"[autotranslate]   Cache      : {info['cache_dir']} "
               f"({_ok(info['cache_writable'], 'escribible', 'sin permisos')})")
    click.echo(f"[autotranslate]   Tablas     : {_ok(info['tables_exist'], 'creadas', 'faltan')}")
    click.echo(f"[autotranslate]   Entradas   : {info['cache_files']} "
               f"({format_bytes(info['cache_size'])})")

    if not available:
        sys.exit(2)


# ------------------------------------------------------------------
# Helpers de validación
# ------------------------------------------------------------------

def _validate_lang(code: str, option: str) -> None:
    """Valida que el código de idioma sea razonable."""
    code = code.strip()

    if not code:
        _abort(f"{option} no puede estar vacío.")

    if not code.replace("-", "").isalpha():
        _abort(
            f"{option} contiene caracteres inválidos: '{code}'\n"
            f"Ejemplos válidos: en, hu, de, pt-br"
        )

    if len(code) > 10:
        _abort(f"{option}: código de idioma demasiado largo: '{code}'")


# ------------------------------------------------------------------
# Helpers de output
# ------------------------------------------------------------------

def _label(provider: str) -> str:
    return PROVIDER_LABELS.get(provider, provider)


def _preview(text: str, width: int = 40) -> str:
    flat = " ".join(text.split())
    return flat if len(flat) <= width else flat[: width - 1] + "…"


def _ok(flag: bool, yes: str, no: str) -> str:
    return click.style(f"✓ {yes}", fg="green") if flag else click.style(f"✗ {no}", fg="red")


def _warn(message: str) -> None:
    click.echo(click.style(f"[autotranslate] ⚠ {message}", fg="yellow"), err=True)


def _abort(message: str) -> None:
    """Error de validación: culpa del usuario."""
    click.echo(click.style(f"[autotranslate] Error: {message}", fg="red"), err=True)
    sys.exit(1)
