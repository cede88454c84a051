# tests/test_cli.py
import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from autotranslate.cli import main
from autotranslate.providers.deepl import DeepLProvider


# ------------------------------------------------------------------
# Fixtures
# ------------------------------------------------------------------

@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_file(tmp_path) -> Path:
    """Config con cache y base de datos dentro de tmp_path."""
    f = tmp_path / "config.yaml"
    f.write_text(
        "provider: libre\n"
        f"cache_dir: {tmp_path / 'cache'}\n"
        f"db_path: {tmp_path / 'autotranslate.db'}\n",
        encoding="utf-8",
    )
    return f


@pytest.fixture
def provider():
    p = MagicMock()
    p.name = "libre"
    p.translate.return_value = "Szia"
    p.is_available.return_value = True
    return p


@pytest.fixture
def cli(runner, config_file, provider):
    """Invoca el CLI con el config de test y el provider mockeado."""
    def _invoke(*args, input=None):
        with patch("autotranslate.factory.build_provider", return_value=provider):
            return runner.invoke(main, ["--config", str(config_file), *args], input=input)
    return _invoke


# ------------------------------------------------------------------
# Validaciones de entrada
# ------------------------------------------------------------------

class TestValidaciones:

    def test_config_inexistente(self, runner, tmp_path):
        result = runner.invoke(main, [
            "--config", str(tmp_path / "no_existe.yaml"),
            "translate", "Hello", "--from", "en", "--to", "hu",
        ])
        assert result.exit_code == 1
        assert "no encontrada" in result.output.lower()

    def test_config_invalida(self, runner, tmp_path):
        f = tmp_path / "config.yaml"
        f.write_text("provider: google\n", encoding="utf-8")
        result = runner.invoke(main, ["--config", str(f), "stats"])
        assert result.exit_code == 1
        assert "provider desconocido" in result.output.lower()

    def test_mismo_idioma_rechazado(self, cli, provider):
        result = cli("translate", "Hello", "--from", "en", "--to", "EN")
        assert result.exit_code == 1
        assert "mismo" in result.output.lower()
        provider.translate.assert_not_called()

    def test_lang_con_caracteres_invalidos(self, cli):
        result = cli("translate", "Hello", "--from", "e$n", "--to", "hu")
        assert result.exit_code == 1

    def test_lang_vacio_rechazado(self, cli):
        result = cli("translate", "Hello", "--from", "", "--to", "hu")
        assert result.exit_code == 1
        assert "vacío" in result.output.lower()

    def test_texto_vacio_rechazado(self, cli):
        result = cli("translate", "--from", "en", "--to", "hu", input="   ")
        assert result.exit_code == 1


# ------------------------------------------------------------------
# translate
# ------------------------------------------------------------------

class TestTranslate:

    def test_traduccion_ok(self, cli, provider):
        result = cli("translate", "Hello", "--from", "EN", "--to", "hu")

        assert result.exit_code == 0
        assert "Szia" in result.output
        provider.translate.assert_called_once_with("Hello", "en", "hu")

    def test_lee_de_stdin(self, cli, provider):
        result = cli("translate", "--from", "en", "--to", "hu", input="Hello")
        assert result.exit_code == 0
        assert "Szia" in result.output

    def test_segunda_llamada_sale_del_cache(self, cli, provider):
        cli("translate", "Hello", "--from", "en", "--to", "hu")
        result = cli("translate", "Hello", "--from", "en", "--to", "hu")

        assert "Szia" in result.output
        provider.translate.assert_called_once()

    def test_no_cache_vuelve_a_llamar(self, cli, provider):
        cli("translate", "Hello", "--from", "en", "--to", "hu", "--no-cache")
        cli("translate", "Hello", "--from", "en", "--to", "hu", "--no-cache")
        assert provider.translate.call_count == 2

    def test_fallo_del_provider_devuelve_original_con_aviso(self, cli, provider):
        provider.translate.return_value = None

        result = cli("translate", "Hello", "--from", "en", "--to", "hu")

        assert result.exit_code == 0
        assert "Hello" in result.output
        assert "no pudo traducir" in result.output

    def test_quota_superada_devuelve_original_con_aviso(self, runner, tmp_path, provider):
        f = tmp_path / "config.yaml"
        f.write_text(
            "monthly_limits:\n  libre: 3\n"
            f"cache_dir: {tmp_path / 'cache'}\n"
            f"db_path: {tmp_path / 'at.db'}\n",
            encoding="utf-8",
        )
        with patch("autotranslate.factory.build_provider", return_value=provider):
            result = runner.invoke(main, [
                "--config", str(f), "translate", "Hello", "--from", "en", "--to", "hu",
            ])

        assert result.exit_code == 0
        assert "Hello" in result.output
        assert "límite mensual" in result.output.lower()
        provider.translate.assert_not_called()


# ------------------------------------------------------------------
# bulk
# ------------------------------------------------------------------

class TestBulk:

    def test_bulk_devuelve_json(self, cli, tmp_path):
        items = tmp_path / "posts.json"
        items.write_text(json.dumps([{"post_id": 1, "title": "Hi", "content": "Body"}]),
                         encoding="utf-8")

        result = cli("bulk", "--input", str(items), "--from", "en", "--to", "hu",
                     "--content-type", "title")

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data == [{"post_id": 1, "title": "Szia", "content": None}]

    def test_input_invalido(self, cli, tmp_path):
        items = tmp_path / "posts.json"
        items.write_text(json.dumps([{"title": "sin post_id"}]), encoding="utf-8")

        result = cli("bulk", "--input", str(items), "--from", "en", "--to", "hu")

        assert result.exit_code == 1
        assert "input inválido" in result.output.lower()


# ------------------------------------------------------------------
# Historial
# ------------------------------------------------------------------

class TestHistory:

    def test_historial_vacio(self, cli):
        result = cli("history")
        assert result.exit_code == 0
        assert "sin entradas" in result.output.lower()

    def test_historial_muestra_traducciones(self, cli):
        cli("translate", "Hello", "--from", "en", "--to", "hu")

        result = cli("history", "--lang", "hu")

        assert result.exit_code == 0
        assert "Hello" in result.output
        assert "Szia" in result.output
        assert "1 entradas" in result.output

    def test_clear_history(self, cli):
        cli("translate", "Hello", "--from", "en", "--to", "hu")
        result = cli("clear-history", "--days", "30")
        assert result.exit_code == 0
        assert "Borradas 0" in result.output


# ------------------------------------------------------------------
# Cache
# ------------------------------------------------------------------

class TestCacheCommands:

    def test_clear_cache_language_sin_lang(self, cli):
        result = cli("clear-cache", "--scope", "language")
        assert result.exit_code == 1
        assert "--lang" in result.output

    def test_clear_cache_language(self, cli):
        cli("translate", "Hello", "--from", "en", "--to", "hu")
        result = cli("clear-cache", "--scope", "language", "--lang", "hu")
        assert result.exit_code == 0
        assert "Eliminadas 1" in result.output

    def test_clear_cache_scope_invalido(self, cli):
        result = cli("clear-cache", "--scope", "todo")
        assert result.exit_code == 2

    def test_cache_info(self, cli):
        cli("translate", "Hello", "--from", "en", "--to", "hu")
        result = cli("cache-info")
        assert result.exit_code == 0
        assert "Entradas   : 1" in result.output

    def test_sweep_una_vez(self, cli):
        result = cli("sweep")
        assert result.exit_code == 0
        assert "Limpiadas 0" in result.output


# ------------------------------------------------------------------
# Stats, uso y diagnóstico
# ------------------------------------------------------------------

class TestStatsYUso:

    def test_stats(self, cli):
        cli("translate", "Hello", "--from", "en", "--to", "hu")

        result = cli("stats")

        assert result.exit_code == 0
        assert "LibreTranslate" in result.output
        assert "hu" in result.output
        assert "1,000,000" in result.output
        assert "999,995" in result.output

    def test_usage(self, cli):
        cli("translate", "Hello", "--from", "en", "--to", "hu")

        result = cli("usage")

        assert result.exit_code == 0
        assert "DeepL Free" in result.output
        assert "DeepL Pro" in result.output

    def test_usage_muestra_el_uso_reportado_por_deepl(self, runner, config_file):
        deepl = MagicMock(spec=DeepLProvider)
        deepl.name = "deepl_free"
        deepl.get_usage.return_value = {"character_count": 1200, "character_limit": 500000}

        with patch("autotranslate.factory.build_provider", return_value=deepl):
            result = runner.invoke(main, ["--config", str(config_file), "usage"])

        assert result.exit_code == 0
        assert "Según DeepL" in result.output
        assert "1,200" in result.output

    def test_usage_sin_historico(self, cli):
        result = cli("usage")
        assert "sin histórico" in result.output.lower()

    def test_check_disponible(self, cli):
        result = cli("check")
        assert result.exit_code == 0
        assert "disponible" in result.output

    def test_check_no_disponible(self, cli, provider):
        provider.is_available.return_value = False
        result = cli("check")
        assert result.exit_code == 2
        assert "no responde" in result.output
