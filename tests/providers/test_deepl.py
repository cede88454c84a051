# tests/providers/test_deepl.py
from unittest.mock import MagicMock

import pytest
import requests

from autotranslate.providers.deepl import DeepLProvider, is_free_key, map_language_code
from autotranslate.providers.models import ProviderConfig

FREE_KEY = "abc-123:fx"
PRO_KEY  = "abc-123"


def make_response(status: int = 200, json_data=None):
    response = MagicMock()
    response.status_code = status
    response.json.return_value = json_data
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"HTTP {status}")
    return response


def make_provider(api_key=FREE_KEY, response=None, raises=None):
    session = MagicMock()
    if raises:
        session.post.side_effect = raises
        session.get.side_effect = raises
    else:
        session.post.return_value = response
        session.get.return_value = response
    config = ProviderConfig(name="deepl_free", api_key=api_key)
    return DeepLProvider(config, session=session), session


def ok_response(text="Szia"):
    return make_response(json_data={"translations": [{"text": text}]})


# ------------------------------------------------------------------
# Tier y endpoint
# ------------------------------------------------------------------

class TestTier:

    def test_key_free_por_sufijo(self):
        assert is_free_key(FREE_KEY) is True
        assert is_free_key(PRO_KEY) is False

    def test_key_free_usa_endpoint_free(self):
        provider, _ = make_provider(FREE_KEY)
        assert provider.name == "deepl_free"
        assert provider.api_url == "https://api-free.deepl.com/v2/translate"

    def test_key_pro_usa_endpoint_pro(self):
        provider, _ = make_provider(PRO_KEY)
        assert provider.name == "deepl_pro"
        assert provider.api_url == "https://api.deepl.com/v2/translate"

    def test_sin_key_lanza_error(self):
        with pytest.raises(ValueError):
            DeepLProvider(ProviderConfig(name="deepl_free", api_key=None))


# ------------------------------------------------------------------
# Traducción
# ------------------------------------------------------------------

class TestTranslate:

    def test_traduccion_ok(self):
        provider, session = make_provider(response=ok_response("Szia"))

        assert provider.translate("Hello", "en", "hu") == "Szia"

        args, kwargs = session.post.call_args
        assert args[0] == "https://api-free.deepl.com/v2/translate"
        assert kwargs["headers"] == {"Authorization": f"DeepL-Auth-Key {FREE_KEY}"}
        assert kwargs["data"] == {
            "text":                "Hello",
            "source_lang":         "EN",
            "target_lang":         "HU",
            "preserve_formatting": "1",
        }
        assert kwargs["timeout"] == 30

    def test_idioma_no_mapeado_rechaza_sin_red(self):
        provider, session = make_provider(response=ok_response())

        assert provider.translate("Hello", "en", "sw") is None
        assert provider.translate("Hello", "xx", "hu") is None
        session.post.assert_not_called()

    def test_auth_error_devuelve_none(self):
        provider, _ = make_provider(response=make_response(403, {"message": "Forbidden"}))
        assert provider.translate("Hello", "en", "hu") is None

    def test_error_de_red_devuelve_none(self):
        provider, _ = make_provider(raises=requests.ConnectionError("sin red"))
        assert provider.translate("Hello", "en", "hu") is None

    def test_respuesta_malformada_devuelve_none(self):
        provider, _ = make_provider(response=make_response(json_data={"translations": []}))
        assert provider.translate("Hello", "en", "hu") is None

    def test_campo_message_devuelve_none(self):
        provider, _ = make_provider(response=make_response(400, {"message": "Bad request"}))
        assert provider.translate("Hello", "en", "hu") is None

    def test_mismo_idioma_no_llama_a_la_red(self):
        provider, session = make_provider(response=ok_response())
        assert provider.translate("Hello", "en", "en") is None
        session.post.assert_not_called()


# ------------------------------------------------------------------
# Disponibilidad y uso
# ------------------------------------------------------------------

class TestUsage:

    def test_is_available_consulta_usage(self):
        provider, session = make_provider(response=make_response(200, {}))

        assert provider.is_available() is True
        args, kwargs = session.get.call_args
        assert args[0] == "https://api-free.deepl.com/v2/usage"
        assert kwargs["timeout"] == 5

    def test_no_disponible_con_403(self):
        provider, _ = make_provider(response=make_response(403, {}))
        assert provider.is_available() is False

    def test_get_usage(self):
        usage = {"character_count": 1200, "character_limit": 500000}
        provider, session = make_provider(response=make_response(200, usage))

        assert provider.get_usage() == usage
        assert session.get.call_args.kwargs["timeout"] == 10

    def test_get_usage_error_devuelve_none(self):
        provider, _ = make_provider(response=make_response(500, {}))
        assert provider.get_usage() is None


class TestLanguageMap:

    def test_codigos_en_mayusculas(self):
        assert map_language_code("hu") == "HU"
        assert map_language_code("EN") == "EN"

    def test_codigo_desconocido(self):
        assert map_language_code("sw") is None
        assert map_language_code("") is None
