# providers/base.py
from abc import ABC, abstractmethod


class BaseProvider(ABC):
    """
    Contrato que deben cumplir todos los adaptadores.
    El Orchestrator solo habla con esta interfaz.
    Nunca importa libre.py ni deepl.py directamente.
    """

    @abstractmethod
    def translate(self, text: str, source_lang: str, target_lang: str) -> str | None:
        """
        Traduce el texto y devuelve la traducción.
        Nunca lanza excepción: cualquier fallo (red, auth, idioma no
        soportado, respuesta rota) se registra en el log del adaptador
        y se devuelve None.

        Texto vacío o mismo idioma no es un fallo de red: cada adaptador
        decide. LibreTranslate devuelve el texto tal cual; DeepL devuelve
        None sin llamar a la API. El Orchestrator corta esos casos antes
        de llegar aquí, así que ninguno de los dos valores llega al ledger.
        """
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """Sondeo rápido del backend (timeout corto). Sin efectos en quota."""
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Identificador del provider. Debe coincidir con translation_stats.provider."""
        ...
