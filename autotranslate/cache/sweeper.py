# cache/sweeper.py
import logging
import threading
from typing import Optional

from autotranslate.cache.store import CacheStore

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 24 * 60 * 60


class CacheSweeper:
    """
    Tarea periódica que borra entradas expiradas del cache.
    Vive en su propio hilo daemon, con ciclo de vida independiente
    de las peticiones de traducción. Solo borra lo ya expirado, así que
    puede correr en paralelo con el tráfico normal.
    """

    def __init__(self, store: CacheStore, interval_seconds: float = DEFAULT_INTERVAL_SECONDS):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds debe ser positivo")
        self._store    = store
        self._interval = interval_seconds
        self._stop     = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.last_cleared: Optional[int] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target = self._loop,
            name   = "autotranslate-cache-sweeper",
            daemon = True,
        )
        self._thread.start()
        logger.info("Sweeper de cache arrancado (cada %.0fs)", self._interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def run_once(self) -> int:
        """Un sweep síncrono. Un fallo se registra y no mata el loop."""
        try:
            cleared = self._store.clear_expired()
        except Exception:
            logger.exception("Falló el sweep del cache")
            return 0
        self.last_cleared = cleared
        return cleared

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Bloquea hasta que se pida stop(). Útil para correr en foreground."""
        return self._stop.wait(timeout)

    def _loop(self) -> None:
        # Primer sweep inmediato; luego uno por intervalo hasta stop()
        while not self._stop.is_set():
            self.run_once()
            if self._stop.wait(self._interval):
                break
