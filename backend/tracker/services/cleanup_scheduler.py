"""Limpieza periódica de jobs expirados.

`CleanupScheduler` es un handle explícito: se crea y arranca en el
`lifespan` de la aplicación y se detiene al apagarla. Ejecuta la purga una
vez nada más arrancar y después cada `interval_seconds`, en un hilo propio e
independiente del tráfico HTTP.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60 * 60


class CleanupScheduler:
    def __init__(
        self,
        purge: Callable[[], object],
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.purge = purge
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._running = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop, name="cleanup-scheduler", daemon=True
        )
        self._thread.start()
        logger.info(
            "Auto-cleanup of expired jobs enabled (every %ss)", self.interval_seconds
        )

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def run_once(self) -> bool:
        """Ejecuta una purga; devuelve False si ya había otra en curso."""
        if not self._running.acquire(blocking=False):
            logger.warning("Previous cleanup still running, skipping this tick")
            return False
        try:
            self.purge()
        except Exception:
            # Un fallo en la purga nunca debe matar el hilo
            logger.exception("Cleanup run failed")
        finally:
            self._running.release()
        return True

    def _loop(self) -> None:
        while not self._stop.is_set():
            self.run_once()
            if self._stop.wait(self.interval_seconds):
                break
