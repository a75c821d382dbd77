"""Arranque del proceso: valida la configuración y lanza uvicorn.

Sin `SUPABASE_URL` / `SUPABASE_KEY` el proceso termina con código 1 antes de
abrir el puerto.
"""

from __future__ import annotations

import uvicorn

from tracker.core.config import get_settings
from tracker.core.errors import ConfigurationError
from tracker.core.logging_config import setup_logging


def main() -> None:
    try:
        settings = get_settings()
    except ConfigurationError as exc:
        raise SystemExit(f"Missing store configuration: {exc}")

    setup_logging(settings.log_level)
    uvicorn.run(
        "tracker.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,  # ya configurado con setup_logging
    )


if __name__ == "__main__":
    main()
