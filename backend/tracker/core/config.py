"""Carga de configuración de la aplicación.

Usa `pydantic-settings` para leer valores desde `.env` o variables de
entorno. Las credenciales del almacén (Supabase) son obligatorias: sin ellas
el proceso no debe arrancar, así que `get_settings` lanza
`ConfigurationError` en vez de devolver una configuración a medias.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from tracker.core.errors import ConfigurationError

# backend/static/, junto al paquete
DEFAULT_STATIC_DIR = Path(__file__).resolve().parents[2] / "static"


class Settings(BaseSettings):
    """Contenedor tipado para todas las opciones configurables."""

    app_name: str = "Road Surfacing Tracker API"

    # Servidor HTTP
    host: str = "0.0.0.0"
    port: int = 3000

    # Almacén remoto (REST de Supabase). Sin valor por defecto: son obligatorias.
    supabase_url: str
    supabase_key: str
    supabase_table: str = "jobs"
    store_timeout_seconds: float = 10.0

    # Limpieza periódica de jobs expirados
    cleanup_enabled: bool = True
    cleanup_interval_seconds: float = 3600.0

    # Página estática servida en "/"
    static_dir: Path = DEFAULT_STATIC_DIR
    index_file: str = "index.html"

    # CORS: lista separada por comas, "*" para cualquier origen
    allowed_origins: str = "*"

    log_level: str = "INFO"

    # Le indicamos a Pydantic que lea automáticamente las variables de entorno
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    @property
    def origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def index_path(self) -> Path:
        return self.static_dir / self.index_file


@lru_cache
def get_settings() -> Settings:
    """Crea (y memoriza) la configuración de forma perezosa.

    Usamos `lru_cache` para que sólo se construya una instancia por proceso,
    evitando relecturas repetidas de `.env`. Si faltan las credenciales del
    almacén se lanza `ConfigurationError`.
    """

    try:
        settings = Settings()
    except ValidationError as exc:
        missing = [
            str(err["loc"][0]).upper()
            for err in exc.errors()
            if err.get("type") == "missing" and err.get("loc")
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            ) from exc
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc

    if not settings.supabase_url.strip() or not settings.supabase_key.strip():
        raise ConfigurationError("SUPABASE_URL and SUPABASE_KEY must not be empty")

    return settings
