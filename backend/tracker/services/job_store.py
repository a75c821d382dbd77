"""Instancia compartida del repositorio de Jobs.

No hay estado de jobs en memoria: el almacén remoto es la única fuente de
verdad. Lo único que se comparte por proceso es el cliente HTTP (y su pool
de conexiones), construido a partir de la configuración la primera vez que
se pide. Los routers lo reciben vía `Depends(get_job_service)`, lo que
permite sustituirlo en los tests con `app.dependency_overrides`.
"""

from functools import lru_cache

from tracker.core.config import get_settings
from tracker.services.job_service import JobService
from tracker.services.store_client import StoreClient


@lru_cache
def get_job_service() -> JobService:
    settings = get_settings()
    store = StoreClient(
        base_url=settings.supabase_url,
        api_key=settings.supabase_key,
        table=settings.supabase_table,
        timeout=settings.store_timeout_seconds,
    )
    return JobService(store)
