"""Repositorio de Jobs sobre el almacén remoto.

Esta clase es la única que decide cómo cambia un job a lo largo de su vida:
fija `created_at`, refresca `last_updated` y recalcula `expires_at` en cada
escritura. El acceso al almacén pasa siempre por `StoreClient`.

Política de errores: los `StoreError` se registran y se convierten en un
resultado degradado (diccionario vacío, `None` o `False`). Las lecturas
priorizan la disponibilidad, así que un almacén caído se ve igual que un
almacén vacío.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from pydantic import ValidationError

from tracker.core.errors import StoreError
from tracker.models.job import Job, JobRow
from tracker.services.expiration import job_expires_at
from tracker.services.store_client import StoreClient, eq, lt, not_null

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class JobService:
    """
    Operaciones de dominio sobre jobs: listar, leer, crear, actualizar,
    borrar y purgar los expirados.
    """

    def __init__(
        self, store: StoreClient, clock: Callable[[], datetime] = utc_now
    ) -> None:
        self.store = store
        self._now = clock

    def get_all_jobs(self) -> Dict[str, Job]:
        """Todos los jobs por id, del más reciente al más antiguo."""
        try:
            rows = self.store.find(order="created_at.desc")
        except StoreError as exc:
            logger.error("get_all_jobs failed: %s", exc)
            return {}

        jobs: Dict[str, Job] = {}
        for raw in rows:
            job = self._to_job(raw)
            if job is not None:
                jobs[job.id] = job
        return jobs

    def get_job(self, job_id: str) -> Optional[Job]:
        """Devuelve un job por id o None si no existe (o si falla el almacén)."""
        try:
            rows = self.store.find([eq("job_id", job_id)])
        except StoreError as exc:
            logger.error("get_job %s failed: %s", job_id, exc)
            return None
        if not rows:
            return None
        return self._to_job(rows[0])

    def create_job(self, job: Job) -> Optional[Job]:
        """Inserta un job nuevo con sus marcas de tiempo del servidor."""
        now = self._now()
        row = JobRow.from_job(job)
        row.created_at = job.created_at or now
        row.last_updated = now
        row.expires_at = job_expires_at(job)

        try:
            stored = self.store.insert(row.to_store())
        except StoreError as exc:
            logger.error("create_job %s failed: %s", job.id, exc)
            return None
        return self._to_job(stored) or row.to_job()

    def update_job(self, job_id: str, job: Job) -> Optional[Job]:
        """Reemplaza los datos de un job; nunca toca `job_id` ni `created_at`."""
        now = self._now()
        expires_at = job_expires_at(job)
        row = JobRow.from_job(job, job_id=job_id)
        row.last_updated = now
        row.expires_at = expires_at

        try:
            self.store.patch(
                [eq("job_id", job_id)],
                row.to_store(exclude={"job_id", "created_at"}),
            )
        except StoreError as exc:
            logger.error("update_job %s failed: %s", job_id, exc)
            return None
        # `created_at` no se envía al almacén, así que tampoco se devuelve el
        # valor que mandó el cliente: el guardado sigue siendo el original
        return job.model_copy(
            update={
                "id": job_id,
                "created_at": None,
                "last_updated": now,
                "expires_at": expires_at,
            }
        )

    def delete_job(self, job_id: str) -> bool:
        """True si el almacén aceptó el borrado (exista o no la fila)."""
        try:
            self.store.delete([eq("job_id", job_id)])
        except StoreError as exc:
            logger.error("delete_job %s failed: %s", job_id, exc)
            return False
        return True

    def purge_expired_jobs(self, now: Optional[datetime] = None) -> bool:
        """Borra los jobs cuyo `expires_at` ya pasó. Idempotente."""
        now = now or self._now()
        stamp = now.isoformat()
        try:
            self.store.delete([lt("expires_at", stamp), not_null("expires_at")])
        except StoreError as exc:
            logger.error("Cleanup failed: %s", exc)
            return False
        logger.info("Cleanup ran at %s", stamp)
        return True

    @staticmethod
    def _to_job(raw: dict) -> Optional[Job]:
        try:
            return JobRow.model_validate(raw).to_job()
        except ValidationError as exc:
            logger.warning("Skipping malformed store row: %s", exc)
            return None
