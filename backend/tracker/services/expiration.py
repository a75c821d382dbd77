"""Cálculo de la fecha de expiración de un job.

Función pura: sin red ni efectos secundarios. Un job expira 24 horas
(`GRACE_PERIOD_MINUTES`) después de su fin estimado, que es el inicio más la
suma de las duraciones de los segmentos y de los minutos de retraso.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Iterable, Optional

if TYPE_CHECKING:
    from tracker.models.job import Job

GRACE_PERIOD_MINUTES = 24 * 60


def _minutes(entries: Optional[Iterable[Any]], field: str) -> float:
    """Suma `field` en cada entrada; los valores ausentes cuentan como 0."""
    total = 0.0
    for entry in entries or []:
        if isinstance(entry, dict):
            value = entry.get(field)
        else:
            value = getattr(entry, field, None)
        total += value or 0
    return total


def compute_expires_at(
    start_time: Optional[datetime],
    segments: Optional[Iterable[Any]] = None,
    delays: Optional[Iterable[Any]] = None,
) -> Optional[datetime]:
    """Inicio + segmentos + retrasos + 24 h.

    Lanza `ValueError` si el resultado no cabe en un `datetime`.
    """
    if start_time is None:
        return None
    if start_time.tzinfo is None:
        start_time = start_time.replace(tzinfo=timezone.utc)

    total = _minutes(segments, "duration") + _minutes(delays, "minutes")
    try:
        return start_time + timedelta(minutes=total + GRACE_PERIOD_MINUTES)
    except (OverflowError, ValueError) as exc:
        raise ValueError("computed expiration is out of range") from exc


def job_expires_at(job: "Job") -> Optional[datetime]:
    return compute_expires_at(job.start_time, job.segments, job.delays)
