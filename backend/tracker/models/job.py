"""Definición del modelo de datos de un Job.

Un job es una obra planificada: empieza en `start_time`, avanza por una
secuencia ordenada de segmentos (cada uno con su duración en minutos) y
acumula retrasos. Hay dos formas del mismo dato:

- `Job`: lo que ve el cliente HTTP, con nombres camelCase.
- `JobRow`: la fila tal y como vive en el almacén, con columnas snake_case.

Las reglas por defecto (listas vacías, `next_segment_id = 6`) se aplican en
la frontera, de modo que el resto del código nunca ve valores nulos ahí.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_serializer,
    model_validator,
)
from pydantic.alias_generators import to_camel

from tracker.services.expiration import compute_expires_at

DEFAULT_NEXT_SEGMENT_ID = 6

Number = Union[int, float]


class _Entry(BaseModel):
    """Elemento de lista que conserva los campos extra tal cual llegan."""

    model_config = ConfigDict(extra="allow")

    @model_serializer(mode="wrap")
    def omit_missing(self, handler):
        # No inventamos claves: un `duration` ausente sigue ausente al serializar
        data = handler(self)
        return {
            key: value
            for key, value in data.items()
            if value is not None or key in self.model_fields_set
        }


class Segment(_Entry):
    """Fase de trabajo con su duración en minutos."""

    duration: Optional[Number] = None

    @field_validator("duration")
    @classmethod
    def non_negative(cls, value: Optional[Number]) -> Optional[Number]:
        if value is not None and value < 0:
            raise ValueError("segment duration must be non-negative")
        return value


class Delay(_Entry):
    """Retraso que suma minutos al tiempo total del job."""

    minutes: Optional[Number] = None


class _JobFields(BaseModel):
    """Campos y reglas por defecto comunes a `Job` y `JobRow`."""

    name: Optional[str] = None
    start_time: Optional[datetime] = None
    segments: List[Segment] = Field(default_factory=list)  # El orden importa
    delays: List[Delay] = Field(default_factory=list)
    next_segment_id: int = DEFAULT_NEXT_SEGMENT_ID

    created_at: Optional[datetime] = None  # Se fija una vez, al crear
    last_updated: Optional[datetime] = None  # Se refresca en cada cambio
    expires_at: Optional[datetime] = None  # Derivado, nunca lo fija el cliente

    @field_validator("start_time", "created_at", "last_updated", "expires_at")
    @classmethod
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Las marcas sin zona horaria se interpretan como UTC
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator("segments", "delays", mode="before")
    @classmethod
    def empty_list_if_null(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("next_segment_id", mode="before")
    @classmethod
    def default_segment_id(cls, value: Any) -> Any:
        return DEFAULT_NEXT_SEGMENT_ID if value is None else value


class Job(_JobFields):
    """Modelo principal expuesto por la API (camelCase en JSON)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: Optional[str] = None  # Lo aporta siempre el cliente

    @model_validator(mode="after")
    def expiry_in_range(self) -> "Job":
        # Duraciones enormes o un inicio en el año 9999 no caben en un datetime
        compute_expires_at(self.start_time, self.segments, self.delays)
        return self

    def to_api(self) -> dict:
        """Serializa el job con los nombres que espera el cliente."""
        return self.model_dump(mode="json", by_alias=True)


class JobRow(_JobFields):
    """Fila del almacén (tabla `jobs`)."""

    model_config = ConfigDict(extra="ignore")

    job_id: str

    @classmethod
    def from_job(cls, job: Job, job_id: Optional[str] = None) -> "JobRow":
        return cls(
            job_id=job_id if job_id is not None else job.id,
            name=job.name,
            start_time=job.start_time,
            segments=job.segments,
            delays=job.delays,
            next_segment_id=job.next_segment_id,
            created_at=job.created_at,
            last_updated=job.last_updated,
            expires_at=job.expires_at,
        )

    def to_job(self) -> Job:
        return Job(
            id=self.job_id,
            name=self.name,
            start_time=self.start_time,
            segments=self.segments,
            delays=self.delays,
            next_segment_id=self.next_segment_id,
            created_at=self.created_at,
            last_updated=self.last_updated,
            expires_at=self.expires_at,
        )

    def to_store(self, exclude: Optional[set[str]] = None) -> dict:
        """Diccionario JSON listo para enviar al almacén."""
        return self.model_dump(mode="json", exclude=exclude)
