"""Excepciones del dominio.

Los errores del almacén (`StoreError`) nunca cruzan la capa HTTP: el
repositorio los captura y los convierte en resultados vacíos o en `None`.
El resto se traducen a códigos de estado en `tracker.main`.
"""

from __future__ import annotations


class TrackerError(Exception):
    """Base de todos los errores propios del servicio."""


class ConfigurationError(TrackerError):
    """Falta configuración obligatoria (credenciales del almacén)."""


class StoreError(TrackerError):
    """Respuesta no exitosa (o fallo de red) del almacén remoto."""

    def __init__(self, status: int | None, body: str) -> None:
        self.status = status
        self.body = body
        super().__init__(f"Store error {status if status is not None else 'n/a'}: {body}")


class NotFoundError(TrackerError):
    """El job solicitado no existe."""

    def __init__(self, message: str = "Job not found") -> None:
        self.message = message
        super().__init__(message)


class MalformedRequestError(TrackerError):
    """El cuerpo de la petición no es JSON válido o no tiene la forma esperada."""

    def __init__(self, message: str = "Malformed request body") -> None:
        self.message = message
        super().__init__(message)
