"""Cliente mínimo para la API REST del almacén (Supabase / PostgREST).

Sólo sabe hablar con una tabla: buscar, insertar, modificar y borrar filas
que cumplan unos filtros. No conoce reglas de negocio, no reintenta y no
cachea. Cualquier respuesta con estado >= 400, o cualquier fallo de red,
se convierte en `StoreError` con el estado y el cuerpo tal cual llegaron.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

import requests

from tracker.core.enums import FilterOperator
from tracker.core.errors import StoreError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Predicate:
    """Condición sobre una columna, p.ej. `job_id = 'J1'`."""

    column: str
    operator: FilterOperator
    value: Any

    def to_param(self) -> tuple[str, str]:
        """Forma `columna=operador.valor` que entiende PostgREST."""
        return self.column, f"{self.operator.value}.{self.value}"


def eq(column: str, value: Any) -> Predicate:
    return Predicate(column, FilterOperator.EQ, value)


def lt(column: str, value: Any) -> Predicate:
    return Predicate(column, FilterOperator.LT, value)


def not_null(column: str) -> Predicate:
    return Predicate(column, FilterOperator.IS_NOT, "null")


class StoreClient:
    """Operaciones genéricas sobre una tabla del almacén remoto."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        table: str = "jobs",
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.table = table
        self.timeout = timeout
        self.headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }
        # Las rutas síncronas y el hilo de limpieza llaman en paralelo, y
        # `requests.Session` no es thread-safe: una sesión por hilo. Una
        # sesión inyectada se comparte tal cual.
        self._shared = session
        self._local = threading.local()
        if session is not None:
            session.headers.update(self.headers)

    @property
    def session(self) -> requests.Session:
        if self._shared is not None:
            return self._shared
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update(self.headers)
            self._local.session = session
        return session

    @property
    def table_url(self) -> str:
        return f"{self.base_url}/rest/v1/{self.table}"

    def find(
        self, filters: Iterable[Predicate] = (), order: Optional[str] = None
    ) -> List[dict]:
        params = [p.to_param() for p in filters]
        if order:
            params.append(("order", order))
        rows = self._request("GET", params=params)
        return rows if isinstance(rows, list) else []

    def insert(self, row: dict) -> dict:
        stored = self._request("POST", json=row)
        # Con `Prefer: return=representation` el almacén devuelve [fila]
        if isinstance(stored, list) and stored:
            return stored[0]
        if isinstance(stored, dict):
            return stored
        return row

    def patch(self, filters: Iterable[Predicate], partial_row: dict) -> None:
        self._request("PATCH", params=[p.to_param() for p in filters], json=partial_row)

    def delete(self, filters: Iterable[Predicate]) -> None:
        self._request("DELETE", params=[p.to_param() for p in filters])

    def _request(
        self,
        method: str,
        params: Optional[list[tuple[str, str]]] = None,
        json: Optional[dict] = None,
    ) -> Any:
        try:
            resp = self.session.request(
                method,
                self.table_url,
                params=params,
                json=json,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise StoreError(None, f"request timed out: {e}") from e
        except requests.exceptions.RequestException as e:
            raise StoreError(None, f"request failed: {e}") from e

        if resp.status_code >= 400:
            raise StoreError(resp.status_code, resp.text)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            logger.warning(
                "Store returned a non-JSON body for %s %s", method, self.table_url
            )
            return resp.text
