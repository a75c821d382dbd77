"""Enumeraciones compartidas por el cliente del almacén."""

from enum import Enum


class FilterOperator(str, Enum):
    """Operadores de filtro que entiende la API REST del almacén."""

    EQ = "eq"
    LT = "lt"
    IS_NOT = "not.is"


class SortDirection(str, Enum):
    """Dirección de ordenación para `order=<columna>.<dirección>`."""

    ASC = "asc"
    DESC = "desc"
