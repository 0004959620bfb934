# modules/reportes/query_builder.py
"""
Construccion de la consulta de un reporte.

- resolver_filtros: traduce cada filtro presente a un par (predicado, parametro)
  segun el tipo de reporte.
- ensamblar_consulta: compone SELECT/FROM/WHERE/GROUP BY/ORDER BY y numera los
  placeholders de asyncpg ($1, $2, ...) en el mismo orden de los pares.
"""

from dataclasses import dataclass
from typing import Any, List, Mapping, Tuple
import logging

from .constants import (
    DefinicionReporte,
    FILTRO_FECHA_FIN,
    FILTRO_FECHA_INICIO,
    FILTROS_ID,
)

logger = logging.getLogger("Reportes.QueryBuilder")


@dataclass(frozen=True)
class CondicionFiltro:
    """Predicado con su parametro. Viajan juntos para no desalinear $n."""
    llave: str
    predicado: str
    valor: Any


def resolver_filtro(definicion: DefinicionReporte, llave: str, valor: Any):
    """Retorna la CondicionFiltro para una llave, o None si la llave no aplica."""
    if valor is None:
        return None

    if llave in FILTROS_ID:
        plantilla = definicion.predicado(llave)
    elif llave == FILTRO_FECHA_INICIO:
        plantilla = f"{definicion.campos_fecha[0]} >= {{}}"
    elif llave == FILTRO_FECHA_FIN:
        plantilla = f"{definicion.campos_fecha[1]} <= {{}}"
    else:
        # Llaves desconocidas se ignoran
        return None

    if plantilla is None:
        return None
    return CondicionFiltro(llave=llave, predicado=plantilla, valor=valor)


def resolver_filtros(
    definicion: DefinicionReporte,
    filtros: Mapping[str, Any]
) -> List[CondicionFiltro]:
    """Una condicion por cada filtro con valor, en el orden recibido."""
    condiciones = []
    for llave, valor in filtros.items():
        condicion = resolver_filtro(definicion, llave, valor)
        if condicion is not None:
            condiciones.append(condicion)
    return condiciones


def ensamblar_consulta(
    definicion: DefinicionReporte,
    condiciones: List[CondicionFiltro]
) -> Tuple[str, List[Any]]:
    """
    Compone el SQL final y su lista de parametros.

    Returns:
        (query, params) listos para conn.fetch(query, *params)
    """
    partes = [definicion.select_clause, definicion.from_clause]
    params = []

    if condiciones:
        predicados = []
        for idx, condicion in enumerate(condiciones, start=1):
            predicados.append(condicion.predicado.format(f"${idx}"))
            params.append(condicion.valor)
        partes.append("WHERE " + " AND ".join(predicados))

    if definicion.group_by_clause:
        partes.append(definicion.group_by_clause)
    if definicion.order_by_clause:
        partes.append(definicion.order_by_clause)

    query = " ".join(partes)
    logger.debug(f"Consulta reporte {definicion.tipo_id}: {query} ({len(params)} params)")
    return query, params
