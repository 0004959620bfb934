# modules/reportes/db_service.py
"""
Capa de Acceso a Datos para el Modulo Reportes.
Todas las queries SQL puras reciben conn como primer parametro.
"""
from typing import Any, List, Optional
import logging

import asyncpg

from core.exceptions import DataAccessError

logger = logging.getLogger("Reportes.DBService")

# Catalogos cuyo nombre se puede resolver por id
_TABLAS_CATALOGO = frozenset({
    "tipos", "usuarios", "ubicaciones", "proveedores", "proveedores_garantia"
})


class ReportesDBService:
    """Queries SQL del modulo de Reportes (solo lectura)."""

    # ========================================
    # TIPOS DE REPORTE
    # ========================================

    async def fetch_tipos_reporte(self, conn) -> List[dict]:
        """Obtiene todos los tipos de reporte registrados."""
        rows = await conn.fetch(
            "SELECT id, nombre, descripcion, activo FROM tipos_reporte ORDER BY id"
        )
        return [dict(r) for r in rows]

    async def fetch_tipo_reporte_activo(self, conn, tipo_id: int) -> Optional[dict]:
        """Obtiene un tipo de reporte solo si esta activo."""
        row = await conn.fetchrow(
            "SELECT id, nombre, descripcion FROM tipos_reporte WHERE id = $1 AND activo = TRUE",
            tipo_id
        )
        return dict(row) if row else None

    # ========================================
    # CATALOGOS
    # ========================================

    async def fetch_catalogo(self, conn, tabla: str) -> List[dict]:
        """Obtiene id/nombre de un catalogo para llenar formularios."""
        if tabla not in _TABLAS_CATALOGO:
            raise ValueError(f"Catalogo no permitido: {tabla}")
        rows = await conn.fetch(f"SELECT id, nombre FROM {tabla} ORDER BY nombre")
        return [dict(r) for r in rows]

    async def fetch_nombre_por_id(self, conn, tabla: str, id_registro: int) -> Optional[str]:
        """Nombre de un registro de catalogo, None si no existe."""
        if tabla not in _TABLAS_CATALOGO:
            raise ValueError(f"Catalogo no permitido: {tabla}")
        return await conn.fetchval(
            f"SELECT nombre FROM {tabla} WHERE id = $1",
            id_registro
        )

    # ========================================
    # EJECUCION
    # ========================================

    async def ejecutar_reporte(self, conn, query: str, params: List[Any]) -> List[dict]:
        """Ejecuta la consulta ensamblada de un reporte."""
        try:
            rows = await conn.fetch(query, *params)
        except asyncpg.PostgresError as e:
            logger.error(f"Fallo en consulta de reporte: {e} | SQL: {query}")
            raise DataAccessError(str(e)) from e
        return [dict(r) for r in rows]


def get_reportes_db_service():
    return ReportesDBService()
