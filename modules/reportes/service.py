# modules/reportes/service.py
"""
Service Layer para Reportes de Activos.

Responsabilidades:
- Validar el tipo de reporte contra el catalogo y la tabla tipos_reporte
- Tipar los filtros y construir la consulta (query_builder)
- Dar forma al resultado ({resumen, detalles}) segun la forma del reporte
- Resolver ids de filtro a nombres legibles

NO contiene:
- Logica HTTP (eso va en router.py)
"""

from collections import Counter
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional
import logging

from pydantic import ValidationError

from core.exceptions import ReportValidationError
from .constants import (
    DefinicionReporte,
    ETIQUETA_COSTO_TOTAL,
    ETIQUETA_SIN_VALOR,
    FILTROS_FECHA,
    FILTROS_ID,
    FormaReporte,
    NOMBRE_DESCONOCIDO,
    NOMBRE_TODOS,
    REPORTES,
    TABLAS_NOMBRE,
    TABLAS_NOMBRE_POR_TIPO,
)
from .db_service import get_reportes_db_service
from .query_builder import ensamblar_consulta, resolver_filtros
from .schemas import FiltrosAplicados, FiltrosReporte, ReporteGenerado, ResultadosReporte

logger = logging.getLogger("ReportesService")

MSG_TIPO_OBLIGATORIO = "El campo 'tipo_id' es obligatorio."
MSG_TIPO_INVALIDO = "Tipo de reporte no válido o inactivo."


# =============================================================================
# RESULT SHAPER
# =============================================================================

def _valor_json(valor: Any) -> Any:
    if isinstance(valor, Decimal):
        return float(valor)
    if isinstance(valor, (datetime, date)):
        return valor.isoformat()
    return valor


def serializar_fila(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Convierte Decimal/fechas de asyncpg a tipos JSON."""
    return {k: _valor_json(v) for k, v in dict(row).items()}


def _etiqueta(row: Mapping[str, Any], columnas) -> str:
    for columna in columnas:
        valor = row.get(columna)
        if valor is not None and valor != "":
            return str(valor)
    return ETIQUETA_SIN_VALOR


def formar_resultados(definicion: DefinicionReporte, rows: List[Mapping[str, Any]]) -> ResultadosReporte:
    """Arma {resumen, detalles}; detalles son las filas tal cual (serializadas)."""
    detalles = [serializar_fila(r) for r in rows]
    resumen: Dict[str, Any] = {}

    if definicion.forma == FormaReporte.AGRUPADO:
        for row in detalles:
            resumen[_etiqueta(row, definicion.columnas_etiqueta)] = row.get(definicion.columna_valor)

    elif definicion.forma == FormaReporte.LISTADO:
        conteo = Counter(_etiqueta(row, definicion.columnas_etiqueta) for row in detalles)
        resumen = dict(conteo)

    elif definicion.forma == FormaReporte.TOTAL:
        total = detalles[0].get(definicion.columna_valor) if detalles else None
        resumen[ETIQUETA_COSTO_TOTAL] = total or 0

    return ResultadosReporte(resumen=resumen, detalles=detalles)


# =============================================================================
# SERVICE
# =============================================================================

class ReportesService:
    """Logica de negocio del modulo Reportes."""

    def __init__(self):
        self.db = get_reportes_db_service()

    # ---------------------------------------------------------------------
    # Catalogos
    # ---------------------------------------------------------------------

    async def get_tipos_reporte(self, conn) -> List[dict]:
        return await self.db.fetch_tipos_reporte(conn)

    async def get_datos_auxiliares(self, conn) -> Dict[str, List[dict]]:
        """Listas id/nombre para los selects del formulario de reportes."""
        return {
            "tiposActivo": await self.db.fetch_catalogo(conn, "tipos"),
            "usuarios": await self.db.fetch_catalogo(conn, "usuarios"),
            "ubicaciones": await self.db.fetch_catalogo(conn, "ubicaciones"),
            "proveedores": await self.db.fetch_catalogo(conn, "proveedores"),
        }

    # ---------------------------------------------------------------------
    # Generacion
    # ---------------------------------------------------------------------

    @staticmethod
    def validar_tipo_id(tipo_id: Optional[int]) -> DefinicionReporte:
        """Valida tipo_id contra el catalogo en codigo, sin tocar la BD."""
        if tipo_id is None:
            raise ReportValidationError(MSG_TIPO_OBLIGATORIO)

        definicion = REPORTES.get(tipo_id)
        if definicion is None:
            raise ReportValidationError(MSG_TIPO_INVALIDO)
        return definicion

    async def obtener_definicion(self, conn, tipo_id: Optional[int]):
        """
        Valida el tipo de reporte.

        Returns:
            (definicion, fila de tipos_reporte)

        Raises:
            ReportValidationError: tipo ausente, desconocido o inactivo
        """
        definicion = self.validar_tipo_id(tipo_id)

        tipo = await self.db.fetch_tipo_reporte_activo(conn, tipo_id)
        if not tipo:
            raise ReportValidationError(MSG_TIPO_INVALIDO)

        return definicion, tipo

    @staticmethod
    def tipar_filtros(filtros: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """
        Valida y convierte los filtros conservando el orden recibido.
        Las llaves desconocidas se descartan.
        """
        filtros = filtros or {}
        try:
            tipados = FiltrosReporte.model_validate(filtros)
        except ValidationError as e:
            campos = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
            raise ReportValidationError(f"Filtros inválidos: {campos}") from e

        return {
            llave: getattr(tipados, llave)
            for llave in filtros
            if llave in FiltrosReporte.model_fields
        }

    async def resolver_nombres(
        self,
        conn,
        tipo_id: int,
        filtros_tipados: Mapping[str, Any],
        filtros_originales: Optional[Mapping[str, Any]]
    ) -> FiltrosAplicados:
        """Nombres legibles de los filtros aplicados ('Todos' / 'Desconocido')."""
        tablas = {**TABLAS_NOMBRE, **TABLAS_NOMBRE_POR_TIPO.get(tipo_id, {})}
        nombres = {}
        for llave in FILTROS_ID:
            id_registro = filtros_tipados.get(llave)
            if not id_registro:
                nombres[llave] = NOMBRE_TODOS
                continue
            nombre = await self.db.fetch_nombre_por_id(conn, tablas[llave], id_registro)
            nombres[llave] = nombre if nombre is not None else NOMBRE_DESCONOCIDO

        originales = filtros_originales or {}
        fechas = {llave: originales.get(llave) or None for llave in FILTROS_FECHA}

        return FiltrosAplicados(
            tipo_activo=nombres["tipo_activo_id"],
            usuario=nombres["usuario_id"],
            ubicacion=nombres["ubicacion_id"],
            proveedor=nombres["proveedor_id"],
            fecha_inicio=fechas["fecha_inicio"],
            fecha_fin=fechas["fecha_fin"],
        )

    async def generar_reporte(
        self,
        conn,
        tipo_id: Optional[int],
        filtros: Optional[Mapping[str, Any]] = None
    ) -> ReporteGenerado:
        """Genera un reporte completo para el tipo y filtros dados."""
        definicion, tipo = await self.obtener_definicion(conn, tipo_id)
        filtros_tipados = self.tipar_filtros(filtros)

        condiciones = resolver_filtros(definicion, filtros_tipados)
        query, params = ensamblar_consulta(definicion, condiciones)

        rows = await self.db.ejecutar_reporte(conn, query, params)
        resultados = formar_resultados(definicion, rows)

        filtros_aplicados = await self.resolver_nombres(conn, tipo_id, filtros_tipados, filtros)

        logger.info(
            f"Reporte {tipo_id} generado: {len(resultados.detalles)} filas, "
            f"{len(condiciones)} filtros"
        )
        return ReporteGenerado(
            tipo_reporte=tipo["nombre"],
            descripcion=tipo.get("descripcion"),
            filtros=filtros_aplicados,
            resultados=resultados,
        )


def get_reportes_service():
    """Helper para inyección de dependencias."""
    return ReportesService()
