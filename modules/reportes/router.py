# modules/reportes/router.py
"""
Endpoints del módulo de Reportes.

Este archivo contiene SOLO la orquestación HTTP.
Toda la lógica de negocio está en service.py
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import logging

from core.config import Settings, get_settings
from core.database import get_connection_provider, get_db_connection
from core.exceptions import ReportValidationError
from core.security import get_current_user_context

from .schemas import GenerarReporteRequest
from .service import ReportesService, get_reportes_service

logger = logging.getLogger("ReportesRouter")

router = APIRouter(
    prefix="/reportes",
    tags=["Reportes"],
    dependencies=[Depends(get_current_user_context)]
)

MSG_ERROR_INTERNO = "Error interno del servidor."


def _detalle_error(e: Exception, settings: Settings) -> str:
    """El texto crudo del error solo sale al cliente en modo debug."""
    return str(e) if settings.DEBUG_MODE else MSG_ERROR_INTERNO


@router.get("/tipos")
async def get_tipos_reporte(
    conn = Depends(get_db_connection),
    service: ReportesService = Depends(get_reportes_service)
):
    """Lista los tipos de reporte registrados (activos e inactivos)."""
    try:
        tipos = await service.get_tipos_reporte(conn)
    except Exception as e:
        logger.error(f"Fallo en get_tipos_reporte: {e}")
        return JSONResponse(status_code=500, content={"error": "Error en la consulta."})

    if not tipos:
        logger.warning("No hay tipos de reporte registrados")
        return JSONResponse(
            status_code=404,
            content={"error": "No existen tipos de reporte registrados."}
        )

    return JSONResponse(content={"success": True, "tiposReporte": tipos})


@router.get("/datos-auxiliares")
async def get_datos_auxiliares(
    conn = Depends(get_db_connection),
    service: ReportesService = Depends(get_reportes_service),
    settings: Settings = Depends(get_settings)
):
    """Catálogos (tipos de activo, usuarios, ubicaciones, proveedores) para los filtros."""
    try:
        datos = await service.get_datos_auxiliares(conn)
    except Exception as e:
        logger.error(f"Error al obtener los datos auxiliares: {e}")
        return JSONResponse(
            status_code=500,
            content={
                "message": "Error al obtener los datos auxiliares",
                "error": _detalle_error(e, settings)
            }
        )
    return JSONResponse(content=datos)


@router.post("/generar")
async def generar_reporte(
    payload: GenerarReporteRequest,
    acquire = Depends(get_connection_provider),
    service: ReportesService = Depends(get_reportes_service),
    settings: Settings = Depends(get_settings)
):
    """
    Genera un reporte dinámico según tipo_id y filtros.

    Retorna el resumen, las filas de detalle y los filtros aplicados con nombres legibles.
    La conexión se toma después de validar tipo_id: un 400 nunca depende de la BD.
    """
    try:
        service.validar_tipo_id(payload.tipo_id)
        async with acquire() as conn:
            reporte = await service.generar_reporte(conn, payload.tipo_id, payload.filtros)
    except ReportValidationError as e:
        logger.warning(f"Reporte rechazado (tipo_id={payload.tipo_id}): {e.message}")
        return JSONResponse(status_code=400, content={"error": e.message})
    except Exception as e:
        logger.error(f"Error al generar el reporte {payload.tipo_id}: {e}")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "message": "Error al generar el reporte.",
                "error": _detalle_error(e, settings)
            }
        )

    return JSONResponse(content={
        "success": True,
        "message": "Reporte generado exitosamente.",
        **reporte.model_dump(mode="json")
    })
