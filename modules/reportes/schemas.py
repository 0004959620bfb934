# Archivo: modules/reportes/schemas.py
"""
Schemas Pydantic para el modulo de Reportes.
"""

from typing import Any, Dict, List, Optional
from datetime import date
from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_ID_INT4 = 2**31 - 1


class GenerarReporteRequest(BaseModel):
    """Body de POST /reportes/generar."""
    # Opcional a nivel schema: la ausencia se reporta con el mensaje propio del endpoint
    tipo_id: Optional[int] = Field(default=None, description="ID del tipo de reporte (1-7)")
    filtros: Optional[Dict[str, Any]] = Field(default=None, description="Filtros opcionales")

    @field_validator('tipo_id', mode='before')
    @classmethod
    def validate_empty_tipo(cls, v):
        if v is None or v == "" or v == 0:
            return None
        if isinstance(v, bool):
            raise ValueError("tipo_id debe ser un entero")
        return v


class FiltrosReporte(BaseModel):
    """Valores de filtro ya tipados. Vacios, null y 0 equivalen a 'sin filtro'."""
    model_config = ConfigDict(extra="ignore")

    # Las columnas id son integer de PostgreSQL (int4)
    tipo_activo_id: Optional[int] = Field(default=None, ge=1, le=MAX_ID_INT4)
    usuario_id: Optional[int] = Field(default=None, ge=1, le=MAX_ID_INT4)
    proveedor_id: Optional[int] = Field(default=None, ge=1, le=MAX_ID_INT4)
    ubicacion_id: Optional[int] = Field(default=None, ge=1, le=MAX_ID_INT4)
    fecha_inicio: Optional[date] = None
    fecha_fin: Optional[date] = None

    @field_validator('tipo_activo_id', 'usuario_id', 'proveedor_id', 'ubicacion_id', mode='before')
    @classmethod
    def validate_empty_int(cls, v):
        if v is None or v == "" or v == "0" or v == 0:
            return None
        if isinstance(v, bool):
            raise ValueError("se esperaba un id numerico")
        return v

    @field_validator('fecha_inicio', 'fecha_fin', mode='before')
    @classmethod
    def validate_empty_date(cls, v):
        if not v or v == "":
            return None
        return v


class FiltrosAplicados(BaseModel):
    """Bloque 'filtros' de la respuesta: nombres legibles de lo filtrado."""
    tipo_activo: str
    usuario: str
    ubicacion: str
    proveedor: str
    fecha_inicio: Optional[Any] = None
    fecha_fin: Optional[Any] = None


class ResultadosReporte(BaseModel):
    resumen: Dict[str, Any] = Field(default_factory=dict)
    detalles: List[Dict[str, Any]] = Field(default_factory=list)


class ReporteGenerado(BaseModel):
    """Reporte completo listo para serializar."""
    tipo_reporte: str
    descripcion: Optional[str] = None
    filtros: FiltrosAplicados
    resultados: ResultadosReporte
