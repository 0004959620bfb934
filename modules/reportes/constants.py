"""
Catálogo de reportes: definición de cada tipo y reglas de filtrado por tipo.

Agregar un tipo de reporte es agregar una entrada a REPORTES; los predicados
de filtro que difieren del default se declaran en la propia definición.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple


class FormaReporte(str, Enum):
    """Forma del resultado; el shaper despacha sobre esto, no sobre el id."""
    AGRUPADO = "agrupado"   # una fila por etiqueta con su cantidad
    LISTADO = "listado"     # una fila por asignación, se cuenta por usuario
    TOTAL = "total"         # una sola fila con un agregado


# ============================================
# LLAVES DE FILTRO
# ============================================
FILTRO_TIPO_ACTIVO = "tipo_activo_id"
FILTRO_USUARIO = "usuario_id"
FILTRO_PROVEEDOR = "proveedor_id"
FILTRO_UBICACION = "ubicacion_id"
FILTRO_FECHA_INICIO = "fecha_inicio"
FILTRO_FECHA_FIN = "fecha_fin"

FILTROS_ID = (FILTRO_TIPO_ACTIVO, FILTRO_USUARIO, FILTRO_UBICACION, FILTRO_PROVEEDOR)
FILTROS_FECHA = (FILTRO_FECHA_INICIO, FILTRO_FECHA_FIN)

# "{}" se sustituye por el placeholder posicional ($1, $2, ...) al ensamblar
PREDICADOS_DEFAULT: Mapping[str, str] = MappingProxyType({
    FILTRO_TIPO_ACTIVO: "a.tipo_id = {}",
    FILTRO_USUARIO: "a.id IN (SELECT activo_id FROM asignaciones WHERE usuario_id = {})",
    FILTRO_PROVEEDOR: "a.proveedor_id = {}",
    FILTRO_UBICACION: "a.ubicacion_id = {}",
})

# Usuario/ubicación directos sobre la asignación
_PREDICADOS_ASIGNACION = {
    FILTRO_USUARIO: "asig.usuario_id = {}",
    FILTRO_UBICACION: "asig.ubicacion_id = {}",
}

CAMPOS_FECHA_DEFAULT = ("a.fecha_registro", "a.fecha_salida")
CAMPOS_FECHA_ASIGNACION = ("asig.fecha_asignacion", "asig.fecha_devolucion")
CAMPOS_FECHA_GARANTIA = ("g.fecha_inicio", "g.fecha_fin")

ETIQUETA_COSTO_TOTAL = "Costo total"
ETIQUETA_SIN_VALOR = "Sin especificar"


@dataclass(frozen=True)
class DefinicionReporte:
    """Plantilla de un tipo de reporte, con sus cláusulas SQL separadas."""
    tipo_id: int
    forma: FormaReporte
    select_clause: str
    from_clause: str
    group_by_clause: Optional[str] = None
    order_by_clause: Optional[str] = None
    campos_fecha: Tuple[str, str] = CAMPOS_FECHA_DEFAULT
    predicados_especificos: Mapping[str, str] = field(default_factory=dict)
    # AGRUPADO: columnas candidatas a etiqueta (la primera no nula gana)
    # LISTADO: columna por la que se cuenta
    columnas_etiqueta: Tuple[str, ...] = ()
    columna_valor: str = "cantidad"

    def predicado(self, llave: str) -> Optional[str]:
        """Plantilla de predicado para una llave de filtro (None si no aplica)."""
        if llave in self.predicados_especificos:
            return self.predicados_especificos[llave]
        return PREDICADOS_DEFAULT.get(llave)


REPORTES: Mapping[int, DefinicionReporte] = MappingProxyType({
    # 1: Activos por estado
    1: DefinicionReporte(
        tipo_id=1,
        forma=FormaReporte.AGRUPADO,
        select_clause="SELECT a.estado, COUNT(*) AS cantidad",
        from_clause="FROM activos a LEFT JOIN asignaciones asig ON a.id = asig.activo_id",
        group_by_clause="GROUP BY a.estado",
        order_by_clause="ORDER BY a.estado",
        predicados_especificos={FILTRO_USUARIO: "asig.usuario_id = {}"},
        columnas_etiqueta=("estado", "tipo", "ubicacion"),
    ),
    # 2: Activos asignados por usuario
    2: DefinicionReporte(
        tipo_id=2,
        forma=FormaReporte.AGRUPADO,
        select_clause="SELECT u.nombre AS usuario, COUNT(a.id) AS cantidad",
        from_clause=(
            "FROM asignaciones asig "
            "JOIN usuarios u ON asig.usuario_id = u.id "
            "JOIN activos a ON asig.activo_id = a.id"
        ),
        group_by_clause="GROUP BY u.nombre",
        order_by_clause="ORDER BY u.nombre",
        campos_fecha=CAMPOS_FECHA_ASIGNACION,
        predicados_especificos=_PREDICADOS_ASIGNACION,
        columnas_etiqueta=("usuario", "estado"),
    ),
    # 3: Garantías por estado
    3: DefinicionReporte(
        tipo_id=3,
        forma=FormaReporte.AGRUPADO,
        select_clause="SELECT g.estado, COUNT(*) AS cantidad",
        from_clause="FROM garantias g JOIN activos a ON g.activo_id = a.id",
        group_by_clause="GROUP BY g.estado",
        order_by_clause="ORDER BY g.estado",
        campos_fecha=CAMPOS_FECHA_GARANTIA,
        predicados_especificos={FILTRO_PROVEEDOR: "g.proveedor_garantia_id = {}"},
        columnas_etiqueta=("usuario", "estado"),
    ),
    # 4: Costo total de activos
    4: DefinicionReporte(
        tipo_id=4,
        forma=FormaReporte.TOTAL,
        select_clause="SELECT SUM(a.valor_compra) AS costo_total",
        from_clause="FROM activos a LEFT JOIN asignaciones asig ON a.id = asig.activo_id",
        columna_valor="costo_total",
    ),
    # 5: Historial de asignaciones
    5: DefinicionReporte(
        tipo_id=5,
        forma=FormaReporte.LISTADO,
        select_clause=(
            "SELECT a.nombre AS activo, u.nombre AS usuario, "
            "asig.fecha_asignacion, asig.fecha_devolucion"
        ),
        from_clause=(
            "FROM asignaciones asig "
            "JOIN activos a ON asig.activo_id = a.id "
            "JOIN usuarios u ON asig.usuario_id = u.id"
        ),
        order_by_clause="ORDER BY asig.fecha_asignacion, asig.id",
        campos_fecha=CAMPOS_FECHA_ASIGNACION,
        predicados_especificos=_PREDICADOS_ASIGNACION,
        columnas_etiqueta=("usuario",),
    ),
    # 6: Activos por tipo
    6: DefinicionReporte(
        tipo_id=6,
        forma=FormaReporte.AGRUPADO,
        select_clause="SELECT t.nombre AS tipo, COUNT(a.id) AS cantidad",
        from_clause="FROM activos a JOIN tipos t ON a.tipo_id = t.id",
        group_by_clause="GROUP BY t.nombre",
        order_by_clause="ORDER BY t.nombre",
        columnas_etiqueta=("estado", "tipo", "ubicacion"),
    ),
    # 7: Ubicación de activos
    7: DefinicionReporte(
        tipo_id=7,
        forma=FormaReporte.AGRUPADO,
        select_clause="SELECT ub.nombre AS ubicacion, COUNT(a.id) AS cantidad",
        from_clause="FROM activos a JOIN ubicaciones ub ON a.ubicacion_id = ub.id",
        group_by_clause="GROUP BY ub.nombre",
        order_by_clause="ORDER BY ub.nombre",
        columnas_etiqueta=("estado", "tipo", "ubicacion"),
    ),
})

# Tabla de catálogo para resolver el nombre de cada filtro por id
TABLAS_NOMBRE = MappingProxyType({
    FILTRO_TIPO_ACTIVO: "tipos",
    FILTRO_USUARIO: "usuarios",
    FILTRO_UBICACION: "ubicaciones",
    FILTRO_PROVEEDOR: "proveedores",
})

# En garantías el proveedor filtrado es el de la garantía
TABLAS_NOMBRE_POR_TIPO = MappingProxyType({
    3: {FILTRO_PROVEEDOR: "proveedores_garantia"},
})

NOMBRE_TODOS = "Todos"
NOMBRE_DESCONOCIDO = "Desconocido"
