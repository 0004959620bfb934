from datetime import date
from decimal import Decimal

import asyncpg
import pytest

from core.exceptions import DataAccessError, ReportValidationError
from modules.reportes.constants import REPORTES
from modules.reportes.service import ReportesService, formar_resultados


TIPO_1 = {'id': 1, 'nombre': 'Activos por estado', 'descripcion': 'Agrupa activos por estado.'}


class TestFormarResultados:
    """Forma del resultado según el tipo de reporte."""

    def test_agrupado_por_estado(self):
        rows = [{"estado": "Disponible", "cantidad": 5}, {"estado": "Asignado", "cantidad": 3}]

        resultados = formar_resultados(REPORTES[1], rows)

        assert resultados.resumen == {"Disponible": 5, "Asignado": 3}
        assert resultados.detalles == rows

    def test_agrupado_por_tipo_y_ubicacion(self):
        assert formar_resultados(REPORTES[6], [{"tipo": "Laptop", "cantidad": 4}]).resumen == {"Laptop": 4}
        assert formar_resultados(REPORTES[7], [{"ubicacion": "Bodega", "cantidad": 2}]).resumen == {"Bodega": 2}

    def test_agrupado_usuario_y_garantias(self):
        assert formar_resultados(REPORTES[2], [{"usuario": "Ana", "cantidad": 2}]).resumen == {"Ana": 2}
        assert formar_resultados(REPORTES[3], [{"estado": "Vigente", "cantidad": 7}]).resumen == {"Vigente": 7}

    def test_etiqueta_nula(self):
        resultados = formar_resultados(REPORTES[1], [{"estado": None, "cantidad": 1}])
        assert resultados.resumen == {"Sin especificar": 1}

    def test_costo_total_nulo_es_cero(self):
        resultados = formar_resultados(REPORTES[4], [{"costo_total": None}])
        assert resultados.resumen == {"Costo total": 0}

    def test_costo_total_decimal(self):
        resultados = formar_resultados(REPORTES[4], [{"costo_total": Decimal("1520.50")}])
        assert resultados.resumen == {"Costo total": 1520.5}
        assert resultados.detalles == [{"costo_total": 1520.5}]

    def test_historial_cuenta_filas_por_usuario(self):
        rows = [
            {"usuario": "Ana", "activo": "Laptop 1", "cantidad": 50},
            {"usuario": "Ana", "activo": "Monitor", "cantidad": 50},
            {"usuario": "Beto", "activo": "Laptop 2"},
        ]

        resultados = formar_resultados(REPORTES[5], rows)

        assert resultados.resumen == {"Ana": 2, "Beto": 1}
        assert len(resultados.detalles) == 3

    def test_fechas_serializadas(self):
        rows = [{"usuario": "Ana", "activo": "Laptop", "fecha_asignacion": date(2024, 3, 1),
                 "fecha_devolucion": None}]

        resultados = formar_resultados(REPORTES[5], rows)

        assert resultados.detalles[0]["fecha_asignacion"] == "2024-03-01"
        assert resultados.detalles[0]["fecha_devolucion"] is None

    @pytest.mark.parametrize("tipo_id", [1, 2, 3, 5, 6, 7])
    def test_sin_filas(self, tipo_id):
        resultados = formar_resultados(REPORTES[tipo_id], [])
        assert resultados.resumen == {}
        assert resultados.detalles == []

    def test_total_sin_filas(self):
        resultados = formar_resultados(REPORTES[4], [])
        assert resultados.resumen == {"Costo total": 0}
        assert resultados.detalles == []


class TestReportesService:
    """Tests para el service layer del módulo reportes."""

    @pytest.mark.asyncio
    async def test_tipo_obligatorio(self, mock_db_conn):
        service = ReportesService()

        with pytest.raises(ReportValidationError) as exc:
            await service.generar_reporte(mock_db_conn, None, {})

        assert "obligatorio" in exc.value.message
        assert mock_db_conn.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tipo_id", [-1, 8, 99])
    async def test_tipo_fuera_de_catalogo_no_consulta(self, mock_db_conn, tipo_id):
        service = ReportesService()

        with pytest.raises(ReportValidationError):
            await service.generar_reporte(mock_db_conn, tipo_id, {})

        assert mock_db_conn.calls == []

    @pytest.mark.asyncio
    async def test_tipo_inactivo(self, mock_db_conn):
        service = ReportesService()
        # fetchrow sin resultado = tipo inactivo o inexistente

        with pytest.raises(ReportValidationError):
            await service.generar_reporte(mock_db_conn, 3, {})

        assert len(mock_db_conn.calls_of('fetchrow')) == 1
        assert not mock_db_conn.called_with_pattern('FROM garantias')
        assert not mock_db_conn.called_with_pattern('FROM activos')

    @pytest.mark.asyncio
    async def test_filtro_invalido(self, mock_db_conn):
        service = ReportesService()
        mock_db_conn.set_fetchrow_result(TIPO_1)

        with pytest.raises(ReportValidationError) as exc:
            await service.generar_reporte(mock_db_conn, 1, {"usuario_id": "abc"})

        assert "usuario_id" in exc.value.message

    @pytest.mark.asyncio
    @pytest.mark.parametrize("filtros", [
        {"usuario_id": 3000000000},
        {"proveedor_id": 2**31},
        {"ubicacion_id": -5},
    ])
    async def test_id_fuera_de_int4_no_consulta(self, mock_db_conn, filtros):
        service = ReportesService()
        mock_db_conn.set_fetchrow_result(TIPO_1)

        with pytest.raises(ReportValidationError) as exc:
            await service.generar_reporte(mock_db_conn, 1, filtros)

        assert next(iter(filtros)) in exc.value.message
        assert mock_db_conn.calls_of('fetch') == []

    def test_id_en_limite_int4_se_acepta(self):
        assert ReportesService.tipar_filtros({"usuario_id": 2**31 - 1}) == {"usuario_id": 2**31 - 1}

    @pytest.mark.asyncio
    async def test_generar_reporte_completo(self, mock_db_conn):
        service = ReportesService()
        mock_db_conn.set_fetchrow_result(TIPO_1)
        mock_db_conn.set_fetch_result([
            {"estado": "Disponible", "cantidad": 5},
            {"estado": "Asignado", "cantidad": 3},
        ])
        mock_db_conn.set_fetchval_result("Ana López")

        reporte = await service.generar_reporte(
            mock_db_conn, 1,
            {"usuario_id": 101, "fecha_inicio": "2024-01-01", "color": "azul", "ubicacion_id": None}
        )

        assert reporte.tipo_reporte == "Activos por estado"
        assert reporte.resultados.resumen == {"Disponible": 5, "Asignado": 3}
        assert reporte.filtros.usuario == "Ana López"
        assert reporte.filtros.ubicacion == "Todos"
        assert reporte.filtros.tipo_activo == "Todos"
        assert reporte.filtros.fecha_inicio == "2024-01-01"
        assert reporte.filtros.fecha_fin is None

        _, query, params = mock_db_conn.calls_of('fetch')[0]
        assert "WHERE asig.usuario_id = $1 AND a.fecha_registro >= $2" in query
        assert params == (101, date(2024, 1, 1))

    @pytest.mark.asyncio
    async def test_filtros_nulos_sin_where(self, mock_db_conn):
        service = ReportesService()
        mock_db_conn.set_fetchrow_result(TIPO_1)

        await service.generar_reporte(mock_db_conn, 1, {"usuario_id": None, "fecha_fin": None})

        _, query, params = mock_db_conn.calls_of('fetch')[0]
        assert "WHERE" not in query
        assert params == ()
        # Sin ids, no se resuelven nombres
        assert mock_db_conn.calls_of('fetchval') == []

    @pytest.mark.asyncio
    async def test_usuario_inexistente_es_desconocido(self, mock_db_conn):
        service = ReportesService()
        mock_db_conn.set_fetchrow_result(TIPO_1)

        reporte = await service.generar_reporte(mock_db_conn, 1, {"usuario_id": 99999})

        assert reporte.filtros.usuario == "Desconocido"

    @pytest.mark.asyncio
    async def test_proveedor_de_garantia_en_reporte_3(self, mock_db_conn):
        service = ReportesService()
        mock_db_conn.set_fetchrow_result({'id': 3, 'nombre': 'Garantías por estado', 'descripcion': None})
        mock_db_conn.set_fetchval_result("Garantías MX")

        reporte = await service.generar_reporte(mock_db_conn, 3, {"proveedor_id": 5})

        assert reporte.filtros.proveedor == "Garantías MX"
        assert mock_db_conn.called_with_pattern('FROM proveedores_garantia')

    @pytest.mark.asyncio
    async def test_resultados_idempotentes(self, mock_db_conn):
        service = ReportesService()
        rows = [{"usuario": "Ana", "activo": "Laptop", "fecha_asignacion": date(2024, 1, 5),
                 "fecha_devolucion": None}]
        tipo_5 = {'id': 5, 'nombre': 'Historial de asignaciones', 'descripcion': None}
        for _ in range(2):
            mock_db_conn.set_fetchrow_result(tipo_5)
            mock_db_conn.set_fetch_result(list(rows))

        primero = await service.generar_reporte(mock_db_conn, 5, {"usuario_id": None})
        segundo = await service.generar_reporte(mock_db_conn, 5, {"usuario_id": None})

        assert primero.resultados.model_dump_json() == segundo.resultados.model_dump_json()

    @pytest.mark.asyncio
    async def test_error_de_bd_se_envuelve(self, mock_db_conn):
        service = ReportesService()
        mock_db_conn.set_fetchrow_result(TIPO_1)
        mock_db_conn.fetch_error = asyncpg.PostgresError("relation \"activos\" does not exist")

        with pytest.raises(DataAccessError) as exc:
            await service.generar_reporte(mock_db_conn, 1, {})

        assert "activos" in str(exc.value)

    @pytest.mark.asyncio
    async def test_datos_auxiliares(self, mock_db_conn):
        service = ReportesService()
        mock_db_conn.set_fetch_result([{'id': 1, 'nombre': 'Hardware'}])
        mock_db_conn.set_fetch_result([{'id': 101, 'nombre': 'Ana López'}])
        mock_db_conn.set_fetch_result([])
        mock_db_conn.set_fetch_result([{'id': 1, 'nombre': 'TecnoSoluciones'}])

        datos = await service.get_datos_auxiliares(mock_db_conn)

        assert datos['tiposActivo'] == [{'id': 1, 'nombre': 'Hardware'}]
        assert datos['usuarios'][0]['nombre'] == 'Ana López'
        assert datos['ubicaciones'] == []
        assert datos['proveedores'][0]['nombre'] == 'TecnoSoluciones'
