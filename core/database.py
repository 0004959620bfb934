# Archivo: core/database.py (Conexión Asíncrona para FastAPI)

import asyncpg
import logging
from contextlib import asynccontextmanager
from core.config import settings
from core.exceptions import DatabaseUnavailableError
from typing import AsyncIterator, Optional

logger = logging.getLogger("Database")

# Almacenamos el pool de conexiones globalmente
_connection_pool: Optional[asyncpg.Pool] = None

async def connect_to_db():
    """Inicializa el pool de conexiones al inicio de la aplicación (startup)."""
    global _connection_pool
    if not _connection_pool:
        try:
            logger.info("Inicializando conexión a PostgreSQL (asyncpg)...")

            _connection_pool = await asyncpg.create_pool(
                settings.DB_URL_ASYNC,
                min_size=settings.DB_POOL_MIN_SIZE,
                max_size=settings.DB_POOL_MAX_SIZE,
                timeout=settings.DB_TIMEOUT
            )
            logger.info("Pool de conexiones creado exitosamente.")
        except (OSError, asyncpg.PostgresError) as e:
            # La app arranca igual; las rutas que usen BD responderán con error
            logger.critical(f"ERROR CRÍTICO al conectar a PostgreSQL: {type(e).__name__}: {e!r}")

async def close_db_connection():
    """Cierra el pool de conexiones al apagado de la aplicación (shutdown)."""
    global _connection_pool
    if _connection_pool:
        logger.info("Cerrando pool de conexiones.")
        await _connection_pool.close()
        _connection_pool = None

@asynccontextmanager
async def acquire_connection() -> AsyncIterator[asyncpg.Connection]:
    """Presta una conexión del pool y la libera al salir del bloque."""
    if not _connection_pool:
        # En caso de que se intente usar antes del startup o si el startup falló
        raise DatabaseUnavailableError("El pool de conexiones no está inicializado. Verifique el log de startup.")

    async with _connection_pool.acquire() as conn:
        yield conn


def get_connection_provider():
    """
    Dependencia de FastAPI: entrega acquire_connection sin tomar una conexión todavía.
    Para rutas que validan la entrada antes de tocar la BD.
    """
    return acquire_connection


async def get_db_connection() -> AsyncIterator[asyncpg.Connection]:
    """Dependencia de FastAPI: presta una conexión del pool durante el request."""
    async with acquire_connection() as conn:
        yield conn
