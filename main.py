# Archivo: main.py

from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
from logging.handlers import RotatingFileHandler
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import settings
from core.database import connect_to_db, close_db_connection
from core.exceptions import DataAccessError
from modules.reportes import router as reportes_router

# Configurar Logging Global
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.StreamHandler(), # Consola
        RotatingFileHandler(settings.LOG_FILE, maxBytes=5*1024*1024, backupCount=3) # Archivo 5MB
    ]
)

logger = logging.getLogger("Main")

_STARTED_AT = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Abre el pool de BD al arrancar y lo cierra al apagar."""
    await connect_to_db()
    yield
    await close_db_connection()


# Inicialización de la app
app = FastAPI(title="Gestor de Activos - Reportes", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Body mal formado -> 400 con el mismo formato {error} del resto de la API."""
    campos = ", ".join(
        ".".join(str(p) for p in err.get("loc", ()) if p != "body") for err in exc.errors()
    )
    logger.warning(f"Request inválido en {request.url.path}: {campos}")
    return JSONResponse(
        status_code=400,
        content={"error": f"Solicitud inválida: {campos}" if campos else "Solicitud inválida."}
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """401/403/404/500 lanzados con HTTPException -> {error} en lugar de {detail}."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(DataAccessError)
async def data_access_exception_handler(request: Request, exc: DataAccessError):
    """Fallas de BD fuera del try de la ruta (p. ej. pool sin inicializar) -> 500 JSON."""
    logger.error(f"Error de acceso a datos en {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": "Error de acceso a la base de datos.",
            "error": str(exc) if settings.DEBUG_MODE else "Error interno del servidor."
        }
    )


# Registrar Routers Modulares
app.include_router(reportes_router.router)


@app.get("/health", tags=["Health"])
async def health_check():
    """Endpoint de salud del sistema."""
    return {
        "status": "ok",
        "uptime": round(time.monotonic() - _STARTED_AT, 3),
        "message": "Gestor de Activos Backend is running correctly!",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

# Si quisieras levantar el servidor: uvicorn main:app --reload
