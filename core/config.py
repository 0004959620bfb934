import os
from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv()

class Settings(BaseSettings):
    # --- Configuración de Base de Datos (PostgreSQL) ---
    DB_HOST: str = os.getenv("DB_HOST", "localhost")
    DB_PORT: int = int(os.getenv("DB_PORT", "5432"))
    DB_USER: str = os.getenv("DB_USER", "postgres")
    DB_PASSWORD: str = os.getenv("DB_PASSWORD", "")
    DB_NAME: str = os.getenv("DB_NAME", "gestor_activos")

    # Construcción de URL Async para asyncpg
    DB_URL_ASYNC: str = os.getenv(
        "DB_URL_ASYNC",
        f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
    )

    # Pool de conexiones
    DB_POOL_MIN_SIZE: int = int(os.getenv("DB_POOL_MIN_SIZE", "2"))
    DB_POOL_MAX_SIZE: int = int(os.getenv("DB_POOL_MAX_SIZE", "10"))
    DB_TIMEOUT: float = float(os.getenv("DB_TIMEOUT", "30"))

    # --- Configuración de Seguridad (JWT emitido por el servicio de auth) ---
    JWT_SECRET: str = os.getenv("JWT_SECRET", "")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")

    # Si es True, las respuestas 500 incluyen el mensaje interno del error
    DEBUG_MODE: bool = os.getenv("DEBUG_MODE", "false").lower() in ("1", "true", "yes")

    # --- Logging ---
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = os.getenv("LOG_FILE", "system_errors.log")

settings = Settings()


def get_settings() -> Settings:
    """Dependencia de FastAPI para inyectar la configuración."""
    return settings
