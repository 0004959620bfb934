from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
import jwt
import logging

from core.config import Settings, get_settings

logger = logging.getLogger("Security")

# auto_error=False: los mensajes 401/403 los decide get_current_user_context
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings)
):
    """
    Dependency to get the current user context from the Bearer JWT.

    Los tokens los emite el servicio de autenticación; aquí solo se verifican.
    Returns a dict with user_id, email and role.
    """
    # 1. Encabezado Authorization: Bearer <token>
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Acceso denegado. El encabezado Authorization es obligatorio."
        )

    # 2. Sin clave configurada no se puede validar nada
    if not settings.JWT_SECRET:
        logger.error("JWT_SECRET no está configurado")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno del servidor"
        )

    # 3. Verificar firma y expiración
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Token expirado. Por favor, inicia sesión nuevamente."
        )
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Token inválido o ha sido manipulado."
        )

    # 4. El payload debe traer la identidad mínima
    if not payload.get("id") or not payload.get("email"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Token inválido: falta información esencial."
        )

    return {
        "user_id": payload["id"],
        "email": payload["email"],
        "role": payload.get("rol") or payload.get("role"),
    }
