"""
Dependencias de autenticación para FastAPI.

Lee el token del header 'Authorization: Bearer <token>' y resuelve el usuario
y su identidad (id + rol) para los servicios.
"""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
from core.database import get_db
from core.security import decode_token
from core.identity import Identity
from models.user import User
import uuid


security = HTTPBearer(auto_error=False)


def _unauthorized(message: str, error: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={
            "success": False,
            "status_code": 401,
            "message": message,
            "error": error
        },
        headers={"WWW-Authenticate": "Bearer"}
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Obtener el usuario actual desde el Bearer token.
    
    Uso:
        @router.get("/me")
        async def get_me(current_user: User = Depends(get_current_user)):
            return current_user
    """
    if not credentials:
        raise _unauthorized("Token de autenticación requerido", "AUTHENTICATION_REQUIRED")
    
    payload = decode_token(credentials.credentials)
    if not payload or payload.get("type") != "access":
        raise _unauthorized("Token inválido o expirado", "INVALID_TOKEN")
    
    user_id_str = payload.get("sub")
    if not user_id_str:
        raise _unauthorized("Token inválido", "INVALID_TOKEN")
    
    try:
        user_id = uuid.UUID(user_id_str)
    except ValueError:
        raise _unauthorized("Token inválido", "INVALID_TOKEN")
    
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise _unauthorized("Usuario no encontrado", "USER_NOT_FOUND")
    
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "success": False,
                "status_code": 403,
                "message": "Usuario inactivo",
                "error": "USER_INACTIVE"
            }
        )
    
    return user


async def get_current_identity(
    current_user: User = Depends(get_current_user)
) -> Identity:
    """Identidad (id + rol) del usuario autenticado"""
    return Identity.from_user(current_user)


async def get_current_admin_identity(
    identity: Identity = Depends(get_current_identity)
) -> Identity:
    """
    Verificar que el usuario autenticado sea administrador.
    """
    if not identity.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "success": False,
                "status_code": 403,
                "message": "No tienes permisos de administrador",
                "error": "ADMIN_REQUIRED"
            }
        )
    return identity
