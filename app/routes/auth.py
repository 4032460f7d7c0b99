"""
Endpoints de autenticación: registro y login.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from core.config import settings
from core.database import get_db
from core.security import hash_password, verify_password, create_access_token
from models.user import User
from schemas.auth import UserRegister, UserLogin

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)


# ==================== REGISTRO ====================

@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: Session = Depends(get_db)
):
    """
    Registrar un nuevo usuario con rol de cliente.
    """
    existing_user = db.query(User).filter(User.email == user_data.email).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "success": False,
                "status_code": 400,
                "message": "El email ya está registrado",
                "error": "EMAIL_ALREADY_EXISTS"
            }
        )
    
    new_user = User(
        email=user_data.email,
        hashed_password=hash_password(user_data.password),
        full_name=user_data.full_name,
        role=settings.DEFAULT_ROLE,
        is_active=True
    )
    
    db.add(new_user)
    db.commit()
    db.refresh(new_user)
    logger.info(f"Usuario registrado: {new_user.email}")
    
    return {
        "success": True,
        "status_code": 201,
        "message": "Usuario registrado exitosamente",
        "data": {
            "user_id": str(new_user.id),
            "email": new_user.email,
            "role": new_user.role
        }
    }


# ==================== LOGIN ====================

@router.post("/login")
async def login(
    credentials: UserLogin,
    db: Session = Depends(get_db)
):
    """
    Iniciar sesión y obtener un access token (Bearer).
    """
    user = db.query(User).filter(User.email == credentials.email).first()
    
    if not user or not verify_password(credentials.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "success": False,
                "status_code": 401,
                "message": "Email o contraseña incorrectos",
                "error": "INVALID_CREDENTIALS"
            }
        )
    
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
    
    access_token = create_access_token({"sub": str(user.id), "role": user.role})
    
    return {
        "success": True,
        "status_code": 200,
        "message": "Login exitoso",
        "data": {
            "access_token": access_token,
            "token_type": "bearer",
            "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            "user": {
                "id": str(user.id),
                "email": user.email,
                "full_name": user.full_name,
                "role": user.role
            }
        }
    }
