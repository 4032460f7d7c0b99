"""
Schemas de autenticación y usuarios.
"""
from pydantic import BaseModel, EmailStr, Field, validator


# ==================== AUTH SCHEMAS ====================

class UserRegister(BaseModel):
    """Schema para registro de usuario"""
    email: EmailStr = Field(..., description="Email del usuario")
    password: str = Field(..., min_length=8, max_length=100, description="Contraseña (mínimo 8 caracteres)")
    full_name: str = Field(..., min_length=2, max_length=255, description="Nombre completo")
    
    @validator('password')
    def validate_password(cls, v):
        """Validar que la contraseña tenga letras y números"""
        if not any(char.isdigit() for char in v):
            raise ValueError('La contraseña debe contener al menos un número')
        if not any(char.isalpha() for char in v):
            raise ValueError('La contraseña debe contener al menos una letra')
        return v


class UserLogin(BaseModel):
    """Schema para login de usuario"""
    email: EmailStr = Field(..., description="Email del usuario")
    password: str = Field(..., description="Contraseña")
