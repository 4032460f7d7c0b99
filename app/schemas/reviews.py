"""
Schemas para reseñas.
"""
from pydantic import BaseModel, Field
from typing import Optional


class ReviewCreate(BaseModel):
    """Crear reseña de un producto comprado"""
    product_id: int = Field(..., description="ID del producto")
    rating: int = Field(..., ge=1, le=5, description="Puntuación (1-5)")
    comment: Optional[str] = Field(None, max_length=1000, description="Comentario")


class ReviewUpdate(BaseModel):
    """Editar reseña propia"""
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)
