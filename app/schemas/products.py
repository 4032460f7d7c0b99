"""
Schemas para productos y categorías.
"""
from pydantic import BaseModel, Field
from typing import Optional


# ==================== CATEGORY SCHEMAS ====================

class CategoryBase(BaseModel):
    """Schema base para categorías"""
    name: str = Field(..., min_length=2, max_length=100, description="Nombre de la categoría")
    description: Optional[str] = Field(None, max_length=500, description="Descripción de la categoría")


class CategoryCreate(CategoryBase):
    """Schema para crear categoría"""
    pass


class CategoryUpdate(BaseModel):
    """Schema para actualizar categoría"""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=500)


# ==================== PRODUCT SCHEMAS ====================

class ProductBase(BaseModel):
    """Schema base para productos"""
    name: str = Field(..., min_length=2, max_length=200, description="Nombre del producto")
    description: Optional[str] = Field(None, description="Descripción del producto")
    price: float = Field(..., ge=0, description="Precio del producto (no puede ser negativo)")
    stock: int = Field(0, ge=0, description="Stock disponible (no puede ser negativo)")
    category_id: Optional[int] = Field(None, description="ID de la categoría")


class ProductCreate(ProductBase):
    """Schema para crear producto"""
    pass


class ProductUpdate(BaseModel):
    """Schema para actualizar producto"""
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    category_id: Optional[int] = None


class StockUpdate(BaseModel):
    """Schema para fijar el stock (admin)"""
    stock: int = Field(..., ge=0, description="Nuevo stock")
