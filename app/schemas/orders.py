"""
Schemas para órdenes de compra.
"""
from pydantic import BaseModel, Field, validator
from typing import Optional, List
import uuid

from models.order import OrderStatus


VALID_STATUSES = [s.value for s in OrderStatus]


def _validate_status(v):
    if v is not None and v not in VALID_STATUSES:
        raise ValueError(f"Estado debe ser uno de: {', '.join(VALID_STATUSES)}")
    return v


# ==================== ORDER ITEM SCHEMAS ====================

class OrderItemCreate(BaseModel):
    """Línea de la orden"""
    product_id: int = Field(..., description="ID del producto")
    quantity: int = Field(..., gt=0, strict=True, description="Cantidad entera del producto (sin booleanos)")


# ==================== ORDER SCHEMAS ====================

class OrderCreate(BaseModel):
    """Crear orden"""
    user_id: Optional[uuid.UUID] = Field(None, description="Dueño de la orden (por defecto el usuario autenticado)")
    items: List[OrderItemCreate] = Field(..., min_length=1, description="Productos y cantidades")
    payment_method: Optional[str] = Field(None, max_length=50, description="Método de pago")


# ==================== ADMIN SCHEMAS ====================

class OrderUpdate(BaseModel):
    """Actualizar orden (admin). Items y total no se modifican."""
    payment_method: Optional[str] = Field(None, max_length=50)
    status: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=500)
    tracking_number: Optional[str] = Field(None, max_length=255)

    @validator('status')
    def validate_status(cls, v):
        """Validar estado"""
        return _validate_status(v)


class OrderStatusUpdate(BaseModel):
    """Actualizar estado de orden (admin)"""
    status: str = Field(..., description="Nuevo estado de la orden")

    @validator('status')
    def validate_status(cls, v):
        """Validar estado"""
        return _validate_status(v)
