"""
Schemas para carritos de compra.
"""
from pydantic import BaseModel, Field


# ==================== CART ITEM SCHEMAS ====================

class CartItemBase(BaseModel):
    """Schema base para items del carrito"""
    product_id: int = Field(..., description="ID del producto")
    quantity: int = Field(..., gt=0, strict=True, description="Cantidad entera mayor a cero (sin booleanos)")


class CartItemCreate(CartItemBase):
    """Schema para agregar producto al carrito"""
    pass


class CartItemUpdate(CartItemBase):
    """Schema para fijar la cantidad de un producto que ya está en el carrito"""
    pass
