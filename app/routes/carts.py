"""
Endpoints para gestión de carritos de compra.

Todas las rutas aceptan ?user_id= opcional: sin él se opera sobre el carrito
del usuario autenticado; con un id ajeno sólo puede operar un administrador.
"""
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import Optional
import uuid

from core import cart_service
from core.database import get_db
from core.dependencies import get_current_identity
from core.identity import Identity
from models.carts import Cart
from schemas.carts import CartItemCreate, CartItemUpdate

router = APIRouter(
    prefix="/cart",
    tags=["cart"]
)


def format_cart_response(cart: Cart) -> dict:
    """
    Formatear el carrito con la información de cada producto.
    """
    items = []
    for item in cart.live_items:
        product = item.product
        items.append({
            "product_id": item.product_id,
            "quantity": item.quantity,
            "product": {
                "id": product.id,
                "name": product.name,
                "price": float(product.price),
                "stock": product.stock
            } if product else None
        })

    return {
        "id": cart.id,
        "user_id": str(cart.user_id),
        "items": items,
        "total_items": sum(item.quantity for item in cart.live_items),
        "created_at": cart.created_at.isoformat() if cart.created_at else None,
        "updated_at": cart.updated_at.isoformat() if cart.updated_at else None
    }


def get_cart_owner(
    user_id: Optional[uuid.UUID] = Query(None, description="Dueño del carrito (por defecto el usuario autenticado)"),
    identity: Identity = Depends(get_current_identity)
) -> uuid.UUID:
    """Resolver el dueño del carrito y verificar permisos"""
    return cart_service.resolve_cart_owner(identity, user_id)


# ==================== ENDPOINTS ====================

@router.post("", status_code=201)
async def create_cart(
    owner_id: uuid.UUID = Depends(get_cart_owner),
    db: Session = Depends(get_db)
):
    """
    Obtener o crear el carrito del usuario.

    - 201 si se creó un carrito nuevo
    - 200 si ya existía uno
    """
    cart, created = cart_service.get_or_create_cart(db, owner_id)
    status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK

    return JSONResponse(
        status_code=status_code,
        content={
            "success": True,
            "status_code": status_code,
            "message": "Carrito creado exitosamente" if created else "Carrito existente",
            "data": format_cart_response(cart)
        }
    )


@router.get("")
async def get_cart(
    owner_id: uuid.UUID = Depends(get_cart_owner),
    db: Session = Depends(get_db)
):
    """
    Obtener el carrito con los datos de cada producto (nombre, precio, stock).
    """
    cart = cart_service.get_cart(db, owner_id)

    return {
        "success": True,
        "status_code": 200,
        "message": "Carrito obtenido exitosamente",
        "data": format_cart_response(cart)
    }


@router.get("/total")
async def get_cart_total(
    owner_id: uuid.UUID = Depends(get_cart_owner),
    db: Session = Depends(get_db)
):
    """
    Calcular el total del carrito con los precios actuales.

    Un carrito vacío devuelve total 0.
    """
    totals = cart_service.compute_totals(db, owner_id)

    return {
        "success": True,
        "status_code": 200,
        "message": "Total calculado",
        "data": totals
    }


@router.post("/items")
async def add_item_to_cart(
    item_data: CartItemCreate,
    owner_id: uuid.UUID = Depends(get_cart_owner),
    db: Session = Depends(get_db)
):
    """
    Agregar producto al carrito.

    - Si el producto ya existe, incrementa la cantidad
    - Valida que el producto exista y no esté eliminado
    - Valida el stock contra la cantidad solicitada
    """
    cart = cart_service.add_item(db, owner_id, item_data.product_id, item_data.quantity)

    return {
        "success": True,
        "status_code": 200,
        "message": "Producto agregado al carrito",
        "data": format_cart_response(cart)
    }


@router.patch("/items")
async def update_cart_item(
    item_data: CartItemUpdate,
    owner_id: uuid.UUID = Depends(get_cart_owner),
    db: Session = Depends(get_db)
):
    """
    Fijar la cantidad de un producto del carrito.
    """
    cart = cart_service.set_item_quantity(db, owner_id, item_data.product_id, item_data.quantity)

    return {
        "success": True,
        "status_code": 200,
        "message": "Cantidad actualizada",
        "data": format_cart_response(cart)
    }


@router.delete("/items/{product_id}")
async def remove_cart_item(
    product_id: int,
    owner_id: uuid.UUID = Depends(get_cart_owner),
    db: Session = Depends(get_db)
):
    """
    Quitar un producto del carrito (si no estaba, no hace nada).
    """
    cart = cart_service.remove_item(db, owner_id, product_id)

    return {
        "success": True,
        "status_code": 200,
        "message": "Producto eliminado del carrito",
        "data": format_cart_response(cart)
    }


@router.delete("")
async def clear_cart(
    owner_id: uuid.UUID = Depends(get_cart_owner),
    db: Session = Depends(get_db)
):
    """
    Vaciar el carrito completamente.
    """
    cart = cart_service.clear_cart(db, owner_id)

    return {
        "success": True,
        "status_code": 200,
        "message": "Carrito vaciado exitosamente",
        "data": format_cart_response(cart)
    }
