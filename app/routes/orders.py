"""
Endpoints para órdenes de compra (usuarios y administración).
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
import uuid

from core import order_service
from core.database import get_db
from core.dependencies import get_current_identity, get_current_admin_identity
from core.errors import ForbiddenError
from core.identity import Identity
from models.order import Order
from schemas.orders import OrderCreate, OrderUpdate, OrderStatusUpdate

router = APIRouter(
    prefix="/orders",
    tags=["orders"]
)


def format_order_response(order: Order) -> dict:
    """Formatear orden para respuesta"""
    items = []
    for item in order.order_items:
        items.append({
            "id": item.id,
            "product_id": item.product_id,
            "product_name": item.product_name,
            "quantity": item.quantity,
            "unit_price": float(item.unit_price),
            "subtotal": float(item.subtotal)
        })

    return {
        "id": order.id,
        "user_id": str(order.user_id),
        "payment_method": order.payment_method,
        "status": order.status.value,
        "total": float(order.total),
        "notes": order.notes,
        "tracking_number": order.tracking_number,
        "order_items": items,
        "created_at": order.created_at.isoformat() if order.created_at else None,
        "updated_at": order.updated_at.isoformat() if order.updated_at else None
    }


# ==================== ADMIN ====================

@router.get("")
async def list_orders(
    status: Optional[str] = Query(None, description="Estados separados por coma (ej. pending,shipped)"),
    admin: Identity = Depends(get_current_admin_identity),
    db: Session = Depends(get_db)
):
    """
    Listar todas las órdenes (admin), más recientes primero.
    """
    statuses = [s.strip() for s in status.split(",") if s.strip()] if status else None
    orders = order_service.list_orders(db, statuses)

    return {
        "success": True,
        "status_code": 200,
        "message": "Órdenes obtenidas exitosamente",
        "data": [format_order_response(order) for order in orders]
    }


@router.get("/stats")
async def get_order_stats(
    admin: Identity = Depends(get_current_admin_identity),
    db: Session = Depends(get_db)
):
    """
    Cantidad de órdenes y monto total por estado (admin).
    """
    return {
        "success": True,
        "status_code": 200,
        "message": "Estadísticas obtenidas exitosamente",
        "data": order_service.order_statistics(db)
    }


# ==================== USUARIOS ====================

@router.get("/user/{user_id}")
async def get_user_orders(
    user_id: uuid.UUID,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """
    Órdenes de un usuario. Sólo el propio usuario o un administrador.
    """
    orders = order_service.list_orders_for_user(db, user_id, identity)

    return {
        "success": True,
        "status_code": 200,
        "message": "Órdenes obtenidas exitosamente",
        "data": [format_order_response(order) for order in orders]
    }


@router.get("/{order_id}")
async def get_order(
    order_id: int,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """
    Detalle de una orden. Sólo el dueño o un administrador.
    """
    order = order_service.get_order(db, order_id, identity)

    return {
        "success": True,
        "status_code": 200,
        "message": "Orden obtenida exitosamente",
        "data": format_order_response(order)
    }


@router.post("", status_code=201)
async def create_order(
    order_data: OrderCreate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """
    Crear una orden.

    - Valida productos y stock antes de modificar nada
    - Guarda el precio actual de cada producto (snapshot)
    - Descuenta stock y vacía el carrito del dueño
    """
    owner_id = order_data.user_id or identity.id
    if not identity.can_access(owner_id):
        raise ForbiddenError("No puedes crear pedidos para otro usuario")

    order = order_service.create_order(
        db,
        owner_id,
        [item.dict() for item in order_data.items],
        order_data.payment_method
    )

    return {
        "success": True,
        "status_code": 201,
        "message": "Orden creada exitosamente",
        "data": format_order_response(order)
    }


@router.put("/{order_id}")
async def update_order(
    order_id: int,
    order_data: OrderUpdate,
    admin: Identity = Depends(get_current_admin_identity),
    db: Session = Depends(get_db)
):
    """
    Actualizar una orden (admin).
    """
    order = order_service.update_order(db, order_id, order_data.dict(exclude_unset=True))

    return {
        "success": True,
        "status_code": 200,
        "message": "Orden actualizada exitosamente",
        "data": format_order_response(order)
    }


@router.patch("/{order_id}/status")
async def update_order_status(
    order_id: int,
    status_data: OrderStatusUpdate,
    admin: Identity = Depends(get_current_admin_identity),
    db: Session = Depends(get_db)
):
    """
    Cambiar el estado de una orden (admin). No se valida la transición.
    """
    order = order_service.set_status(db, order_id, status_data.status)

    return {
        "success": True,
        "status_code": 200,
        "message": f"Estado actualizado a '{order.status.value}'",
        "data": format_order_response(order)
    }


@router.delete("/{order_id}")
async def delete_order(
    order_id: int,
    admin: Identity = Depends(get_current_admin_identity),
    db: Session = Depends(get_db)
):
    """
    Eliminar una orden (admin). No restaura el stock.
    """
    order = order_service.delete_order(db, order_id)

    return {
        "success": True,
        "status_code": 200,
        "message": "Orden eliminada exitosamente",
        "data": format_order_response(order)
    }
