"""
Servicio de órdenes de compra.

La creación de una orden es una sola transacción:
validar → crear orden con snapshot de precios → descontar stock → vaciar carrito.
Si algo falla se hace rollback completo; nunca queda stock descontado sin orden.
"""
import logging
import uuid
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.cart_service import validate_quantity
from core.errors import (
    ForbiddenError,
    InsufficientStockError,
    NotFoundError,
    UnexpectedError,
    ValidationError,
)
from core.identity import Identity
from models.carts import Cart, CartItem
from models.order import Order, OrderItem, OrderStatus
from models.products import Product

logger = logging.getLogger(__name__)

# Campos que un administrador puede modificar; items y total son inmutables
UPDATABLE_FIELDS = ("payment_method", "status", "notes", "tracking_number")


class _StockConflict(Exception):
    """El descuento condicional de stock no afectó ninguna fila"""

    def __init__(self, product_name: str):
        super().__init__(product_name)
        self.product_name = product_name


def parse_status(value: Any) -> OrderStatus:
    """Convertir un valor al enum OrderStatus (ValidationError si no existe)"""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).strip().lower())
    except ValueError:
        valid = ", ".join(s.value for s in OrderStatus)
        raise ValidationError(f"Estado debe ser uno de: {valid}")


def _require_order(db: Session, order_id: int) -> Order:
    order = db.query(Order).filter(
        Order.id == order_id,
        Order.is_deleted == False
    ).first()
    if not order:
        raise NotFoundError("Pedido no encontrado", "ORDER_NOT_FOUND")
    return order


# ==================== CREACIÓN ====================

def _validate_lines(lines: Iterable[Dict[str, Any]]) -> List[Dict[str, int]]:
    lines = list(lines or [])
    if not lines:
        raise ValidationError("Los items son obligatorios")

    parsed = []
    for line in lines:
        product_id = line.get("product_id")
        if product_id is None:
            raise ValidationError("Los items deben incluir producto y cantidad válida")
        try:
            quantity = validate_quantity(line.get("quantity"))
        except ValidationError:
            raise ValidationError("Los items deben incluir producto y cantidad válida")
        parsed.append({"product_id": product_id, "quantity": quantity})

    product_ids = [line["product_id"] for line in parsed]
    if len(set(product_ids)) != len(product_ids):
        raise ValidationError("Un producto no puede repetirse en la orden")

    return parsed


def create_order(
    db: Session,
    owner_id: uuid.UUID,
    lines: Iterable[Dict[str, Any]],
    payment_method: Optional[str] = None
) -> Order:
    """
    Crear una orden.

    - Todos los productos deben existir y no estar eliminados (400 si no)
    - Valida stock de cada línea antes de modificar nada
    - Guarda el precio unitario actual como snapshot
    - Descuenta stock con un UPDATE condicionado a stock >= cantidad
    - Vacía el carrito vivo del usuario
    """
    parsed = _validate_lines(lines)
    product_ids = [line["product_id"] for line in parsed]

    products = db.query(Product).filter(
        Product.id.in_(product_ids),
        Product.is_deleted == False
    ).all()
    products_by_id = {product.id: product for product in products}

    if len(products_by_id) != len(product_ids):
        raise ValidationError("Algún producto no está disponible", "PRODUCT_UNAVAILABLE")

    order_items_data = []
    total = Decimal("0.00")

    for line in parsed:
        product = products_by_id[line["product_id"]]
        quantity = line["quantity"]

        if product.stock < quantity:
            logger.warning(
                f"Orden rechazada para {owner_id}: stock insuficiente de {product.id} "
                f"(disponible {product.stock}, solicitado {quantity})"
            )
            raise InsufficientStockError(f"Stock insuficiente para {product.name}")

        unit_price = Decimal(str(product.price))
        subtotal = unit_price * quantity
        total += subtotal

        order_items_data.append({
            "product_id": product.id,
            "product_name": product.name,
            "quantity": quantity,
            "unit_price": unit_price,
            "subtotal": subtotal
        })

    try:
        new_order = Order(
            user_id=owner_id,
            payment_method=payment_method,
            status=OrderStatus.PENDING,
            total=total
        )
        for item_data in order_items_data:
            new_order.order_items.append(OrderItem(**item_data))
        db.add(new_order)
        db.flush()

        for item_data in order_items_data:
            result = db.execute(
                update(Product)
                .where(
                    Product.id == item_data["product_id"],
                    Product.is_deleted == False,
                    Product.stock >= item_data["quantity"]
                )
                .values(stock=Product.stock - item_data["quantity"])
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise _StockConflict(item_data["product_name"])

        cart_ids = [
            row.id for row in db.query(Cart.id).filter(
                Cart.user_id == owner_id,
                Cart.is_deleted == False
            ).all()
        ]
        if cart_ids:
            db.query(CartItem).filter(
                CartItem.cart_id.in_(cart_ids)
            ).delete(synchronize_session=False)

        db.commit()
    except _StockConflict as e:
        db.rollback()
        logger.warning(f"Orden de {owner_id} revertida: el stock de {e.product_name} cambió")
        raise InsufficientStockError(f"Stock insuficiente para {e.product_name}")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creando orden para {owner_id}: {str(e)}")
        raise UnexpectedError("No se pudo crear el pedido")

    db.expire_all()
    logger.info(f"Orden {new_order.id} creada para {owner_id} por {total}")
    return _require_order(db, new_order.id)


# ==================== CONSULTAS ====================

def get_order(db: Session, order_id: int, identity: Identity) -> Order:
    """
    Obtener una orden. Sólo el dueño o un administrador.
    """
    order = _require_order(db, order_id)
    if not identity.can_access(order.user_id):
        raise ForbiddenError("No puedes acceder a este pedido")
    return order


def list_orders(db: Session, statuses: Optional[Iterable[Any]] = None) -> List[Order]:
    """
    Listar órdenes (admin). statuses filtra por cualquiera de los estados dados.
    """
    query = db.query(Order).filter(Order.is_deleted == False)

    if statuses:
        wanted = {parse_status(s) for s in statuses}
        query = query.filter(Order.status.in_(wanted))

    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


def list_orders_for_user(db: Session, user_id: uuid.UUID, identity: Identity) -> List[Order]:
    """
    Listar órdenes de un usuario. Sólo el propio usuario o un administrador.
    """
    if not identity.can_access(user_id):
        raise ForbiddenError("No puedes acceder a estos pedidos")

    return db.query(Order).filter(
        Order.user_id == user_id,
        Order.is_deleted == False
    ).order_by(Order.created_at.desc(), Order.id.desc()).all()


# ==================== ADMINISTRACIÓN ====================

def update_order(db: Session, order_id: int, patch: Dict[str, Any]) -> Order:
    """
    Actualizar campos de una orden (admin).

    Sólo se aplican payment_method, status, notes y tracking_number.
    """
    order = _require_order(db, order_id)

    for field in UPDATABLE_FIELDS:
        if field not in patch or patch[field] is None:
            continue
        value = patch[field]
        if field == "status":
            value = parse_status(value)
        setattr(order, field, value)

    db.commit()
    db.refresh(order)
    logger.info(f"Orden {order_id} actualizada: {sorted(k for k in patch if k in UPDATABLE_FIELDS)}")
    return order


def set_status(db: Session, order_id: int, status: Any) -> Order:
    """
    Cambiar el estado de una orden (admin).

    No se valida la transición: el nuevo estado sobrescribe al anterior.
    """
    new_status = parse_status(status)
    order = _require_order(db, order_id)

    old_status = order.status
    order.status = new_status
    db.commit()
    db.refresh(order)

    logger.info(f"Orden {order_id}: estado '{old_status.value}' -> '{new_status.value}'")
    return order


def delete_order(db: Session, order_id: int) -> Order:
    """
    Eliminar una orden (admin). Sólo marca is_deleted; el stock no se restaura.
    """
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise NotFoundError("Pedido no encontrado", "ORDER_NOT_FOUND")

    order.is_deleted = True
    db.commit()
    db.refresh(order)

    logger.info(f"Orden {order_id} eliminada")
    return order


def order_statistics(db: Session) -> List[dict]:
    """
    Órdenes agrupadas por estado: cantidad y monto total, de mayor a menor cantidad.
    """
    order_count = func.count(Order.id).label("order_count")
    rows = db.query(
        Order.status,
        order_count,
        func.coalesce(func.sum(Order.total), 0).label("total_amount")
    ).filter(
        Order.is_deleted == False
    ).group_by(
        Order.status
    ).order_by(
        order_count.desc()
    ).all()

    return [
        {
            "status": row.status.value,
            "count": row.order_count,
            "total_amount": float(row.total_amount)
        }
        for row in rows
    ]
