"""
Servicio de carritos de compra.

Cada usuario tiene como máximo un carrito vivo (is_deleted = False). El carrito
se crea de forma perezosa, se vacía al crear una orden y nunca se borra
físicamente.

El stock se valida contra la cantidad que se agrega en cada llamada, no contra
la cantidad acumulada en el carrito: el stock sólo se descuenta al crear la
orden, y es ahí donde se hace la validación definitiva.
"""
import logging
import uuid
from decimal import Decimal
from typing import Any, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from core.errors import ForbiddenError, InsufficientStockError, NotFoundError, UnexpectedError, ValidationError
from core.identity import Identity
from models.carts import Cart, CartItem
from models.products import Product
from models.user import User

logger = logging.getLogger(__name__)


# ==================== HELPERS ====================

def validate_quantity(value: Any) -> int:
    """
    Validar que la cantidad sea un entero positivo.

    Acepta enteros y cadenas numéricas ("3"). Rechaza cero, negativos,
    booleanos, fracciones y valores no numéricos.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError("La cantidad es obligatoria y debe ser numérica")

    try:
        number = Decimal(str(value).strip())
    except ArithmeticError:
        raise ValidationError("La cantidad debe ser numérica")

    if not number.is_finite() or number <= 0:
        raise ValidationError("La cantidad debe ser mayor a cero")
    if number != number.to_integral_value():
        raise ValidationError("La cantidad debe ser un número entero")

    return int(number)


def resolve_cart_owner(identity: Identity, user_id: Optional[uuid.UUID] = None) -> uuid.UUID:
    """
    Resolver el dueño del carrito sobre el que se opera.

    - Sin user_id: el propio usuario autenticado
    - Con user_id ajeno: sólo administradores
    """
    if user_id is None:
        return identity.id

    if not identity.can_access(user_id):
        raise ForbiddenError("No tienes permiso para esta acción")

    return user_id


def _find_live_cart(db: Session, owner_id: uuid.UUID) -> Optional[Cart]:
    return db.query(Cart).options(
        joinedload(Cart.cart_items).joinedload(CartItem.product)
    ).filter(
        Cart.user_id == owner_id,
        Cart.is_deleted == False
    ).first()


def _require_cart(db: Session, owner_id: uuid.UUID) -> Cart:
    cart = _find_live_cart(db, owner_id)
    if not cart:
        raise NotFoundError("Carrito no encontrado", "CART_NOT_FOUND")
    return cart


def _reload(db: Session, cart: Cart) -> Cart:
    db.expire_all()
    return _require_cart(db, cart.user_id)


# ==================== OPERACIONES ====================

def get_or_create_cart(db: Session, owner_id: uuid.UUID) -> Tuple[Cart, bool]:
    """
    Obtener el carrito vivo del usuario o crearlo vacío.

    Returns:
        Tupla (carrito, creado)
    """
    existing = _find_live_cart(db, owner_id)
    if existing:
        return existing, False

    if not db.query(User.id).filter(User.id == owner_id).first():
        raise NotFoundError("Usuario no encontrado", "USER_NOT_FOUND")

    cart = Cart(user_id=owner_id)
    db.add(cart)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        # Sólo el índice único parcial indica que otra petición lo creó en paralelo
        existing = _find_live_cart(db, owner_id)
        if not existing:
            logger.error(f"Error creando carrito para {owner_id}: {str(e)}")
            raise UnexpectedError("No se pudo crear el carrito")
        logger.info(f"Carrito de {owner_id} creado en paralelo, se reutiliza")
        return existing, False

    logger.info(f"Carrito creado para el usuario {owner_id}")
    return _require_cart(db, owner_id), True


def get_cart(db: Session, owner_id: uuid.UUID) -> Cart:
    """
    Obtener el carrito vivo del usuario (404 si no existe).

    Las líneas de productos eliminados siguen en cart_items pero no en
    cart.live_items, que es lo que se muestra y se suma.
    """
    return _require_cart(db, owner_id)


def add_item(db: Session, owner_id: uuid.UUID, product_id: int, quantity: Any) -> Cart:
    """
    Agregar producto al carrito.

    - Si el producto ya está en el carrito, suma la cantidad
    - Valida que el producto exista y no esté eliminado
    - Valida el stock contra la cantidad solicitada en esta llamada
    """
    quantity = validate_quantity(quantity)

    product = db.query(Product).filter(
        Product.id == product_id,
        Product.is_deleted == False
    ).first()
    if not product:
        raise NotFoundError("Producto no encontrado", "PRODUCT_NOT_FOUND")

    if product.stock < quantity:
        logger.warning(
            f"Stock insuficiente al agregar producto {product_id}: "
            f"disponible {product.stock}, solicitado {quantity}"
        )
        raise InsufficientStockError(f"Stock insuficiente. Disponible: {product.stock}")

    cart = _require_cart(db, owner_id)

    existing = next((item for item in cart.cart_items if item.product_id == product_id), None)
    if existing:
        existing.quantity = CartItem.quantity + quantity
    else:
        cart.cart_items.append(CartItem(product_id=product_id, quantity=quantity))

    db.commit()
    return _reload(db, cart)


def set_item_quantity(db: Session, owner_id: uuid.UUID, product_id: int, quantity: Any) -> Cart:
    """
    Fijar la cantidad de un producto que ya está en el carrito.
    """
    quantity = validate_quantity(quantity)
    cart = _require_cart(db, owner_id)

    item = next((item for item in cart.cart_items if item.product_id == product_id), None)
    if not item:
        raise NotFoundError("Producto no existe en el carrito", "ITEM_NOT_FOUND")

    item.quantity = quantity
    db.commit()
    return _reload(db, cart)


def remove_item(db: Session, owner_id: uuid.UUID, product_id: int) -> Cart:
    """
    Quitar un producto del carrito. Si no estaba, no hace nada.
    """
    cart = _require_cart(db, owner_id)

    for item in list(cart.cart_items):
        if item.product_id == product_id:
            cart.cart_items.remove(item)

    db.commit()
    return _reload(db, cart)


def clear_cart(db: Session, owner_id: uuid.UUID) -> Cart:
    """Vaciar el carrito"""
    cart = _require_cart(db, owner_id)
    cart.cart_items.clear()
    db.commit()
    return _reload(db, cart)


def compute_totals(db: Session, owner_id: uuid.UUID) -> dict:
    """
    Calcular el total del carrito con el precio actual de cada producto.

    Returns:
        {"total": float, "items": [{"product_id", "product_name", "quantity", "subtotal"}]}
    """
    cart = _require_cart(db, owner_id)

    rows = db.query(CartItem, Product).join(
        Product, CartItem.product_id == Product.id
    ).filter(
        CartItem.cart_id == cart.id,
        Product.is_deleted == False
    ).order_by(CartItem.id).all()

    total = Decimal("0.00")
    items = []
    for item, product in rows:
        subtotal = Decimal(str(product.price)) * item.quantity
        total += subtotal
        items.append({
            "product_id": product.id,
            "product_name": product.name,
            "quantity": item.quantity,
            "subtotal": float(subtotal)
        })

    return {
        "total": float(total),
        "items": items
    }
