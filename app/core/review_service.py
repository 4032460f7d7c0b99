"""
Servicio de reseñas de productos.

Sólo puede reseñar un producto quien tenga una orden viva que lo contenga.
Después de cada alta, edición o baja se recalcula el agregado desnormalizado
del producto (average_rating, review_count) en la misma transacción.
"""
import logging
import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import settings
from core.errors import ForbiddenError, NotFoundError, UnexpectedError, ValidationError
from core.identity import Identity
from models.order import Order, OrderItem
from models.products import Product
from models.reviews import Review

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


# ==================== AGREGADO ====================

def recompute_product_rating(db: Session, product_id: int) -> Optional[Product]:
    """
    Recalcular promedio, cantidad y referencias de las reseñas vivas de un producto.

    Bloquea la fila del producto antes de leer las reseñas: dos transacciones
    concurrentes sobre el mismo producto se serializan y la segunda ya ve las
    reseñas confirmadas por la primera.

    Idempotente: siempre parte de la tabla de reseñas, nunca del valor anterior.
    Sin reseñas deja los campos en cero y la lista vacía. No hace commit.
    """
    product = db.query(Product).filter(Product.id == product_id).with_for_update().first()
    if not product:
        return None

    live = db.query(Review.id, Review.rating).filter(
        Review.product_id == product_id,
        Review.is_deleted == False
    ).order_by(Review.id).all()

    product.review_ids = [row.id for row in live]
    product.review_count = len(live)
    product.average_rating = sum(row.rating for row in live) / len(live) if live else 0.0
    return product


def _commit_review_change(db: Session, review: Review) -> Review:
    """
    Punto único de cierre de toda modificación de reseñas:
    recalcula el agregado del producto y hace commit.
    """
    try:
        db.flush()
        recompute_product_rating(db, review.product_id)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error guardando reseña del producto {review.product_id}: {str(e)}")
        raise UnexpectedError("No se pudo guardar la reseña")

    db.refresh(review)
    return review


# ==================== HELPERS ====================

def _validate_rating(value: Any) -> int:
    message = f"La puntuación debe ser un entero entre {MIN_RATING} y {MAX_RATING}"
    if isinstance(value, bool):
        raise ValidationError(message)
    try:
        number = Decimal(str(value).strip())
    except ArithmeticError:
        raise ValidationError(message)
    if not number.is_finite() or number != number.to_integral_value():
        raise ValidationError(message)
    if not MIN_RATING <= number <= MAX_RATING:
        raise ValidationError(message)
    return int(number)


def _has_purchased(db: Session, user_id: uuid.UUID, product_id: int) -> bool:
    return db.query(Order.id).join(
        OrderItem, OrderItem.order_id == Order.id
    ).filter(
        Order.user_id == user_id,
        Order.is_deleted == False,
        OrderItem.product_id == product_id
    ).first() is not None


def _live_review_query(db: Session):
    return db.query(Review).join(
        Product, Review.product_id == Product.id
    ).filter(
        Review.is_deleted == False,
        Product.is_deleted == False
    )


# ==================== OPERACIONES ====================

def create_review(
    db: Session,
    user_id: uuid.UUID,
    product_id: int,
    rating: Any,
    comment: Optional[str] = None
) -> Review:
    """
    Crear una reseña.

    - 404 si el producto no existe o está eliminado
    - 403 si el usuario no tiene una orden viva con el producto
    """
    rating = _validate_rating(rating)

    product = db.query(Product).filter(
        Product.id == product_id,
        Product.is_deleted == False
    ).first()
    if not product:
        raise NotFoundError("Producto no encontrado", "PRODUCT_NOT_FOUND")

    if not _has_purchased(db, user_id, product_id):
        logger.warning(f"Reseña rechazada: {user_id} no ha comprado el producto {product_id}")
        raise ForbiddenError("Debes comprar el producto antes de reseñar", "PURCHASE_REQUIRED")

    review = Review(
        user_id=user_id,
        product_id=product_id,
        rating=rating,
        comment=comment
    )
    db.add(review)

    review = _commit_review_change(db, review)
    logger.info(f"Reseña {review.id} creada para el producto {product_id}")
    return review


def update_review(db: Session, review_id: int, author_id: uuid.UUID, patch: Dict[str, Any]) -> Review:
    """
    Editar una reseña. Sólo el autor; para cualquier otro la reseña "no existe".
    """
    review = db.query(Review).filter(
        Review.id == review_id,
        Review.user_id == author_id,
        Review.is_deleted == False
    ).first()
    if not review:
        raise NotFoundError("Reseña no encontrada", "REVIEW_NOT_FOUND")

    if patch.get("rating") is not None:
        review.rating = _validate_rating(patch["rating"])
    if "comment" in patch and patch["comment"] is not None:
        review.comment = patch["comment"]

    return _commit_review_change(db, review)


def delete_review(db: Session, review_id: int, identity: Identity) -> Review:
    """
    Eliminar (tombstone) una reseña.

    El administrador puede eliminar cualquiera; el resto sólo las propias.
    """
    review = db.query(Review).filter(
        Review.id == review_id,
        Review.is_deleted == False
    ).first()
    if not review:
        raise NotFoundError("Reseña no encontrada", "REVIEW_NOT_FOUND")

    if not identity.can_access(review.user_id):
        raise ForbiddenError("No puedes eliminar esta reseña")

    review.is_deleted = True

    review = _commit_review_change(db, review)
    logger.info(f"Reseña {review_id} eliminada por {identity.id}")
    return review


def get_review(db: Session, review_id: int) -> Review:
    review = _live_review_query(db).filter(Review.id == review_id).first()
    if not review:
        raise NotFoundError("Reseña no encontrada", "REVIEW_NOT_FOUND")
    return review


def list_reviews(db: Session) -> List[Review]:
    return _live_review_query(db).order_by(
        Review.created_at.desc(), Review.id.desc()
    ).all()


def list_reviews_by_product(db: Session, product_id: int) -> List[Review]:
    return _live_review_query(db).filter(
        Review.product_id == product_id
    ).order_by(
        Review.created_at.desc(), Review.id.desc()
    ).all()


def top_reviews(db: Session, limit: int = settings.TOP_REVIEWS_LIMIT) -> List[dict]:
    """
    Productos mejor calificados según sus reseñas vivas.

    Ordena por promedio desc y luego por cantidad desc. Promedio redondeado a 2 decimales.
    """
    average = func.avg(Review.rating).label("average_rating")
    count = func.count(Review.id).label("review_count")

    rows = db.query(
        Product.id,
        Product.name,
        average,
        count
    ).join(
        Review, Review.product_id == Product.id
    ).filter(
        Review.is_deleted == False,
        Product.is_deleted == False
    ).group_by(
        Product.id, Product.name
    ).order_by(
        average.desc(), count.desc(), Product.id
    ).limit(limit).all()

    return [
        {
            "product_id": row.id,
            "product_name": row.name,
            "average_rating": round(float(row.average_rating), 2),
            "review_count": row.review_count
        }
        for row in rows
    ]
