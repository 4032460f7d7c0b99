"""
Endpoints para reseñas de productos.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core import review_service
from core.config import settings
from core.database import get_db
from core.dependencies import get_current_identity
from core.identity import Identity
from models.reviews import Review
from schemas.reviews import ReviewCreate, ReviewUpdate

router = APIRouter(
    prefix="/reviews",
    tags=["reviews"]
)


def format_review_response(review: Review) -> dict:
    return {
        "id": review.id,
        "user_id": str(review.user_id),
        "user_name": review.user.full_name if review.user else None,
        "product_id": review.product_id,
        "product_name": review.product.name if review.product else None,
        "rating": review.rating,
        "comment": review.comment,
        "created_at": review.created_at.isoformat() if review.created_at else None,
        "updated_at": review.updated_at.isoformat() if review.updated_at else None
    }


# ==================== LECTURA (PÚBLICA) ====================

@router.get("")
async def list_reviews(db: Session = Depends(get_db)):
    """Listar todas las reseñas vivas, más recientes primero"""
    reviews = review_service.list_reviews(db)
    return {
        "success": True,
        "status_code": 200,
        "message": "Reseñas obtenidas exitosamente",
        "data": [format_review_response(r) for r in reviews]
    }


@router.get("/top")
async def top_reviews(
    limit: int = Query(settings.TOP_REVIEWS_LIMIT, ge=1, le=100, description="Cantidad de productos"),
    db: Session = Depends(get_db)
):
    """
    Productos mejor calificados: promedio (2 decimales) y cantidad de reseñas.
    """
    return {
        "success": True,
        "status_code": 200,
        "message": "Top de productos por reseñas",
        "data": review_service.top_reviews(db, limit)
    }


@router.get("/product/{product_id}")
async def reviews_by_product(product_id: int, db: Session = Depends(get_db)):
    reviews = review_service.list_reviews_by_product(db, product_id)
    return {
        "success": True,
        "status_code": 200,
        "message": "Reseñas del producto",
        "data": [format_review_response(r) for r in reviews]
    }


@router.get("/{review_id}")
async def get_review(review_id: int, db: Session = Depends(get_db)):
    review = review_service.get_review(db, review_id)
    return {
        "success": True,
        "status_code": 200,
        "message": "Reseña obtenida exitosamente",
        "data": format_review_response(review)
    }


# ==================== ESCRITURA ====================

@router.post("", status_code=201)
async def create_review(
    review_data: ReviewCreate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """
    Crear una reseña.

    - Requiere haber comprado el producto (orden no eliminada)
    - Recalcula el promedio del producto
    """
    review = review_service.create_review(
        db,
        identity.id,
        review_data.product_id,
        review_data.rating,
        review_data.comment
    )
    return {
        "success": True,
        "status_code": 201,
        "message": "Reseña creada exitosamente",
        "data": format_review_response(review)
    }


@router.patch("/{review_id}")
async def update_review(
    review_id: int,
    review_data: ReviewUpdate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """Editar una reseña propia"""
    review = review_service.update_review(
        db, review_id, identity.id, review_data.dict(exclude_unset=True)
    )
    return {
        "success": True,
        "status_code": 200,
        "message": "Reseña actualizada exitosamente",
        "data": format_review_response(review)
    }


@router.delete("/{review_id}")
async def delete_review(
    review_id: int,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """
    Eliminar una reseña. El administrador puede eliminar cualquiera.
    """
    review = review_service.delete_review(db, review_id, identity)
    return {
        "success": True,
        "status_code": 200,
        "message": "Reseña eliminada exitosamente",
        "data": format_review_response(review)
    }
