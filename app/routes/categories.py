"""
Endpoints de categorías.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core import catalog_service
from core.database import get_db
from core.dependencies import get_current_admin_identity
from core.identity import Identity
from models.products import Category
from schemas.products import CategoryCreate, CategoryUpdate

router = APIRouter(
    prefix="/categories",
    tags=["categories"]
)


def format_category_response(category: Category) -> dict:
    return {
        "id": category.id,
        "name": category.name,
        "description": category.description,
        "created_at": category.created_at.isoformat() if category.created_at else None
    }


@router.get("")
async def list_categories(db: Session = Depends(get_db)):
    """
    Listar categorías ordenadas por nombre.
    """
    categories = catalog_service.list_categories(db)
    return {
        "success": True,
        "status_code": 200,
        "message": "Categorías obtenidas exitosamente",
        "data": [format_category_response(c) for c in categories]
    }


@router.get("/stats")
async def category_stats(
    admin: Identity = Depends(get_current_admin_identity),
    db: Session = Depends(get_db)
):
    """
    Cantidad de productos por categoría (admin).
    """
    return {
        "success": True,
        "status_code": 200,
        "message": "Estadísticas obtenidas exitosamente",
        "data": catalog_service.category_statistics(db)
    }


@router.get("/{category_id}")
async def get_category(category_id: int, db: Session = Depends(get_db)):
    category = catalog_service.get_category(db, category_id)
    return {
        "success": True,
        "status_code": 200,
        "message": "Categoría obtenida exitosamente",
        "data": format_category_response(category)
    }


@router.post("", status_code=201)
async def create_category(
    category_data: CategoryCreate,
    admin: Identity = Depends(get_current_admin_identity),
    db: Session = Depends(get_db)
):
    """
    Crear una nueva categoría (solo administradores).
    """
    category = catalog_service.create_category(db, category_data.dict())
    return {
        "success": True,
        "status_code": 201,
        "message": "Categoría creada exitosamente",
        "data": format_category_response(category)
    }


@router.put("/{category_id}")
async def update_category(
    category_id: int,
    category_data: CategoryUpdate,
    admin: Identity = Depends(get_current_admin_identity),
    db: Session = Depends(get_db)
):
    category = catalog_service.update_category(db, category_id, category_data.dict(exclude_unset=True))
    return {
        "success": True,
        "status_code": 200,
        "message": "Categoría actualizada exitosamente",
        "data": format_category_response(category)
    }


@router.delete("/{category_id}")
async def delete_category(
    category_id: int,
    admin: Identity = Depends(get_current_admin_identity),
    db: Session = Depends(get_db)
):
    """
    Eliminar una categoría (tombstone).
    """
    category = catalog_service.delete_category(db, category_id)
    return {
        "success": True,
        "status_code": 200,
        "message": "Categoría eliminada exitosamente",
        "data": format_category_response(category)
    }
