from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from core import catalog_service
from core.database import get_db
from core.dependencies import get_current_admin_identity
from core.identity import Identity
from models.products import Product
from schemas.products import ProductCreate, ProductUpdate, StockUpdate

router = APIRouter(
    prefix="/products",
    tags=["products"]
)


def format_product_response(product: Product) -> dict:
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "price": float(product.price),
        "stock": product.stock,
        "category_id": product.category_id,
        "average_rating": product.average_rating,
        "review_count": product.review_count,
        "review_ids": list(product.review_ids or []),
        "created_at": product.created_at.isoformat() if product.created_at else None,
        "updated_at": product.updated_at.isoformat() if product.updated_at else None
    }


# ==================== PÚBLICOS ====================

@router.get("")
async def list_products(
    category_id: Optional[int] = Query(None, description="Filtrar por categoría"),
    min_price: Optional[float] = Query(None, ge=0, description="Precio mínimo"),
    max_price: Optional[float] = Query(None, ge=0, description="Precio máximo"),
    search: Optional[str] = Query(None, description="Buscar por nombre"),
    in_stock: Optional[bool] = Query(None, description="Sólo con (o sin) stock"),
    db: Session = Depends(get_db)
):
    """
    Listar productos con filtros opcionales.
    """
    products = catalog_service.list_products(
        db,
        category_id=category_id,
        min_price=min_price,
        max_price=max_price,
        search=search,
        in_stock=in_stock
    )
    return {
        "success": True,
        "status_code": 200,
        "message": "Productos obtenidos exitosamente",
        "data": [format_product_response(p) for p in products]
    }


@router.get("/top")
async def top_products(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db)
):
    """
    Productos mejor calificados.
    """
    products = catalog_service.top_products(db, limit)
    return {
        "success": True,
        "status_code": 200,
        "message": "Productos mejor calificados",
        "data": [format_product_response(p) for p in products]
    }


@router.get("/{product_id}")
async def get_product(product_id: int, db: Session = Depends(get_db)):
    product = catalog_service.get_product(db, product_id)
    return {
        "success": True,
        "status_code": 200,
        "message": "Producto obtenido exitosamente",
        "data": format_product_response(product)
    }


# ==================== ADMIN ====================

@router.post("", status_code=201)
async def create_product(
    product_data: ProductCreate,
    admin: Identity = Depends(get_current_admin_identity),
    db: Session = Depends(get_db)
):
    """
    Crear un producto (solo administradores).
    """
    product = catalog_service.create_product(db, product_data.dict())
    return {
        "success": True,
        "status_code": 201,
        "message": "Producto creado exitosamente",
        "data": format_product_response(product)
    }


@router.put("/{product_id}")
async def update_product(
    product_id: int,
    product_data: ProductUpdate,
    admin: Identity = Depends(get_current_admin_identity),
    db: Session = Depends(get_db)
):
    product = catalog_service.update_product(db, product_id, product_data.dict(exclude_unset=True))
    return {
        "success": True,
        "status_code": 200,
        "message": "Producto actualizado exitosamente",
        "data": format_product_response(product)
    }


@router.delete("/{product_id}")
async def delete_product(
    product_id: int,
    admin: Identity = Depends(get_current_admin_identity),
    db: Session = Depends(get_db)
):
    """
    Eliminar un producto (tombstone). Deja de aparecer en listados y carritos.
    """
    product = catalog_service.delete_product(db, product_id)
    return {
        "success": True,
        "status_code": 200,
        "message": "Producto eliminado exitosamente",
        "data": format_product_response(product)
    }


@router.patch("/{product_id}/stock")
async def update_stock(
    product_id: int,
    stock_data: StockUpdate,
    admin: Identity = Depends(get_current_admin_identity),
    db: Session = Depends(get_db)
):
    product = catalog_service.set_stock(db, product_id, stock_data.stock)
    return {
        "success": True,
        "status_code": 200,
        "message": "Stock actualizado",
        "data": format_product_response(product)
    }
