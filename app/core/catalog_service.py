"""
Catálogo: categorías y productos, con sus vistas de estadísticas.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.errors import NotFoundError, ValidationError
from models.products import Category, Product

logger = logging.getLogger(__name__)


# ==================== CATEGORÍAS ====================

def _require_category(db: Session, category_id: int) -> Category:
    category = db.query(Category).filter(
        Category.id == category_id,
        Category.is_deleted == False
    ).first()
    if not category:
        raise NotFoundError("Categoría no encontrada", "CATEGORY_NOT_FOUND")
    return category


def list_categories(db: Session) -> List[Category]:
    return db.query(Category).filter(
        Category.is_deleted == False
    ).order_by(Category.name).all()


def get_category(db: Session, category_id: int) -> Category:
    return _require_category(db, category_id)


def _commit_category(db: Session, category: Category) -> Category:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("Ya existe una categoría con ese nombre", "DUPLICATE_CATEGORY")
    db.refresh(category)
    return category


def create_category(db: Session, data: Dict[str, Any]) -> Category:
    category = Category(name=data["name"], description=data.get("description"))
    db.add(category)
    category = _commit_category(db, category)
    logger.info(f"Categoría {category.id} creada: {category.name}")
    return category


def update_category(db: Session, category_id: int, data: Dict[str, Any]) -> Category:
    category = _require_category(db, category_id)
    for field in ("name", "description"):
        if data.get(field) is not None:
            setattr(category, field, data[field])
    return _commit_category(db, category)


def delete_category(db: Session, category_id: int) -> Category:
    category = _require_category(db, category_id)
    category.is_deleted = True
    db.commit()
    db.refresh(category)
    logger.info(f"Categoría {category_id} eliminada")
    return category


def category_statistics(db: Session) -> List[dict]:
    """
    Cantidad de productos vivos por categoría viva.
    Ordenado por cantidad desc y luego por nombre.
    """
    total = func.count(Product.id).label("total_products")
    rows = db.query(
        Category.id,
        Category.name,
        total
    ).outerjoin(
        Product,
        (Product.category_id == Category.id) & (Product.is_deleted == False)
    ).filter(
        Category.is_deleted == False
    ).group_by(
        Category.id, Category.name
    ).order_by(
        total.desc(), Category.name
    ).all()

    return [
        {
            "category_id": row.id,
            "name": row.name,
            "total_products": row.total_products
        }
        for row in rows
    ]


# ==================== PRODUCTOS ====================

def _require_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(
        Product.id == product_id,
        Product.is_deleted == False
    ).first()
    if not product:
        raise NotFoundError("Producto no encontrado", "PRODUCT_NOT_FOUND")
    return product


def list_products(
    db: Session,
    category_id: Optional[int] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    search: Optional[str] = None,
    in_stock: Optional[bool] = None
) -> List[Product]:
    """
    Listar productos vivos con filtros opcionales.
    """
    query = db.query(Product).filter(Product.is_deleted == False)

    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if min_price is not None:
        query = query.filter(Product.price >= min_price)
    if max_price is not None:
        query = query.filter(Product.price <= max_price)
    if search:
        query = query.filter(Product.name.ilike(f"%{search}%"))
    if in_stock is True:
        query = query.filter(Product.stock > 0)
    elif in_stock is False:
        query = query.filter(Product.stock == 0)

    return query.order_by(Product.name).all()


def get_product(db: Session, product_id: int) -> Product:
    return _require_product(db, product_id)


def top_products(db: Session, limit: int = 10) -> List[Product]:
    """Productos con mejor calificación promedio (y más reseñas en empate)"""
    return db.query(Product).filter(
        Product.is_deleted == False,
        Product.review_count > 0
    ).order_by(
        Product.average_rating.desc(),
        Product.review_count.desc(),
        Product.id
    ).limit(limit).all()


def create_product(db: Session, data: Dict[str, Any]) -> Product:
    if data.get("category_id") is not None:
        _require_category(db, data["category_id"])

    product = Product(
        name=data["name"],
        description=data.get("description"),
        price=data["price"],
        stock=data.get("stock", 0),
        category_id=data.get("category_id"),
        review_ids=[]
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    logger.info(f"Producto {product.id} creado: {product.name}")
    return product


def update_product(db: Session, product_id: int, data: Dict[str, Any]) -> Product:
    """
    Actualizar un producto. Los campos de reseñas no se editan por aquí.
    """
    product = _require_product(db, product_id)

    if data.get("category_id") is not None:
        _require_category(db, data["category_id"])

    for field in ("name", "description", "price", "stock", "category_id"):
        if data.get(field) is not None:
            setattr(product, field, data[field])

    db.commit()
    db.refresh(product)
    return product


def delete_product(db: Session, product_id: int) -> Product:
    product = _require_product(db, product_id)
    product.is_deleted = True
    db.commit()
    db.refresh(product)
    logger.info(f"Producto {product_id} eliminado")
    return product


def set_stock(db: Session, product_id: int, stock: int) -> Product:
    if stock is None or stock < 0:
        raise ValidationError("El stock no puede ser negativo")
    product = _require_product(db, product_id)
    product.stock = stock
    db.commit()
    db.refresh(product)
    logger.info(f"Stock del producto {product_id} fijado en {stock}")
    return product
