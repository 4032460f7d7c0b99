from .auth import UserRegister, UserLogin
from .carts import CartItemCreate, CartItemUpdate
from .orders import OrderCreate, OrderUpdate, OrderStatusUpdate
from .products import ProductCreate, ProductUpdate, StockUpdate, CategoryCreate, CategoryUpdate
from .reviews import ReviewCreate, ReviewUpdate

__all__ = [
    "UserRegister",
    "UserLogin",
    "CartItemCreate",
    "CartItemUpdate",
    "OrderCreate",
    "OrderUpdate",
    "OrderStatusUpdate",
    "ProductCreate",
    "ProductUpdate",
    "StockUpdate",
    "CategoryCreate",
    "CategoryUpdate",
    "ReviewCreate",
    "ReviewUpdate",
]
