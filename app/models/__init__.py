from .user import User
from .products import Product, Category
from .carts import Cart, CartItem
from .order import Order, OrderItem, OrderStatus
from .reviews import Review

__all__ = [
    "User",
    "Product",
    "Category",
    "Cart",
    "CartItem",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Review",
]
