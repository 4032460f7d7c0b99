from sqlalchemy import Column, Integer, Boolean, DateTime, ForeignKey, Uuid, Index, UniqueConstraint, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from core.database import Base

class Cart(Base):
    __tablename__ = "carts"
    __table_args__ = (
        # Un solo carrito vivo por usuario
        Index(
            "uq_carts_user_live",
            "user_id",
            unique=True,
            postgresql_where=text("is_deleted = false"),
            sqlite_where=text("is_deleted = 0"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    is_deleted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    
    # Relaciones
    user = relationship("User", back_populates="carts")
    cart_items = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItem.id"
    )

    @property
    def live_items(self):
        """Líneas cuyo producto no está eliminado"""
        return [item for item in self.cart_items if item.product is not None and not item.product.is_deleted]

    def __repr__(self):
        return f"<Cart(id={self.id}, user_id={self.user_id}, is_deleted={self.is_deleted})>"


class CartItem(Base):
    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", name="uq_cart_items_cart_product"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    cart_id = Column(Integer, ForeignKey("carts.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    cart = relationship("Cart", back_populates="cart_items")
    product = relationship("Product", back_populates="cart_items")
