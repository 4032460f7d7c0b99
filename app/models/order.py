from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, ForeignKey, Text, Uuid, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from core.database import Base
import enum

# Estados de la orden. No hay grafo de transiciones: el admin puede fijar cualquiera.
class OrderStatus(str, enum.Enum):
    PENDING = "pending"              # Estado inicial al crear la orden
    PAID = "paid"
    PROCESSING = "processing"        # En preparación
    SHIPPED = "shipped"              # Enviada
    DELIVERED = "delivered"          # Entregada
    CANCELLED = "cancelled"          # Cancelada (no devuelve stock)

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    
    payment_method = Column(String(50), nullable=True)  # Opaco para el sistema
    status = Column(SQLEnum(OrderStatus), nullable=False, default=OrderStatus.PENDING, index=True)
    total = Column(Numeric(10, 2), nullable=False)  # Se fija al crear, no se recalcula
    
    notes = Column(Text, nullable=True)
    tracking_number = Column(String(255), nullable=True)
    is_deleted = Column(Boolean, default=False, nullable=False, index=True)
    
    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="orders")
    order_items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id"
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    
    # Snapshot del producto al momento de la compra
    product_name = Column(String(255), nullable=False)
    
    # Cantidades y precios
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)  # Precio unitario al momento de la compra
    subtotal = Column(Numeric(10, 2), nullable=False)    # quantity * unit_price
    
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    order = relationship("Order", back_populates="order_items")
    product = relationship("Product", back_populates="order_items")
