"""
SQLAlchemy models for the restaurant ordering bot.
Catalog tables are owned by the back-office; the bot reads them and owns
carts, dialogue state and the orders it creates.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


# =============================================================================
# CATALOG MODELS
# =============================================================================


class Category(Base):
    """Menu category (e.g., 'Milliy taomlar', 'Ichimliklar')."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    products: Mapped[list["Product"]] = relationship(back_populates="category")

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name='{self.name}')>"


class Product(Base):
    """Menu item."""

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), nullable=False)

    # Whole so'm amounts
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    discount_price: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    category: Mapped["Category"] = relationship(back_populates="products")

    __table_args__ = (
        Index("ix_products_name", "name"),
        Index("ix_products_category_active", "category_id", "is_active"),
    )

    @property
    def effective_price(self) -> int:
        """Discount price when set, else the regular price."""
        if self.discount_price is not None:
            return self.discount_price
        return self.price

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name}', price={self.price})>"


# =============================================================================
# CONVERSATION STATE
# =============================================================================


class CartItem(Base):
    """One product line in a conversation's cart."""

    __tablename__ = "cart_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    conversation_id: Mapped[str] = mapped_column(String(64), nullable=False)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    product: Mapped["Product"] = relationship()

    __table_args__ = (
        UniqueConstraint("conversation_id", "product_id", name="uq_cart_conversation_product"),
        Index("ix_cart_items_conversation", "conversation_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<CartItem(conversation={self.conversation_id}, "
            f"product={self.product_id}, qty={self.quantity})>"
        )


class DialogueStateRecord(Base):
    """Checkout progress of one conversation."""

    __tablename__ = "dialogue_states"

    conversation_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    step: Mapped[str] = mapped_column(String(32), nullable=False, default="browsing")

    # Collected checkout fields
    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    payment_method: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    # Free-text comment left on the confirmation screen
    notes: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Compare-and-set counter
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<DialogueStateRecord(conversation={self.conversation_id}, step='{self.step}')>"


# =============================================================================
# ORDERS
# =============================================================================


class Order(Base):
    """Order created from a bot checkout."""

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    conversation_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    customer_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False)

    total_price: Mapped[int] = mapped_column(Integer, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False, default="cash")
    notes: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    source: Mapped[str] = mapped_column(String(20), nullable=False, default="bot")
    # new, preparing, delivering, delivered, cancelled (owned by fulfillment)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="new")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order", order_by="OrderItem.id"
    )

    __table_args__ = (Index("ix_orders_status", "status"),)

    @property
    def order_number(self) -> str:
        """Human-readable order number."""
        return f"#{self.id:06d}"

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, total={self.total_price}, status='{self.status}')>"


class OrderItem(Base):
    """Order line with name and price frozen at commit time."""

    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"), nullable=False)
    product_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("products.id", ondelete="SET NULL"), nullable=True
    )

    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[int] = mapped_column(Integer, nullable=False)

    order: Mapped["Order"] = relationship(back_populates="items")

    __table_args__ = (Index("ix_order_items_order", "order_id"),)

    @property
    def line_total(self) -> int:
        return self.quantity * self.unit_price

    def __repr__(self) -> str:
        return f"<OrderItem(order={self.order_id}, product='{self.product_name}', qty={self.quantity})>"
