from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint

from shared.config.database import Base, utcnow


class CartItem(Base):
    __tablename__ = "cart_items"
    __table_args__ = (
        # One row per (customer, product); adding again bumps quantity
        UniqueConstraint("customer_address", "product_id", name="uq_cart_items_customer_product"),
        CheckConstraint("quantity >= 1", name="ck_cart_items_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    customer_address = Column(String(64), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), default=utcnow)
