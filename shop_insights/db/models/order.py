import uuid
from sqlalchemy import (Column, DateTime, ForeignKey, Numeric, String, UniqueConstraint, Uuid, func)
from sqlalchemy.orm import relationship

from shop_insights.db.base import Base


class Order(Base):
    __tablename__ = 'orders'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    store_id = Column(Uuid, ForeignKey('stores.id'), nullable=False, index=True)
    customer_id = Column(Uuid, ForeignKey('customers.id'), nullable=True, index=True)
    platform_order_id = Column(String(100), nullable=False)
    order_number = Column(String(100), nullable=True)
    total_price = Column(Numeric(12, 2), nullable=False, default=0)
    currency = Column(String(10), nullable=False, default='USD')
    financial_status = Column(String(50), nullable=True)
    fulfillment_status = Column(String(50), nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    store = relationship("Store", back_populates="orders")
    customer = relationship("Customer", back_populates="orders")

    __table_args__ = (UniqueConstraint('store_id', 'platform_order_id', name='uq_store_platform_order'),)
