import uuid
from sqlalchemy import (Column, DateTime, ForeignKey, String, Text, UniqueConstraint, Uuid, func)
from sqlalchemy.orm import relationship

from shop_insights.db.base import Base


class Customer(Base):
    __tablename__ = 'customers'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    store_id = Column(Uuid, ForeignKey('stores.id'), nullable=False, index=True)
    platform_customer_id = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    first_name = Column(Text, nullable=True)
    last_name = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    store = relationship("Store", back_populates="customers")
    orders = relationship("Order", back_populates="customer")

    __table_args__ = (UniqueConstraint('store_id', 'platform_customer_id', name='uq_store_platform_customer'),)
