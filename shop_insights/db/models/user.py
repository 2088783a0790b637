from sqlalchemy import Column, String, Text, DateTime, func
from sqlalchemy.orm import relationship

from shop_insights.db.base import Base


class User(Base):
    """An operator; ``id`` is the identity provider's subject."""

    __tablename__ = "users"

    id = Column(String(255), primary_key=True)
    email = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=True)
    image = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    stores = relationship("Store", back_populates="user")
