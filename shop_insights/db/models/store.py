import uuid
from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Uuid, func
from sqlalchemy.orm import relationship
from sqlalchemy.ext.hybrid import hybrid_property
from shop_insights.db.base import Base
from shop_insights.core.security import encrypt_token, decrypt_token

class Store(Base):
    __tablename__ = "stores"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=True, index=True)
    shop_domain = Column(String(255), nullable=False, unique=True)
    _access_token = Column('access_token', Text, nullable=False)
    scope = Column(Text, nullable=True)
    last_sync_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="stores")
    customers = relationship("Customer", back_populates="store", cascade="all, delete-orphan")
    orders = relationship("Order", back_populates="store", cascade="all, delete-orphan")

    @hybrid_property
    def access_token(self) -> str:
        """
        Decrypt and return the access token.
        Returns empty string if decryption fails.
        """
        decrypted = decrypt_token(self._access_token)
        return decrypted if decrypted is not None else ""

    @access_token.setter
    def access_token(self, token: str) -> None:
        """
        Encrypt and store the access token.
        """
        if token is None:
            self._access_token = ""
        else:
            self._access_token = encrypt_token(token)
