import uuid
from enum import Enum

from sqlalchemy import BigInteger, Column, String
from sqlalchemy.orm import relationship

from app.db.base import Base, table_args


class UserRole(str, Enum):
    CONTRIBUTOR = "contributor"
    MAINTAINER = "maintainer"
    ADMIN = "admin"


class User(Base):
    """Model for users table
    Example:
    {
        "id": "550e8400-e29b-41d4-a716-446655440000",
        "role": "contributor",
        "created_at": 1763461800,
        "last_login_at": 1763461800
    }
    """

    __tablename__ = "users"
    __table_args__ = table_args()

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    role = Column(String(32), nullable=False, default=UserRole.CONTRIBUTOR.value)
    created_at = Column(BigInteger, nullable=False)
    last_login_at = Column(BigInteger, nullable=False)

    wallets = relationship("WalletIdentity", back_populates="user", order_by="WalletIdentity.id")
