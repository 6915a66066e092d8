from sqlalchemy import BigInteger, Column, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base, qualified, table_args
from app.models.users import User


class AuthNonce(Base):
    """Model for one-time login challenges
    Example:
    {
        "nonce": "9f2c...64 hex chars",
        "wallet_type": "evm",
        "address": "0x52908400098527886e0f7030069857d2e4169ee7",
        "created_at": 1763461800,
        "expires_at": 1763462400,
        "consumed_at": null
    }
    """

    __tablename__ = "auth_nonces"
    __table_args__ = table_args(Index("ix_auth_nonces_wallet", "wallet_type", "address"))

    nonce = Column(String(128), primary_key=True)
    wallet_type = Column(String(32), nullable=False)
    address = Column(String(255), nullable=False)
    created_at = Column(BigInteger, nullable=False)
    expires_at = Column(BigInteger, nullable=False)
    consumed_at = Column(BigInteger, nullable=True)


class WalletIdentity(Base):
    """Wallet owned by a user, unique per (wallet_type, address)
    Example:
    {
        "id": 1,
        "user_id": "550e8400-e29b-41d4-a716-446655440000",
        "wallet_type": "cardano",
        "address": "addr1qxy99g3k...useraddress",
        "public_key": "a1b2c3...",
        "created_at": 1763461800,
        "last_login_at": 1763461800
    }
    """

    __tablename__ = "wallet_identities"
    __table_args__ = table_args(
        UniqueConstraint("wallet_type", "address", name="uq_wallet_identities_wallet"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey(qualified("users.id")), nullable=False, index=True)
    wallet_type = Column(String(32), nullable=False)
    address = Column(String(255), nullable=False)
    public_key = Column(String(255), nullable=True)
    created_at = Column(BigInteger, nullable=False)
    last_login_at = Column(BigInteger, nullable=False)

    user = relationship(User, back_populates="wallets")
