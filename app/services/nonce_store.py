"""
Nonce store

Issues one-time login challenges and consumes them exactly once.

Consumption is a single conditional UPDATE guarded on the row still being
unconsumed and unexpired, so under concurrent verify calls for the same token
(across threads or server instances) exactly one caller wins.
"""

import logging
import secrets
import time
from typing import Callable

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import InvalidOrExpiredNonce, StorageError
from app.models.auth import AuthNonce

logger = logging.getLogger(__name__)

NONCE_NUM_BYTES = 32  # 32 bytes = 64 hex characters

Clock = Callable[[], int]


def epoch_seconds() -> int:
    return int(time.time())


def generate_nonce(num_bytes: int = NONCE_NUM_BYTES) -> str:
    """
    Generate a cryptographically secure random nonce for wallet authentication.

    Returns:
        Hex-encoded random string (e.g., "a1b2c3d4...")
    """
    if num_bytes <= 0:
        num_bytes = NONCE_NUM_BYTES
    return secrets.token_hex(num_bytes)


class NonceStore:
    def __init__(self, db: Session, clock: Clock = epoch_seconds) -> None:
        self.db = db
        self.clock = clock

    def create(self, wallet_type: str, address: str, ttl_seconds: int) -> AuthNonce:
        """Persist a fresh nonce for a normalized wallet identity."""
        now = self.clock()
        record = AuthNonce(
            nonce=generate_nonce(),
            wallet_type=wallet_type,
            address=address,
            created_at=now,
            expires_at=now + int(ttl_seconds),
        )
        try:
            self.db.add(record)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("failed to store nonce for %s:%s", wallet_type, address)
            raise StorageError(str(e))
        return record

    def consume(self, wallet_type: str, address: str, token: str) -> None:
        """
        Atomically mark a nonce consumed.

        Succeeds only if a row for (wallet_type, address, token) exists, is not
        yet consumed and ``now < expires_at``.

        Raises:
            InvalidOrExpiredNonce: unknown, expired, already consumed or owned by another wallet
            StorageError: the update could not be executed
        """
        now = self.clock()
        stmt = (
            update(AuthNonce)
            .where(
                AuthNonce.nonce == token,
                AuthNonce.wallet_type == wallet_type,
                AuthNonce.address == address,
                AuthNonce.consumed_at.is_(None),
                AuthNonce.expires_at > now,
            )
            .values(consumed_at=now)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("failed to consume nonce for %s:%s", wallet_type, address)
            raise StorageError(str(e))

        if result.rowcount != 1:
            raise InvalidOrExpiredNonce()
