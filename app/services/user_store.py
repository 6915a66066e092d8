"""
User store

Resolve-or-create the user owning a wallet identity. Creation of the user and
its wallet row happens in one transaction, so a failure never leaves a user
without a wallet (or the reverse).
"""

import logging
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.core.errors import StorageError
from app.models.auth import WalletIdentity
from app.models.users import User, UserRole
from app.services.nonce_store import Clock, epoch_seconds

logger = logging.getLogger(__name__)


class UserStore:
    def __init__(self, db: Session, clock: Clock = epoch_seconds) -> None:
        self.db = db
        self.clock = clock

    def _find_wallet(self, wallet_type: str, address: str) -> Optional[WalletIdentity]:
        return (
            self.db.query(WalletIdentity)
            .filter(WalletIdentity.wallet_type == wallet_type, WalletIdentity.address == address)
            .first()
        )

    def _touch(self, wallet: WalletIdentity, public_key: Optional[str], now: int) -> Tuple[User, WalletIdentity]:
        wallet.last_login_at = now
        wallet.user.last_login_at = now
        if public_key:
            wallet.public_key = public_key
        self.db.commit()
        return wallet.user, wallet

    def upsert_wallet_user(
        self,
        wallet_type: str,
        address: str,
        public_key: Optional[str] = None,
        default_role: str = UserRole.CONTRIBUTOR.value,
    ) -> Tuple[User, WalletIdentity]:
        """
        Return the user owning (wallet_type, address), creating both rows on first login.

        Raises:
            StorageError: the rows could not be read or written
        """
        now = self.clock()
        public_key = public_key.strip() if public_key else None
        try:
            wallet = self._find_wallet(wallet_type, address)
            if wallet:
                return self._touch(wallet, public_key, now)

            user = User(role=default_role, created_at=now, last_login_at=now)
            self.db.add(user)
            self.db.flush()  # Flush to get the ID without committing
            wallet = WalletIdentity(
                user_id=user.id,
                wallet_type=wallet_type,
                address=address,
                public_key=public_key,
                created_at=now,
                last_login_at=now,
            )
            self.db.add(wallet)
            self.db.commit()
            self.db.refresh(wallet)
            logger.info("created user %s for %s:%s", user.id, wallet_type, address)
            return user, wallet
        except IntegrityError:
            # another login created the identity first, use theirs
            self.db.rollback()
            try:
                wallet = self._find_wallet(wallet_type, address)
                if wallet:
                    return self._touch(wallet, public_key, now)
            except SQLAlchemyError as e:
                self.db.rollback()
                raise StorageError(str(e))
            raise StorageError(f"wallet identity {wallet_type}:{address} could not be resolved")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("failed to upsert user for %s:%s", wallet_type, address)
            raise StorageError(str(e))

    def get_user(self, user_id: str) -> Optional[User]:
        try:
            return (
                self.db.query(User)
                .options(selectinload(User.wallets))
                .filter(User.id == user_id)
                .first()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(str(e))
