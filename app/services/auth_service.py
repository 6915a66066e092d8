"""
Wallet login orchestration

Challenge path:  normalize address -> store nonce -> return nonce + message
Verify path:     normalize address -> require nonce/signature -> check signature
                 (current message, then legacy) -> consume nonce -> upsert user
                 -> issue JWT

The signature is checked before the nonce is consumed so a bad signature never
burns a nonce. If the user upsert fails after consumption the nonce is gone and
the client has to request a new challenge.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from app.core.errors import (
    AuthError,
    CredentialConfigError,
    DeadlineExceeded,
    InvalidSignature,
    MissingCredentials,
)
from app.core.jwt_utils import create_access_token
from app.core.messages import candidate_messages, login_message
from app.core.wallets import WalletType, normalize_address, normalize_wallet_type, verify_signature
from app.models.auth import WalletIdentity
from app.models.users import User, UserRole
from app.services.nonce_store import Clock, NonceStore, epoch_seconds
from app.services.user_store import UserStore

logger = logging.getLogger(__name__)


@dataclass
class Challenge:
    nonce: str
    message: str
    expires_at: int


@dataclass
class LoginResult:
    token: str
    user: User
    wallet: WalletIdentity


def _check_deadline(deadline: Optional[float]) -> None:
    if deadline is not None and time.monotonic() >= deadline:
        raise DeadlineExceeded()


class AuthService:
    def __init__(
        self,
        db: Session,
        jwt_secret: str,
        jwt_algorithm: str = "HS256",
        nonce_ttl_seconds: int = 600,
        token_ttl_seconds: int = 900,
        default_role: str = UserRole.CONTRIBUTOR.value,
        clock: Clock = epoch_seconds,
    ) -> None:
        self.jwt_secret = jwt_secret
        self.jwt_algorithm = jwt_algorithm
        self.nonce_ttl_seconds = nonce_ttl_seconds
        self.token_ttl_seconds = token_ttl_seconds
        self.default_role = default_role
        self.clock = clock
        self.nonces = NonceStore(db, clock)
        self.users = UserStore(db, clock)

    def _normalize(self, wallet_type: str, address: str) -> Tuple[WalletType, str]:
        w_type = normalize_wallet_type(wallet_type)
        return w_type, normalize_address(w_type, address)

    def issue_challenge(self, wallet_type: str, address: str, deadline: Optional[float] = None) -> Challenge:
        w_type, addr = self._normalize(wallet_type, address)
        _check_deadline(deadline)
        record = self.nonces.create(w_type.value, addr, self.nonce_ttl_seconds)
        logger.info("issued nonce for %s:%s, expires at %s", w_type.value, addr, record.expires_at)
        return Challenge(nonce=record.nonce, message=login_message(record.nonce), expires_at=record.expires_at)

    def verify_and_login(
        self,
        wallet_type: str,
        address: str,
        nonce: str,
        signature: str,
        public_key: Optional[str] = None,
        deadline: Optional[float] = None,
    ) -> LoginResult:
        """
        Verify a signed challenge and log the wallet in.

        Raises:
            AuthError subclasses, see app.core.errors; the ``code`` is the client-facing label.
        """
        if not self.jwt_secret:
            raise CredentialConfigError()

        w_type, addr = self._normalize(wallet_type, address)
        nonce = (nonce or "").strip()
        signature = (signature or "").strip()
        if not nonce or not signature:
            raise MissingCredentials()

        try:
            self._check_signature(w_type, addr, nonce, signature, public_key)

            _check_deadline(deadline)
            self.nonces.consume(w_type.value, addr, nonce)

            _check_deadline(deadline)
            user, wallet = self.users.upsert_wallet_user(w_type.value, addr, public_key, self.default_role)
        except AuthError as e:
            logger.warning("wallet login rejected for %s:%s: %s", w_type.value, addr, e.code)
            raise

        token = create_access_token(
            self.jwt_secret,
            user.id,
            user.role,
            wallet.wallet_type,
            wallet.address,
            self.token_ttl_seconds,
            algorithm=self.jwt_algorithm,
            now=self.clock(),
        )
        logger.info("wallet login succeeded: user=%s wallet=%s:%s", user.id, w_type.value, addr)
        return LoginResult(token=token, user=user, wallet=wallet)

    def _check_signature(
        self, wallet_type: WalletType, address: str, nonce: str, signature: str, public_key: Optional[str]
    ) -> None:
        for message in candidate_messages(nonce):
            try:
                verify_signature(wallet_type, address, message, signature, public_key)
                return
            except InvalidSignature:
                continue
        raise InvalidSignature()

    def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get_user(user_id)
