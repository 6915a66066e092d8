import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["ENCODE_KEY"] = "test-encode-key"
os.environ["DB_AUTO_CREATE"] = "false"

from typing import Generator

import base58
import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from eth_account import Account
from eth_account.messages import encode_defunct
from fastapi.testclient import TestClient
from pycardano import Address, Network, PaymentSigningKey, PaymentVerificationKey
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from app.db.base import Base
from app.db.session import get_db
from app.models.auth import AuthNonce, WalletIdentity  # noqa: F401
from app.models.users import User  # noqa: F401

TEST_ENCODE_KEY = "test-encode-key"


class FakeClock:
    """Epoch-seconds clock that tests move by hand"""

    def __init__(self, now: int = 1_763_461_800) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


class EvmWallet:
    wallet_type = "evm"
    public_key = None

    def __init__(self) -> None:
        self.account = Account.create()
        self.address = self.account.address  # EIP-55 checksum casing

    def sign(self, message: str) -> str:
        signed = Account.sign_message(encode_defunct(text=message), self.account.key)
        return "0x" + bytes(signed.signature).hex()


class SolanaWallet:
    wallet_type = "solana"
    public_key = None

    def __init__(self) -> None:
        self.key = Ed25519PrivateKey.generate()
        raw = self.key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
        self.address = base58.b58encode(raw).decode()

    def sign(self, message: str) -> str:
        return base58.b58encode(self.key.sign(message.encode())).decode()


class CardanoWallet:
    wallet_type = "cardano"

    def __init__(self) -> None:
        self.signing_key = PaymentSigningKey.generate()
        verification_key = PaymentVerificationKey.from_signing_key(self.signing_key)
        self.address = Address(payment_part=verification_key.hash(), network=Network.TESTNET).encode()
        self.public_key = verification_key.payload.hex()

    def sign(self, message: str) -> str:
        return self.signing_key.sign(message.encode()).hex()


@pytest.fixture
def engine():
    """In-memory SQLite database shared by every session of one test"""
    test_engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(session_factory) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application"""

    def override_get_db() -> Generator[Session, None, None]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def evm_wallet() -> EvmWallet:
    return EvmWallet()


@pytest.fixture
def solana_wallet() -> SolanaWallet:
    return SolanaWallet()


@pytest.fixture
def cardano_wallet() -> CardanoWallet:
    return CardanoWallet()


@pytest.fixture(params=["evm", "solana", "cardano"])
def any_wallet(request):
    """One wallet of each supported type"""
    return {"evm": EvmWallet, "solana": SolanaWallet, "cardano": CardanoWallet}[request.param]()
