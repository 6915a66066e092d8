import threading
from unittest.mock import Mock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from app.core.errors import InvalidOrExpiredNonce, StorageError
from app.db.base import Base
from app.models.auth import AuthNonce
from app.services.nonce_store import NonceStore, generate_nonce

WALLET_TYPE = "evm"
ADDRESS = "0x52908400098527886e0f7030069857d2e4169ee7"


class TestGenerateNonce:
    def test_length_and_uniqueness(self):
        nonces = {generate_nonce() for _ in range(50)}
        assert len(nonces) == 50
        assert all(len(n) == 64 for n in nonces)

    def test_non_positive_size_uses_default(self):
        assert len(generate_nonce(0)) == 64


class TestNonceStore:
    """Test cases for nonce creation and atomic consumption"""

    def test_create_persists_row(self, db_session, clock):
        record = NonceStore(db_session, clock).create(WALLET_TYPE, ADDRESS, 600)

        stored = db_session.get(AuthNonce, record.nonce)
        assert stored.wallet_type == WALLET_TYPE
        assert stored.address == ADDRESS
        assert stored.created_at == clock.now
        assert stored.expires_at == clock.now + 600
        assert stored.consumed_at is None

    def test_consume_once(self, db_session, clock):
        store = NonceStore(db_session, clock)
        record = store.create(WALLET_TYPE, ADDRESS, 600)

        store.consume(WALLET_TYPE, ADDRESS, record.nonce)
        with pytest.raises(InvalidOrExpiredNonce):
            store.consume(WALLET_TYPE, ADDRESS, record.nonce)

        db_session.expire_all()
        assert db_session.get(AuthNonce, record.nonce).consumed_at == clock.now

    def test_accepted_just_before_expiry(self, db_session, clock):
        store = NonceStore(db_session, clock)
        record = store.create(WALLET_TYPE, ADDRESS, 300)
        clock.advance(299)
        store.consume(WALLET_TYPE, ADDRESS, record.nonce)

    def test_rejected_at_and_after_expiry(self, db_session, clock):
        store = NonceStore(db_session, clock)
        at_expiry = store.create(WALLET_TYPE, ADDRESS, 300)
        after_expiry = store.create(WALLET_TYPE, ADDRESS, 300)
        clock.advance(300)
        with pytest.raises(InvalidOrExpiredNonce):
            store.consume(WALLET_TYPE, ADDRESS, at_expiry.nonce)
        clock.advance(1)
        with pytest.raises(InvalidOrExpiredNonce):
            store.consume(WALLET_TYPE, ADDRESS, after_expiry.nonce)

    def test_unknown_token(self, db_session, clock):
        with pytest.raises(InvalidOrExpiredNonce):
            NonceStore(db_session, clock).consume(WALLET_TYPE, ADDRESS, "deadbeef")

    def test_token_bound_to_wallet(self, db_session, clock):
        store = NonceStore(db_session, clock)
        record = store.create(WALLET_TYPE, ADDRESS, 600)
        with pytest.raises(InvalidOrExpiredNonce):
            store.consume(WALLET_TYPE, "0x0000000000000000000000000000000000000001", record.nonce)
        with pytest.raises(InvalidOrExpiredNonce):
            store.consume("solana", ADDRESS, record.nonce)
        # still usable by its owner
        store.consume(WALLET_TYPE, ADDRESS, record.nonce)

    def test_newer_nonce_does_not_invalidate_older(self, db_session, clock):
        store = NonceStore(db_session, clock)
        first = store.create(WALLET_TYPE, ADDRESS, 600)
        second = store.create(WALLET_TYPE, ADDRESS, 600)
        store.consume(WALLET_TYPE, ADDRESS, second.nonce)
        store.consume(WALLET_TYPE, ADDRESS, first.nonce)

    def test_create_storage_failure(self, clock):
        db = Mock(spec=Session)
        db.commit.side_effect = OperationalError("INSERT", {}, Exception("db down"))
        with pytest.raises(StorageError):
            NonceStore(db, clock).create(WALLET_TYPE, ADDRESS, 600)
        db.rollback.assert_called_once()

    def test_consume_storage_failure(self, clock):
        db = Mock(spec=Session)
        db.execute.side_effect = OperationalError("UPDATE", {}, Exception("db down"))
        with pytest.raises(StorageError):
            NonceStore(db, clock).consume(WALLET_TYPE, ADDRESS, "deadbeef")
        db.rollback.assert_called_once()


class TestConcurrentConsume:
    """Racing consumers of one nonce, each on its own connection"""

    WORKERS = 8

    @pytest.fixture
    def file_session_factory(self, tmp_path):
        engine = create_engine(
            f"sqlite:///{tmp_path / 'nonces.db'}",
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        Base.metadata.create_all(bind=engine)
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
        engine.dispose()

    def test_exactly_one_winner(self, file_session_factory, clock):
        setup = file_session_factory()
        token = NonceStore(setup, clock).create(WALLET_TYPE, ADDRESS, 600).nonce
        setup.close()

        barrier = threading.Barrier(self.WORKERS)
        outcomes = []
        lock = threading.Lock()

        def worker():
            db = file_session_factory()
            try:
                barrier.wait()
                NonceStore(db, clock).consume(WALLET_TYPE, ADDRESS, token)
                outcome = "ok"
            except InvalidOrExpiredNonce:
                outcome = "rejected"
            except StorageError as e:
                outcome = f"storage: {e}"
            finally:
                db.close()
            with lock:
                outcomes.append(outcome)

        threads = [threading.Thread(target=worker) for _ in range(self.WORKERS)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count("ok") == 1
        assert outcomes.count("rejected") == self.WORKERS - 1
