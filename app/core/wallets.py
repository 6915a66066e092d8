"""
Wallet Types, Address Normalization and Signature Verification

Each supported wallet type is a WalletScheme: it knows how to canonicalize an
address for its chain and how to check a signature over a login message.

Schemes:
- evm:     secp256k1 personal_sign (EIP-191). The signer address is recovered
           from the signature and compared with the normalized address.
- solana:  Ed25519. The address is the base58 public key itself.
- cardano: Ed25519 with an explicit public key whose hash must equal the
           payment part of the address (pycardano).

Usage:
    wallet_type = normalize_wallet_type("evm")
    address = normalize_address(wallet_type, "0xAbC...")
    verify_signature(wallet_type, address, message, signature, public_key)
"""

import base64
import binascii
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, Optional

import base58
from cryptography.exceptions import InvalidSignature as CryptoInvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import is_hex_address, remove_0x_prefix
from pycardano import Address
from pycardano.key import VerificationKey

from app.core.errors import InvalidAddress, InvalidSignature, InvalidWalletType

logger = logging.getLogger(__name__)

ED25519_KEY_BYTES = 32
ED25519_SIGNATURE_BYTES = 64


class WalletType(str, Enum):
    EVM = "evm"
    SOLANA = "solana"
    CARDANO = "cardano"


def _decode_hex(value: str) -> bytes:
    """Helper: Decode hex string (optional 0x prefix) to bytes."""
    if value[:2].lower() == "0x":
        value = value[2:]
    return binascii.unhexlify(value.encode())


def _decode_base64(value: str) -> bytes:
    """Helper: Decode base64 string to bytes."""
    return base64.b64decode(value, validate=True)


def _decode_hex_or_base64(value: str) -> bytes:
    """
    Helper: Decode hex or base64 string to bytes.

    Wallets may send signatures/keys in either format, so we support both.
    """
    value = value.strip()
    try:
        return _decode_hex(value)
    except (binascii.Error, ValueError):
        try:
            return _decode_base64(value)
        except (binascii.Error, ValueError):
            raise ValueError("Value must be hex or base64 encoded")


def _verify_ed25519(public_key: bytes, message: str, signature: bytes) -> bool:
    try:
        Ed25519PublicKey.from_public_bytes(public_key).verify(signature, message.encode())
    except (CryptoInvalidSignature, ValueError):
        return False
    return True


class WalletScheme(ABC):
    """Address rules and signature check for one wallet type."""

    wallet_type: WalletType
    requires_public_key = False

    @abstractmethod
    def normalize_address(self, raw_address: str) -> str:
        """Return the canonical address or raise ValueError."""

    @abstractmethod
    def verify(self, address: str, message: str, signature: str, public_key: Optional[str]) -> bool:
        """True when ``signature`` over ``message`` was made by ``address``."""


class EvmScheme(WalletScheme):
    wallet_type = WalletType.EVM

    def normalize_address(self, raw_address: str) -> str:
        # checksum casing is not enforced, lowercase is the canonical form
        if not is_hex_address(raw_address):
            raise ValueError("not a 20-byte hex address")
        return "0x" + remove_0x_prefix(raw_address).lower()

    def verify(self, address: str, message: str, signature: str, public_key: Optional[str]) -> bool:
        recovered = Account.recover_message(encode_defunct(text=message), signature=signature.strip())
        return recovered.lower() == address


class SolanaScheme(WalletScheme):
    wallet_type = WalletType.SOLANA

    def normalize_address(self, raw_address: str) -> str:
        key = base58.b58decode(raw_address)
        if len(key) != ED25519_KEY_BYTES:
            raise ValueError("solana address must decode to 32 bytes")
        return base58.b58encode(key).decode()

    def _decode_signature(self, signature: str) -> bytes:
        signature = signature.strip()
        try:
            decoded = base58.b58decode(signature)
            if len(decoded) == ED25519_SIGNATURE_BYTES:
                return decoded
        except ValueError:
            pass
        return _decode_hex_or_base64(signature)

    def verify(self, address: str, message: str, signature: str, public_key: Optional[str]) -> bool:
        key = base58.b58decode(address)
        if public_key and public_key.strip():
            if self.normalize_address(public_key) != address:
                return False
        return _verify_ed25519(key, message, self._decode_signature(signature))


class CardanoScheme(WalletScheme):
    wallet_type = WalletType.CARDANO
    requires_public_key = True

    def normalize_address(self, raw_address: str) -> str:
        return Address.decode(raw_address).encode()

    def _public_key_matches_address(self, address: str, public_key_bytes: bytes) -> bool:
        """
        Helper: Verify that the public key corresponds to the Cardano address.

        Uses pycardano to decode the address and compare payment part hash with key hash.
        """
        addr = Address.decode(address)
        v_key = VerificationKey.from_primitive(public_key_bytes)
        return addr.payment_part == v_key.hash()

    def _decode_public_key(self, public_key: str) -> bytes:
        key = _decode_hex_or_base64(public_key)
        # CIP-30 wallets hand out the key CBOR-wrapped as a 32-byte string (0x5820 prefix)
        if len(key) == ED25519_KEY_BYTES + 2 and key[:2] == b"\x58\x20":
            key = key[2:]
        return key

    def verify(self, address: str, message: str, signature: str, public_key: Optional[str]) -> bool:
        if not public_key or not public_key.strip():
            return False
        public_key_bytes = self._decode_public_key(public_key)
        if not _verify_ed25519(public_key_bytes, message, _decode_hex_or_base64(signature)):
            return False
        return self._public_key_matches_address(address, public_key_bytes)


SCHEMES: Dict[WalletType, WalletScheme] = {
    scheme.wallet_type: scheme for scheme in (EvmScheme(), SolanaScheme(), CardanoScheme())
}


def normalize_wallet_type(raw_wallet_type: str) -> WalletType:
    try:
        return WalletType((raw_wallet_type or "").strip().lower())
    except ValueError:
        raise InvalidWalletType(f"unsupported wallet type: {raw_wallet_type!r}")


def normalize_address(wallet_type: WalletType, raw_address: str) -> str:
    """
    Canonicalize an address for its wallet type.

    Deterministic and idempotent: normalizing a normalized address returns it unchanged.

    Raises:
        InvalidWalletType: unknown wallet type
        InvalidAddress: malformed address for the wallet type
    """
    if not isinstance(wallet_type, WalletType):
        wallet_type = normalize_wallet_type(wallet_type)
    raw_address = (raw_address or "").strip()
    if not raw_address:
        raise InvalidAddress("address is required")
    try:
        return SCHEMES[wallet_type].normalize_address(raw_address)
    except Exception as e:
        raise InvalidAddress(f"invalid {wallet_type.value} address: {e}")


def verify_signature(
    wallet_type: WalletType,
    address: str,
    message: str,
    signature: str,
    public_key: Optional[str] = None,
) -> None:
    """
    Check a signature made by ``address`` over ``message``.

    ``address`` must already be normalized. Undecodable signatures or keys are
    treated the same as a wrong signature.

    Raises:
        InvalidSignature: the signature does not prove ownership of the address
    """
    scheme = SCHEMES[wallet_type]
    try:
        ok = scheme.verify(address, message, signature, public_key)
    except Exception as e:
        logger.debug("%s signature rejected: %s", wallet_type.value, e)
        ok = False
    if not ok:
        raise InvalidSignature()
