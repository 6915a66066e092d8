"""
JWT Token Utilities

This module mints and checks the bearer credential handed out after a wallet
proves ownership of its address.

Flow:
1. /auth/verify succeeds -> create_access_token() signs the identity claims
2. Client sends Authorization: Bearer <token> -> verify_token() validates it
3. Protected endpoints use get_current_claims() from dependencies.py

The JWT contains:
- sub: user id
- role: user role
- wallet_type / address: the wallet that logged in
- iat / exp: issued at and expiration timestamps
"""

import time
from typing import Any, Dict, Optional

import jwt
from fastapi import HTTPException, status

from app.core.errors import SigningError

REQUIRED_CLAIMS = ("sub", "role", "wallet_type", "address")


def create_access_token(
    secret: str,
    user_id: str,
    role: str,
    wallet_type: str,
    address: str,
    ttl_seconds: int,
    algorithm: str = "HS256",
    now: Optional[int] = None,
) -> str:
    """
    Create a signed JWT access token for an authenticated wallet.

    Args:
        secret: Server-held signing secret
        user_id: Resolved user id (``sub`` claim)
        role: User role
        wallet_type: Wallet type that logged in
        address: Normalized wallet address
        ttl_seconds: Token lifetime
        algorithm: JWT signing algorithm
        now: Issue time as epoch seconds (defaults to the current time)

    Returns:
        A JWT token string for the Authorization: Bearer <token> header

    Raises:
        SigningError: If the secret is empty or encoding fails
    """
    if not secret:
        raise SigningError("signing secret is not configured")

    issued_at = int(time.time()) if now is None else int(now)
    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "role": role,
        "wallet_type": wallet_type,
        "address": address,
        "iat": issued_at,
        "exp": issued_at + int(ttl_seconds),
    }
    try:
        return jwt.encode(payload, secret, algorithm=algorithm)
    except (jwt.PyJWTError, NotImplementedError, TypeError, ValueError) as e:
        raise SigningError(f"failed to sign token: {e}")


def verify_token(token: str, secret: str, algorithm: str = "HS256") -> Dict[str, Any]:
    """
    Verify and decode a JWT token.

    Checks token signature, expiration, and required payload fields.

    Raises:
        HTTPException 401: If token is missing, expired, invalid, or missing claims
    """
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")

    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    if any(claim not in payload for claim in REQUIRED_CLAIMS):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")

    return payload
