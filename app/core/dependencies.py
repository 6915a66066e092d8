"""
FastAPI Authentication Dependencies

Usage in endpoints:
    @router.get("/protected")
    def protected_route(claims: dict = Depends(get_current_claims)):
        return {"user": claims["sub"]}

Flow:
1. Client sends request with Authorization: Bearer <token> header
2. FastAPI calls get_current_claims() dependency
3. _extract_token() extracts token from header
4. verify_token() validates the JWT (from jwt_utils.py)
"""

import time
from typing import Any, Dict, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.jwt_utils import verify_token
from app.db.session import get_db
from app.services.auth_service import AuthService


def _extract_token(authorization: Optional[str]) -> str:
    """
    Extract JWT token from Authorization header.
    Supports both "Bearer <token>" and plain token formats.
    Raises:
        HTTPException 401: If Authorization header is missing or invalid
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header missing",
        )

    authorization = authorization.strip()
    if authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    else:
        token = authorization
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header",
        )
    return token


def get_current_claims(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> Dict[str, Any]:
    """Validated JWT claims of the caller."""
    if not settings.ENCODE_KEY:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="jwt_not_configured")
    token = _extract_token(authorization)
    return verify_token(token, settings.ENCODE_KEY, settings.ENCODE_ALGORITHM)


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(
        db,
        jwt_secret=settings.ENCODE_KEY,
        jwt_algorithm=settings.ENCODE_ALGORITHM,
        nonce_ttl_seconds=settings.NONCE_EXPIRY_SECONDS,
        token_ttl_seconds=settings.ACCESS_TOKEN_EXPIRE_SECONDS,
        default_role=settings.DEFAULT_USER_ROLE,
    )


def request_deadline() -> float:
    """Monotonic deadline for the auth storage work of one request."""
    return time.monotonic() + settings.AUTH_REQUEST_TIMEOUT_SECONDS
