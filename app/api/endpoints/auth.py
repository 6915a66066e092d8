from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status

import app.schemas.auth as schemas
from app.core.dependencies import get_auth_service, get_current_claims, request_deadline
from app.core.errors import AuthError
from app.services.auth_service import AuthService

router = APIRouter()
group_tags: List[str] = ["Auth"]


@router.post(
    "/nonce",
    tags=group_tags,
    response_model=schemas.NonceResponse,
    status_code=status.HTTP_200_OK,
)
def request_nonce(
    body: schemas.NonceRequest,
    service: AuthService = Depends(get_auth_service),
) -> schemas.NonceResponse:
    """Issue a one-time login challenge for a wallet address."""
    try:
        challenge = service.issue_challenge(body.wallet_type, body.address, deadline=request_deadline())
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=e.code)

    return schemas.NonceResponse(nonce=challenge.nonce, message=challenge.message, expires_at=challenge.expires_at)


@router.post(
    "/verify",
    tags=group_tags,
    response_model=schemas.AuthResponse,
)
def verify_wallet(
    body: schemas.VerifyRequest,
    service: AuthService = Depends(get_auth_service),
) -> schemas.AuthResponse:
    """
    Verify a signed login message and return an access token.

    The client signs the ``message`` returned by /auth/nonce. Cardano wallets must
    also send their ``public_key``.
    """
    try:
        result = service.verify_and_login(
            body.wallet_type,
            body.address,
            body.nonce,
            body.signature,
            public_key=body.public_key,
            deadline=request_deadline(),
        )
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=e.code)

    return schemas.AuthResponse(
        token=result.token,
        user=schemas.UserResponse.from_record(result.user),
        wallet=schemas.WalletResponse.from_record(result.wallet),
    )


@router.get(
    "/me",
    tags=group_tags,
    response_model=schemas.MeResponse,
)
def me(
    claims: Dict[str, Any] = Depends(get_current_claims),
    service: AuthService = Depends(get_auth_service),
) -> schemas.MeResponse:
    """Profile of the user identified by the bearer token."""
    try:
        user = service.get_user(claims["sub"])
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=e.code)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="user_not_found")

    return schemas.MeResponse.from_record(user)
