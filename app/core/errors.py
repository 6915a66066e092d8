"""
Wallet authentication errors.

Every failure of the challenge/verify flow is an AuthError carrying a stable
``code`` (the label returned to clients) and the HTTP status it maps to.

- validation errors: rejected before storage is touched
- authentication errors: bad signature, unknown/expired/consumed nonce
- infrastructure errors: storage, signing secret, deadline
"""

from fastapi import status


class AuthError(Exception):
    code = "auth_failed"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)


# validation
class InvalidWalletType(AuthError):
    code = "invalid_wallet_type"


class InvalidAddress(AuthError):
    code = "invalid_address"


class MissingCredentials(AuthError):
    code = "missing_nonce_or_signature"


# authentication
class InvalidSignature(AuthError):
    code = "invalid_signature"
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidOrExpiredNonce(AuthError):
    code = "invalid_or_expired_nonce"
    status_code = status.HTTP_401_UNAUTHORIZED


# infrastructure
class InfrastructureError(AuthError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class StorageError(InfrastructureError):
    code = "storage_error"


class SigningError(InfrastructureError):
    code = "token_issue_failed"


class CredentialConfigError(InfrastructureError):
    code = "jwt_not_configured"


class DeadlineExceeded(InfrastructureError):
    code = "deadline_exceeded"
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
