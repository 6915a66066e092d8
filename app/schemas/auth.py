from typing import List, Optional

from pydantic import BaseModel, Field

from app.schemas.my_base_model import CustomBaseModel


class NonceRequest(BaseModel):
    """Request model for nonce generation - input validation"""

    wallet_type: str = Field("", description="Wallet type: evm, solana, cardano")
    address: str = Field("", description="Wallet address")


class NonceResponse(CustomBaseModel):
    """Response model for nonce generation - output"""

    nonce: str = ""
    message: str = ""
    expires_at: int = 0


class VerifyRequest(BaseModel):
    """Request model for wallet verification - input validation"""

    wallet_type: str = Field("", description="Wallet type: evm, solana, cardano")
    address: str = Field("", description="Wallet address")
    nonce: str = Field("", description="Nonce returned by /auth/nonce")
    signature: str = Field("", description="Signature of the login message")
    public_key: Optional[str] = Field(None, description="Public key, required for cardano")


class UserResponse(CustomBaseModel):
    id: str = ""
    role: str = ""


class WalletResponse(CustomBaseModel):
    wallet_type: str = ""
    address: str = ""


class AuthResponse(CustomBaseModel):
    """Response model for authentication - output"""

    token: str
    token_type: str = "bearer"
    user: UserResponse
    wallet: WalletResponse


class MeResponse(CustomBaseModel):
    """Response model for the authenticated user"""

    id: str = ""
    role: str = ""
    wallets: List[WalletResponse] = []
