from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv(override=False)

class Settings(BaseSettings):
    PROJECT_NAME: str = "Grainlify Auth"
    # Application settings
    PORT: int = 8000
    HOST: str = "127.0.0.1"
    VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    # SQLAlchemy database URL
    DATABASE_URL: str = "sqlite:///./grainlify_auth.db"
    DB_SCHEMA: str | None = None
    DB_AUTO_CREATE: bool = False

    # Login configuration
    ENCODE_KEY: str = ""
    ENCODE_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_SECONDS: int = 900 # 15 minutes
    NONCE_EXPIRY_SECONDS: int = 600 # 10 minutes
    DEFAULT_USER_ROLE: str = "contributor"
    AUTH_REQUEST_TIMEOUT_SECONDS: float = 10.0

    class Config:
        env_file = ".env"

# Instantiate the settings
settings = Settings()
