from pydantic import Field
from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    # App Info
    app_name: str = "Dragon Auto Shop Billing API"
    version: str = "1.0.0"
    debug: bool = False

    # Database
    database_url: str

    # Security
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 10080  # 1 week
    remember_me_days: int = 7

    # Shared key handed out by the owners to new employees
    verification_key: Optional[str] = Field(
        default=None,
        description="Verification key required to register as an employee"
    )

    # Discord webhook
    discord_webhook_url: Optional[str] = Field(
        default=None,
        description="Webhook used to post one bill message per sale"
    )
    discord_timeout_seconds: float = 10.0
    shop_name: str = "Dragon Auto Shop"

    # CORS
    allowed_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    class Config:
        env_file = ".env"
        case_sensitive = False

settings = Settings()
