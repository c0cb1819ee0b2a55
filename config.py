from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    """Application settings - All values are loaded from .env file automatically"""

    # API Settings
    APP_NAME: str = "ESAS Screening API"
    APP_VERSION: str = "1.0.0"
    API_V1_PREFIX: str = "/api/v1"

    # Database Settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./esas_screening.db"
    DB_OPERATION_TIMEOUT: float = 5.0  # Seconds before a storage call is reported as unavailable

    # Identity provider settings (tokens are issued externally, only verified here)
    AUTH_JWT_SECRET: str = "your-identity-provider-jwt-secret"
    AUTH_JWT_ALGORITHM: str = "HS256"
    AUTH_JWT_AUDIENCE: str = "authenticated"

    # CORS Settings
    BACKEND_CORS_ORIGINS: str = "http://localhost:3000"

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # Server Settings (optional)
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # ESAS recommendation table (defaults to the bundled app/data file)
    RECOMMENDATIONS_PATH: Optional[str] = None

    # Per-process request throttling
    RATE_LIMIT_REQUESTS: int = 100
    RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60

    # Guest screenings older than this are removed by the admin cleanup
    GUEST_RETENTION_DAYS: int = 30

    # Monitoring (optional)
    SENTRY_DSN: Optional[str] = None

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore"  # Ignore extra fields from .env
    }

settings = Settings()
