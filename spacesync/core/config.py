from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # JWT verification (tokens are issued by the auth service)
    SECRET_KEY: str = "spacesync-dev-secret-change-me"  # Must match the auth service in production
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Database
    DATABASE_URL: Optional[str] = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "spacesync"
    DB_PASSWORD: str = "spacesync_password"
    DB_NAME: Optional[str] = None  # None -> local SQLite file
    AUTO_CREATE_TABLES: bool = True  # Use `alembic upgrade head` in production

    # Redis (optional - for production)
    REDIS_URL: Optional[str] = None  # e.g., "redis://localhost:6379/0"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if self.DB_NAME:
            return f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        return "sqlite:///./spacesync.db"

    # API
    API_PREFIX: str = "/api/v1"
    CORS_ORIGINS: list[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    # Rate limiting (per authenticated user)
    RATE_LIMIT_MAX_REQUESTS: int = 100
    RATE_LIMIT_WINDOW_SECONDS: int = 60
    DISABLE_RATE_LIMITING: bool = False  # Load tests and local tooling

    # Sync
    BACKUP_FORMAT_VERSION: str = "1.0"
    DEPRECATION_SUNSET_DATE: str = "2026-03-01"

    class Config:
        env_file = ".env"
        extra = "ignore"  # Allow extra fields in .env file

settings = Settings()
