from pydantic_settings import BaseSettings
import secrets


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Subnetly"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    SECRET_KEY: str = secrets.token_urlsafe(64)
    ALLOWED_ORIGINS: str = "*"

    # Database
    DATABASE_URL: str = "postgresql+asyncpg://subnetly:subnetly@db:5432/subnetly"
    DB_STATEMENT_TIMEOUT_MS: int = 30000   # applied per connection on PostgreSQL
    DB_POOL_TIMEOUT_SECONDS: int = 30

    # Redis (empty = in-process import lock only)
    REDIS_URL: str = ""
    IMPORT_LOCK_TTL_SECONDS: int = 600

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_BACKUP_IMPORT: str = "10/minute"

    # Backups
    BACKUP_FORMAT_VERSION: str = "1.0"
    BACKUP_FILENAME_PREFIX: str = "subnetly-backup"

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
