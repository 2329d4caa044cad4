from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

DEFAULT_JWT_SECRET = "your-secret-key-change-in-production"


class Settings(BaseSettings):
    DATABASE_URL: str = Field(..., description="Database connection URL")
    APP_NAME: str = "Blade API"
    APP_VERSION: str = "1.0.0"
    APP_ENV: str = Field(default="development", description="development | production")
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    LOG_LEVEL: str = Field(default="INFO", description="Root log level")
    JWT_SECRET_KEY: str = Field(default=DEFAULT_JWT_SECRET, description="Secret key for JWT tokens")
    JWT_ISSUER: str = Field(default="the-blade-api", description="Issuer claim for JWT tokens")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=60 * 24, description="Access token lifetime")
    REFRESH_TOKEN_EXPIRE_MINUTES: int = Field(
        default=60 * 24 * 7, description="Refresh token lifetime (default 7 days)"
    )
    COOKIE_SECURE: bool = Field(default=False, description="Send auth cookies only over HTTPS")
    CORS_ALLOWED_ORIGINS: str = Field(
        default="http://localhost:3000", description="Comma separated list of allowed origins"
    )
    USE_REDIS: bool = Field(default=False, description="Cache authenticated users in Redis")
    REDIS_HOST: str = Field(default="localhost", description="Redis host")
    REDIS_PORT: int = Field(default=6379, description="Redis port")
    REDIS_PASSWORD: str = Field(default="", description="Redis password (empty if no auth)")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_TTL: int = Field(default=3600, description="Redis TTL in seconds for the user cache (default 1 hour)")
    DB_STATEMENT_TIMEOUT_MS: int = Field(
        default=0, description="PostgreSQL statement_timeout in milliseconds, 0 disables it"
    )

    class Config:
        env_file = str(Path(__file__).parent.parent.parent / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ALLOWED_ORIGINS.split(",") if origin.strip()]

    def check_runtime(self) -> None:
        """Fails fast on settings that must never reach production."""
        if self.APP_ENV == "production" and self.JWT_SECRET_KEY == DEFAULT_JWT_SECRET:
            raise ValueError("JWT_SECRET_KEY is required in production")


settings = Settings()

# Database
_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None

Base = declarative_base()


def _connect_args() -> dict:
    if settings.DB_STATEMENT_TIMEOUT_MS > 0 and settings.DATABASE_URL.startswith("postgresql"):
        return {"options": f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}"}
    return {}


def get_engine() -> Engine:
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = create_engine(
            settings.DATABASE_URL,
            pool_pre_ping=True,
            echo=settings.DEBUG,
            connect_args=_connect_args(),
        )
    return _engine


def get_session() -> Session:
    global _SessionFactory  # noqa: PLW0603
    if _SessionFactory is None:
        _SessionFactory = sessionmaker(bind=get_engine(), expire_on_commit=False)
    return _SessionFactory()


def get_db():
    db = get_session()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
