"""
Configuration management for Taskmaster
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Taskmaster"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite:///./taskmaster.db"

    # Security
    SECRET_KEY: str = "dev-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24 hours

    # Demo account seeded at startup (empty email disables)
    DEMO_USER_EMAIL: str = "demo@taskmaster.com"
    DEMO_USER_PASSWORD: str = "demo123456"

    # GraphQL
    GRAPHQL_PATH: str = "/graphql"

    # CORS (mobile dev servers)
    CORS_ORIGINS: list[str] = ["http://localhost:8081", "http://localhost:19006"]

    # Tasks & categories
    DEFAULT_CATEGORY_COLOR: str = "#3B82F6"
    TITLE_MAX_LENGTH: int = 100
    DESCRIPTION_MAX_LENGTH: int = 500
    CATEGORY_NAME_MAX_LENGTH: int = 50

    # Client
    API_URL: str = "http://localhost:8000/graphql"
    CLIENT_TIMEOUT_SECONDS: float = 30.0

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
