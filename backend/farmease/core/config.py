from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # MongoDB Configuration (hosted backend data service)
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DB_NAME: str = "farmease_db"

    # JWT Configuration (tokens are issued by the hosted auth service)
    JWT_SECRET_KEY: str = "change-this-secret-key-in-production-farmease"
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str = "authenticated"

    # EmailJS (invoice dispatch)
    EMAILJS_SERVICE_ID: str = ""
    EMAILJS_TEMPLATE_ID: str = ""
    EMAILJS_PUBLIC_KEY: str = ""
    EMAILJS_PRIVATE_KEY: str = ""

    # Application Settings
    BACKEND_CORS_ORIGINS: List[str] = ["http://localhost:8080", "http://localhost:5173"]
    API_V1_PREFIX: str = "/api"
    PROJECT_NAME: str = "FarmEase"
    LOGIN_PATH: str = "/login"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
