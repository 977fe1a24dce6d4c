"""
Application configuration
"""

from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings"""

    # Basics
    APP_NAME: str = "Civic Convention"
    VERSION: str = "1.0.0"
    DEBUG: bool = True

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8001
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Database
    DATABASE_URL: str = "sqlite:///./civicvote.db"
    SQL_ECHO: bool = False

    # Auth collaborator (tokens are issued elsewhere, only verified here)
    JWT_SECRET: str = "dev_jwt_secret_change_me"
    JWT_ALGORITHM: str = "HS256"

    # Logging
    LOG_LEVEL: str = "INFO"

    # Voting rules
    MAJORITY_THRESHOLD: float = 0.5    # a share strictly above this wins outright
    FINAL_ROUND_CANDIDATES: int = 2    # at or below this many active candidates the leader wins

    class Config:
        env_file = ".env"
        case_sensitive = True

# Global settings instance
settings = Settings()
