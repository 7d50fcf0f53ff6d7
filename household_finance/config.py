from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel
import os

# Load .env automatically
load_dotenv()


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "development")
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./household_finance.db")
    sql_echo: bool = os.getenv("SQL_ECHO", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret-change-me")
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

    cors_origins: List[str] = _split_csv(
        os.getenv(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000",
        )
    )
    uploads_dir: str = os.getenv("UPLOADS_DIR", "uploads")

    # Fallback preferences for users without a stored profile
    default_currency: str = os.getenv("DEFAULT_CURRENCY", "BRL")
    default_language: str = os.getenv("DEFAULT_LANGUAGE", "pt-BR")
    default_timezone: str = os.getenv("DEFAULT_TIMEZONE", "America/Sao_Paulo")


# Global settings instance
settings = Settings()
