"""
Process-wide configuration for the Idea Analyzer API.
Loaded once at startup from backend/.env and the environment, never mutated afterwards.
"""

import os
import logging
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

ROOT_DIR = Path(__file__).parent

DEV_JWT_SECRET = "idea-analyzer-dev-secret-change-me"

logger = logging.getLogger(__name__)


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    mongo_url: str = "mongodb://localhost:27017"
    db_name: str = "idea_analyzer_db"

    jwt_secret: str = DEV_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expiration_days: int = Field(default=7, ge=1)

    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"
    model_timeout_seconds: float = Field(default=60.0, gt=0)

    max_idea_length: int = Field(default=1000, ge=1)
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    environment: str = "development"
    log_level: str = "INFO"


def _parse_origins(raw: str) -> List[str]:
    if raw.strip() == "*":
        return ["*"]
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def load_settings() -> Settings:
    """Read settings from backend/.env and the process environment."""
    load_dotenv(ROOT_DIR / ".env")
    env = os.environ

    jwt_secret = env.get("JWT_SECRET")
    if not jwt_secret:
        logger.warning("JWT_SECRET not set, using the development secret")
        jwt_secret = DEV_JWT_SECRET

    gemini_key = env.get("GEMINI_API_KEY")
    if not gemini_key:
        logger.warning("GEMINI_API_KEY not found in .env, analysis requests will fail")

    return Settings(
        mongo_url=env.get("MONGO_URL", "mongodb://localhost:27017"),
        db_name=env.get("DB_NAME", "idea_analyzer_db"),
        jwt_secret=jwt_secret,
        jwt_algorithm=env.get("JWT_ALGORITHM", "HS256"),
        jwt_expiration_days=int(env.get("JWT_EXPIRATION_DAYS", "7")),
        gemini_api_key=gemini_key or None,
        gemini_model=env.get("GEMINI_MODEL", "gemini-2.5-flash"),
        model_timeout_seconds=float(env.get("MODEL_TIMEOUT_SECONDS", "60")),
        max_idea_length=int(env.get("MAX_IDEA_LENGTH", "1000")),
        bcrypt_rounds=int(env.get("BCRYPT_ROUNDS", "12")),
        cors_origins=_parse_origins(env.get("CORS_ORIGINS", "*")),
        environment=env.get("ENVIRONMENT", "development"),
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
    )
