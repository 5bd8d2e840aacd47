import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel


DEFAULT_CORS_ORIGINS = (
    "http://localhost:3000",
    "https://localhost:3000",
    "http://127.0.0.1:3000",
    "https://127.0.0.1:3000",
)


class Settings(BaseModel):
    database_url: str = "sqlite:///./loyaltytree.db"

    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"

    points_per_tree: int = 100
    auto_approve_trees: bool = True
    redemption_validity_days: int = 30

    upload_dir: str = "./uploads"
    max_upload_bytes: int = 5 * 1024 * 1024

    cors_origins: list[str] = list(DEFAULT_CORS_ORIGINS)
    log_level: str = "INFO"

    model_config = {"frozen": True}


def _split_csv(value: str | None) -> list[str] | None:
    if not value:
        return None
    return [v.strip() for v in value.split(",") if v.strip()]


def load_settings() -> Settings:
    """
    Build the settings from the process environment (and .env, if present).
    Unset variables fall back to the model defaults.
    """
    load_dotenv(encoding="utf-8")

    env = {
        "database_url": os.getenv("DATABASE_URL"),
        "jwt_secret": os.getenv("JWT_SECRET"),
        "points_per_tree": os.getenv("POINTS_PER_TREE"),
        "auto_approve_trees": os.getenv("AUTO_APPROVE_TREES"),
        "redemption_validity_days": os.getenv("REDEMPTION_VALIDITY_DAYS"),
        "upload_dir": os.getenv("UPLOAD_DIR"),
        "max_upload_bytes": os.getenv("MAX_UPLOAD_BYTES"),
        "cors_origins": _split_csv(os.getenv("CORS_ORIGINS")),
        "log_level": os.getenv("LOG_LEVEL"),
    }
    return Settings(**{k: v for k, v in env.items() if v is not None})


@lru_cache
def get_settings() -> Settings:
    return load_settings()
