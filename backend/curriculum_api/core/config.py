import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List

from dotenv import load_dotenv

# Load .env from the backend directory
load_dotenv(os.path.join(os.path.dirname(__file__), "..", "..", ".env"))

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
BACKEND_DIR = os.path.abspath(os.path.join(BASE_DIR, "..", ".."))


def _csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


@dataclass(frozen=True)
class Settings:
    database_path: str
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 30  # 30 days

    # Names used when an import payload or a query omits a level
    default_board: str = "CBSE"
    default_class: str = "5"
    default_subject: str = "Science"
    default_chapter: str = "Chapter"
    default_unit: str = "Unit 1"

    # Supabase storage (binary asset store)
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_bucket: str = "images"
    upload_folder: str = "hoshiyaar"

    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])


def load_settings() -> Settings:
    """Build settings from the process environment (and .env)."""
    return Settings(
        database_path=os.getenv(
            "DATABASE_PATH",
            os.path.join(BACKEND_DIR, "data", "curriculum.db"),
        ),
        secret_key=os.getenv("SECRET_KEY", "curriculum-dev-secret-change-in-prod"),
        algorithm=os.getenv("ALGORITHM", "HS256"),
        access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 30))),
        default_board=os.getenv("DEFAULT_BOARD", "CBSE"),
        default_class=os.getenv("DEFAULT_CLASS", "5"),
        default_subject=os.getenv("DEFAULT_SUBJECT", "Science"),
        default_chapter=os.getenv("DEFAULT_CHAPTER", "Chapter"),
        default_unit=os.getenv("DEFAULT_UNIT", "Unit 1"),
        supabase_url=os.getenv("SUPABASE_URL", "").rstrip("/"),
        supabase_key=os.getenv("SUPABASE_KEY", ""),
        supabase_bucket=os.getenv("SUPABASE_BUCKET", "images"),
        upload_folder=os.getenv("UPLOAD_FOLDER", "hoshiyaar"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        cors_origins=_csv(os.getenv("CORS_ORIGINS", "*")),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
