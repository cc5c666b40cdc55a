"""Configuration and settings management."""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import field_validator
from pathlib import Path

class Settings(BaseSettings):
    # Ximilar recognition service
    XIMILAR_API_TOKEN: Optional[str] = None
    XIMILAR_BASE_URL: str = "https://api.ximilar.com"
    RECOGNITION_LANGUAGE: str = "en"
    CONDITION_MODE: str = "ebay"

    # Logging
    LOG_LEVEL: str = "INFO"

    # Collection storage
    COLLECTION_DB_PATH: str = "data/collection.db"

    # Capture sanity check
    MIN_IMAGE_PAYLOAD_LENGTH: int = 100

    # Candidate scoring weights
    SCORE_YEAR: int = 2
    SCORE_SET: int = 2
    SCORE_NUMBER: int = 2
    SCORE_LINKS: int = 1
    SCORE_PRICING: int = 2
    SCORE_SUBCATEGORY: int = 3
    SCORE_OCR_KEYWORD: int = 5

    @field_validator('XIMILAR_API_TOKEN', mode='before')
    @classmethod
    def validate_api_token(cls, v):
        """Convert empty/whitespace strings to None."""
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @field_validator('LOG_LEVEL', mode='before')
    @classmethod
    def validate_log_level(cls, v):
        """Convert empty/whitespace strings to default."""
        if isinstance(v, str) and not v.strip():
            return "INFO"
        return v

    @field_validator('COLLECTION_DB_PATH', mode='before')
    @classmethod
    def validate_collection_path(cls, v):
        """Convert empty/whitespace strings to default."""
        if isinstance(v, str) and not v.strip():
            return "data/collection.db"
        return v

    @field_validator('XIMILAR_BASE_URL', mode='before')
    @classmethod
    def validate_base_url(cls, v):
        """Convert empty strings to default and drop trailing slashes."""
        if isinstance(v, str) and not v.strip():
            return "https://api.ximilar.com"
        return v.strip().rstrip("/") if isinstance(v, str) else v

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore"
    }

# Global settings instance
settings = Settings()

def resolve_db_path(db_path: Optional[str] = None) -> Path:
    """Resolve the collection database path.

    Relative paths are anchored at the project root.
    """
    path = Path(db_path or settings.COLLECTION_DB_PATH)
    if path.is_absolute():
        return path
    project_root = Path(__file__).parent.parent.parent
    return project_root / path

def ensure_data_dir(db_path: Optional[str] = None) -> Path:
    """Ensure the directory holding the collection database exists."""
    path = resolve_db_path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path
