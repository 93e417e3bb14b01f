"""Centralized configuration for tfidf-index using Pydantic Settings."""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tfidf_index.search.stemmers import available_stemmers


class Settings(BaseSettings):
    """Strictly typed configuration loaded from ``TFIDF_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TFIDF_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Storage
    db_path: Path = Field(default=Path("tfidf-index.db"), description="SQLite database file holding the index")
    busy_timeout_ms: int = Field(default=5000, ge=0, description="How long SQLite waits on a locked database")

    # Normalization
    stemmer: str = Field(default="sastrawi", description=f"Stemmer name, one of {available_stemmers()}")
    stopwords: str = Field(
        default="dan,di,yang,untuk,pada,ke,dengan",
        description="Comma-separated stop words removed before stemming",
    )

    # Scoring
    tf_mode: Literal["substring", "token"] = Field(
        default="substring",
        description="substring: count term inside longer words too; token: whole words only",
    )

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    @field_validator("stemmer")
    @classmethod
    def _check_stemmer(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in available_stemmers():
            raise ValueError(f"Unknown stemmer '{value}'. Available: {available_stemmers()}")
        return normalized

    def get_stopwords(self) -> list[str]:
        """Get list of stop words (comma-separated)."""
        if not self.stopwords:
            return []
        return [word.strip().lower() for word in self.stopwords.split(",") if word.strip()]
