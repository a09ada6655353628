"""Centralized configuration for sutta-search using Pydantic Settings."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strictly typed configuration loaded from ``SUTTA_SEARCH_*`` environment variables.

    Components receive a Settings instance at construction; nothing reads a
    mutable global at query time.
    """

    model_config = SettingsConfigDict(
        env_prefix="SUTTA_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Corpus artifacts
    corpus_dir: Path = Field(default=Path("data"), description="Directory holding {language}-{author} artifacts")
    db_suffix: str = Field(default=".db", description="File extension of corpus artifacts")

    # Search
    max_doc: int = Field(default=50, ge=0, description="Default maximum number of documents per search")
    regex_cancel_check_rows: int = Field(
        default=256,
        ge=1,
        description="Rows scanned by a regexp search between cancellation checks",
    )

    # Reference resolution
    default_language: str = Field(default="pli", description="Language assumed when a reference omits one")
    default_pali_author: str = Field(default="ms", description="Author assumed for Pali references")
    suid_map_path: Path | None = Field(default=None, description="JSON map of canonical sutta uids")
    manifest_path: Path | None = Field(default=None, description="db-manifest.json describing installed artifacts")

    # SQLite tuning
    sqlite_cache_size_kb: int = Field(default=-65536, description="PRAGMA cache_size for read connections")
    sqlite_mmap_size_bytes: int = Field(default=134217728, ge=0, description="PRAGMA mmap_size for read connections")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    @field_validator("db_suffix")
    @classmethod
    def _normalize_suffix(cls, value: str) -> str:
        value = value.strip()
        if value and not value.startswith("."):
            value = f".{value}"
        return value

    @field_validator("default_language", "default_pali_author")
    @classmethod
    def _lowercase(cls, value: str) -> str:
        return value.strip().lower()

    def artifact_name(self, language: str, author: str) -> str:
        """Return the artifact file name for a language/author pair."""
        return f"{language}-{author}{self.db_suffix}"

    def artifact_path(self, language: str, author: str) -> Path:
        return self.corpus_dir / self.artifact_name(language, author)


def load_settings() -> Settings:
    return Settings()
