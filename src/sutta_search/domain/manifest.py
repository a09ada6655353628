"""Database manifest describing the installed corpus artifacts.

The manifest (``db-manifest.json``) is written by the build step next to the
artifacts; it lists one entry per language/author pair.
"""

from __future__ import annotations

import logging
from pathlib import Path

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError


logger = logging.getLogger(__name__)


class DatabaseInfo(BaseModel):
    """Information about a single language/author artifact."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    language: str
    author: str
    author_name: str = Field(alias="authorName")
    build_timestamp: str = Field(alias="buildTimestamp")
    files: int = Field(ge=0)
    git_hash: str | None = Field(default=None, alias="gitHash")
    json_path: str | None = Field(default=None, alias="json")

    @property
    def id(self) -> str:
        return f"{self.language}/{self.author}"


class DatabaseManifest(BaseModel):
    """All artifacts known to the build, with per-language author lookups."""

    model_config = ConfigDict(frozen=True)

    databases: list[DatabaseInfo] = Field(default_factory=list)

    @classmethod
    def load(cls, path: str | Path) -> DatabaseManifest | None:
        """Load a manifest file, returning None when it is missing or invalid."""
        try:
            data = orjson.loads(Path(path).read_bytes())
            return cls.model_validate(data)
        except FileNotFoundError:
            logger.debug("No database manifest at %s", path)
        except (OSError, orjson.JSONDecodeError, ValidationError) as exc:
            logger.warning("Ignoring unreadable database manifest %s: %s", path, exc)
        return None

    def info(self, language: str, author: str) -> DatabaseInfo | None:
        return next(
            (db for db in self.databases if db.language == language and db.author == author),
            None,
        )

    def authors_for_language(self, language: str) -> list[DatabaseInfo]:
        return [db for db in self.databases if db.language == language]

    def authors_for_language_sorted_by_files(self, language: str) -> list[DatabaseInfo]:
        return sorted(self.authors_for_language(language), key=lambda db: db.files, reverse=True)

    def default_author_for_language(self, language: str) -> DatabaseInfo | None:
        """The most comprehensive author (largest file count) for a language."""
        ranked = self.authors_for_language_sorted_by_files(language)
        return ranked[0] if ranked else None
