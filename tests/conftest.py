"""Shared test fixtures and configuration."""

from collections.abc import Callable, Mapping
import os
from pathlib import Path
import sqlite3

import pytest

from sutta_search.config import Settings


# Complete test environment that overrides every SUTTA_SEARCH_* value
TEST_ENV = {
    "SUTTA_SEARCH_CORPUS_DIR": "data",
    "SUTTA_SEARCH_DB_SUFFIX": ".db",
    "SUTTA_SEARCH_MAX_DOC": "50",
    "SUTTA_SEARCH_REGEX_CANCEL_CHECK_ROWS": "256",
    "SUTTA_SEARCH_DEFAULT_LANGUAGE": "pli",
    "SUTTA_SEARCH_DEFAULT_PALI_AUTHOR": "ms",
    "SUTTA_SEARCH_LOG_LEVEL": "info",
    "SUTTA_SEARCH_LOG_JSON": "true",
}

for key, value in TEST_ENV.items():
    os.environ[key] = value


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Drop stray SUTTA_SEARCH_* variables and pin the test defaults."""
    for key in list(os.environ):
        if key.startswith("SUTTA_SEARCH_") and key not in TEST_ENV:
            monkeypatch.delenv(key, raising=False)
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)


_SCHEMA = """
CREATE TABLE suttas (
    sutta_key TEXT PRIMARY KEY,
    total_segments INTEGER NOT NULL
);
CREATE TABLE segments (
    sutta_key TEXT NOT NULL,
    segment_id TEXT NOT NULL,
    segment_text TEXT,
    PRIMARY KEY (sutta_key, segment_id)
);
CREATE VIRTUAL TABLE segments_fts USING fts5(
    sutta_key UNINDEXED,
    segment_id UNINDEXED,
    segment_text
);
CREATE TRIGGER segments_ai AFTER INSERT ON segments BEGIN
    INSERT INTO segments_fts (sutta_key, segment_id, segment_text)
    VALUES (new.sutta_key, new.segment_id, new.segment_text);
END;
"""


def build_corpus_artifact(
    path: Path,
    documents: Mapping[str, Mapping[str, str]],
    *,
    metadata: tuple[str, str] | None = None,
    total_segments: Mapping[str, int] | None = None,
) -> Path:
    """Write a corpus artifact with the production table layout.

    ``documents`` maps full document keys (``en/sujato/mn1``) to their
    segments. ``total_segments`` overrides the per-document total, which
    otherwise is the number of segments given.
    """
    totals = dict(total_segments or {})
    conn = sqlite3.connect(path)
    try:
        conn.executescript(_SCHEMA)
        for key, segments in documents.items():
            conn.execute(
                "INSERT INTO suttas (sutta_key, total_segments) VALUES (?, ?)",
                (key, totals.get(key, len(segments))),
            )
            conn.executemany(
                "INSERT INTO segments (sutta_key, segment_id, segment_text) VALUES (?, ?, ?)",
                [(key, segment_id, text) for segment_id, text in segments.items()],
            )
        if metadata is not None:
            conn.execute("CREATE TABLE metadata (language TEXT, author TEXT)")
            conn.execute("INSERT INTO metadata (language, author) VALUES (?, ?)", metadata)
        conn.commit()
    finally:
        conn.close()
    return path


SUJATO_DOCUMENTS = {
    "en/sujato/mn1": {
        "mn1:1.1": "So I have heard.",
        "mn1:1.2": "At one time the Buddha was staying near Ukkattha.",
        "mn1:2.1": "Delight is the root of suffering.",
        "mn1:2.2": "Craving is the root of suffering, they say.",
        "mn1:10.1": "That is what the Buddha said.",
    },
    "en/sujato/mn2": {
        "mn2:1.1": "So I have heard.",
        "mn2:1.2": "The root of the matter is suffering.",
        "mn2:2.1": "Mendicants, the ending of defilements is for one who knows and sees.",
    },
}


@pytest.fixture
def make_corpus(tmp_path) -> Callable[..., Path]:
    """Factory that writes ``{language}-{author}.db`` artifacts into ``tmp_path``."""

    def _make(
        language: str,
        author: str,
        documents: Mapping[str, Mapping[str, str]],
        **kwargs,
    ) -> Path:
        return build_corpus_artifact(tmp_path / f"{language}-{author}.db", documents, **kwargs)

    return _make


@pytest.fixture
def sujato_artifact(make_corpus) -> Path:
    return make_corpus("en", "sujato", SUJATO_DOCUMENTS, metadata=("en", "sujato"))


@pytest.fixture
def corpus_settings(tmp_path) -> Settings:
    return Settings(corpus_dir=tmp_path)
