"""Read-only access to one ``{language}-{author}`` corpus artifact.

The artifact is a SQLite database built ahead of time with this layout::

    suttas(sutta_key TEXT PRIMARY KEY, total_segments INTEGER)
    segments(sutta_key TEXT, segment_id TEXT, segment_text TEXT)
    segments_fts USING fts5(sutta_key UNINDEXED, segment_id UNINDEXED, segment_text)
    metadata(language TEXT, author TEXT)            -- optional, one row

``sutta_key`` holds full document keys (``en/sujato/mn1``).  Everything here is
blocking; :class:`~sutta_search.search.corpus_index.CorpusIndex` runs it in
worker threads.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterator
import contextlib
from contextlib import contextmanager
import logging
from pathlib import Path
import re
import sqlite3
import threading

from pydantic import ValidationError

from sutta_search.domain.search import AuthorMetadata, SuttaScore, document_key
from sutta_search.errors import (
    ArtifactNotFoundError,
    CorpusClosedError,
    OpenFailedError,
    QueryFailedError,
    SearchCancelledError,
)
from sutta_search.search.sqlite_pragmas import apply_read_pragmas


logger = logging.getLogger(__name__)

_KEYWORD_SQL = """
    SELECT s.sutta_key,
           COUNT(sf.rowid) AS match_count,
           s.total_segments
    FROM segments_fts sf
    JOIN suttas s ON sf.sutta_key = s.sutta_key
    WHERE sf.segment_text MATCH ? AND s.total_segments > 0
    GROUP BY sf.sutta_key
    ORDER BY COUNT(sf.rowid) + CAST(COUNT(sf.rowid) AS REAL) / s.total_segments DESC,
             sf.sutta_key
    LIMIT ?
"""
_TRANSLATION_SQL = "SELECT segment_id, segment_text FROM segments WHERE sutta_key = ? ORDER BY segment_id"
_SEGMENT_TEXT_SQL = "SELECT segment_text FROM segments WHERE sutta_key = ?"
_SCAN_SQL = "SELECT DISTINCT sutta_key, segment_text FROM segments"
_TOTALS_SQL = "SELECT sutta_key, total_segments FROM suttas"
_METADATA_SQL = "SELECT language, author FROM metadata LIMIT 1"
_HAS_TABLE_SQL = "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?"
_TOKEN_RE = re.compile(r"\w+")


def fts_match_expression(text: str) -> str:
    """Quote every word of ``text`` so FTS5 reads it as a plain AND of tokens.

    Punctuation and FTS operators in user input are never parsed as query syntax.
    """
    return " ".join(f'"{token}"' for token in _TOKEN_RE.findall(text))


def _connect_read_only(db_path: Path) -> sqlite3.Connection:
    uri = f"{db_path.resolve().as_uri()}?mode=ro"
    return sqlite3.connect(uri, uri=True, check_same_thread=False)


class AuthorIndex:
    """One open, read-only connection to a language/author artifact.

    Queries borrow the connection; :meth:`close` waits for outstanding
    borrows to finish before closing it.
    """

    def __init__(
        self,
        language: str,
        author: str,
        db_path: Path,
        connection: sqlite3.Connection,
        *,
        cancel_check_rows: int = 256,
    ) -> None:
        self.language = language
        self.author = author
        self.db_path = db_path
        self._conn = connection
        self._cancel_check_rows = max(1, cancel_check_rows)
        self._cond = threading.Condition()
        self._borrowed = 0
        self._closed = False
        # Older SQLite builds are not safe for concurrent use of one connection.
        self._serialize = sqlite3.threadsafety < 3
        self._query_lock = threading.Lock()

    @classmethod
    def open(
        cls,
        language: str,
        author: str,
        db_path: Path,
        *,
        cache_size_kb: int = -65536,
        mmap_size_bytes: int = 134217728,
        cancel_check_rows: int = 256,
    ) -> AuthorIndex:
        """Open ``db_path`` read-only.

        Raises:
            ArtifactNotFoundError: when no file exists at ``db_path``.
            OpenFailedError: when the file cannot be opened as a database.
        """
        if not db_path.is_file():
            raise ArtifactNotFoundError(f"No corpus artifact for {language}/{author} at {db_path}")
        conn: sqlite3.Connection | None = None
        try:
            conn = _connect_read_only(db_path)
            apply_read_pragmas(conn, cache_size_kb=cache_size_kb, mmap_size_bytes=mmap_size_bytes)
            conn.execute("SELECT count(*) FROM sqlite_master").fetchone()
        except sqlite3.Error as exc:
            if conn is not None:
                conn.close()
            raise OpenFailedError(f"Cannot open corpus artifact {db_path}: {exc}") from exc
        logger.info("Opened corpus artifact %s", db_path)
        return cls(language, author, db_path, conn, cancel_check_rows=cancel_check_rows)

    @property
    def key(self) -> str:
        return f"{self.language}/{self.author}"

    @property
    def closed(self) -> bool:
        return self._closed

    @contextmanager
    def borrow(self) -> Iterator[sqlite3.Connection]:
        """Lend the connection to one query; raises CorpusClosedError after close()."""
        with self._cond:
            if self._closed:
                raise CorpusClosedError(f"Corpus {self.key} is closed")
            self._borrowed += 1
        try:
            with self._query_lock if self._serialize else contextlib.nullcontext():
                yield self._conn
        finally:
            with self._cond:
                self._borrowed -= 1
                self._cond.notify_all()

    def close(self) -> None:
        """Refuse new borrows, wait for in-flight queries, then close. Idempotent."""
        with self._cond:
            if self._closed and self._conn is None:
                return
            self._closed = True
            while self._borrowed:
                self._cond.wait()
            conn, self._conn = self._conn, None
        if conn is not None:
            conn.close()
            logger.info("Closed corpus artifact %s", self.db_path)

    def _fetchall(self, sql: str, params: tuple = ()) -> list[tuple]:
        with self.borrow() as conn:
            try:
                return conn.execute(sql, params).fetchall()
            except sqlite3.Error as exc:
                raise QueryFailedError(f"{self.key}: {exc}") from exc

    # Lookup

    def get_translation(self, sutta_id: str) -> dict[str, str] | None:
        """All segments of one document keyed by segment id, or None if it has none.

        Segments are ordered by ``segment_id`` as text, so ``mn1:10.1`` sorts
        before ``mn1:2.1``.
        """
        rows = self._fetchall(_TRANSLATION_SQL, (document_key(self.language, self.author, sutta_id),))
        if not rows:
            return None
        return {segment_id: segment_text for segment_id, segment_text in rows}

    def metadata(self) -> AuthorMetadata | None:
        if not self._fetchall(_HAS_TABLE_SQL, ("metadata",)):
            return None
        rows = self._fetchall(_METADATA_SQL)
        if not rows:
            return None
        language, author = rows[0]
        try:
            return AuthorMetadata(language=language, author=author)
        except ValidationError as exc:
            raise QueryFailedError(f"{self.key}: malformed metadata row") from exc

    # Search

    def search_keywords_with_scores(self, query: str, limit: int) -> list[SuttaScore]:
        """Full-text AND match over the words of ``query``, ranked by combined score.

        Raises:
            QueryFailedError: on a damaged artifact.
        """
        expression = fts_match_expression(query)
        if limit <= 0 or not expression:
            return []
        rows = self._fetchall(_KEYWORD_SQL, (expression, limit))
        return [SuttaScore.from_counts(key, int(count), int(total)) for key, count, total in rows]

    def search_keywords(self, query: str, limit: int) -> list[str]:
        return [score.key for score in self.search_keywords_with_scores(query, limit)]

    def search_phrase(self, phrase: str, limit: int) -> list[str]:
        """Keyword candidates (already cut to ``limit``) that contain ``phrase`` verbatim.

        The limit applies before the phrase filter, so a document ranked below
        the keyword cutoff is never considered.
        """
        candidates = self.search_keywords(phrase, limit)
        needle = phrase.lower()
        return [key for key in candidates if self._contains_phrase(key, needle)]

    def _contains_phrase(self, key: str, needle: str) -> bool:
        rows = self._fetchall(_SEGMENT_TEXT_SQL, (key,))
        return any(text is not None and needle in text.lower() for (text,) in rows)

    def search_regexp_with_scores(
        self,
        pattern: str,
        limit: int,
        *,
        cancel_event: threading.Event | None = None,
    ) -> list[SuttaScore]:
        """Score every document whose segments match ``pattern`` (case sensitive).

        This is a full scan of the segment table. ``cancel_event`` is polled
        every ``cancel_check_rows`` rows.

        Raises:
            QueryFailedError: when ``pattern`` does not compile.
            SearchCancelledError: when ``cancel_event`` is set mid-scan.
        """
        try:
            regex = re.compile(pattern)
        except re.error as exc:
            raise QueryFailedError(f"Invalid regular expression {pattern!r}: {exc}") from exc
        if limit <= 0:
            return []

        matches: dict[str, int] = defaultdict(int)
        with self.borrow() as conn:
            try:
                cursor = conn.execute(_SCAN_SQL)
                for row_number, (key, text) in enumerate(cursor, start=1):
                    if cancel_event is not None and row_number % self._cancel_check_rows == 0 and cancel_event.is_set():
                        raise SearchCancelledError(
                            f"Regexp search on {self.key} cancelled after {row_number} rows",
                            rows_scanned=row_number,
                        )
                    if text is not None and regex.search(text):
                        matches[key] += 1
                totals = dict(conn.execute(_TOTALS_SQL).fetchall()) if matches else {}
            except sqlite3.Error as exc:
                raise QueryFailedError(f"{self.key}: {exc}") from exc

        scores = [
            SuttaScore.from_counts(key, count, int(totals[key]))
            for key, count in matches.items()
            if totals.get(key) and int(totals[key]) > 0
        ]
        scores.sort(key=lambda score: (-score.score, score.key))
        return scores[:limit]

    def search_regexp(
        self,
        pattern: str,
        limit: int,
        *,
        cancel_event: threading.Event | None = None,
    ) -> list[str]:
        return [score.key for score in self.search_regexp_with_scores(pattern, limit, cancel_event=cancel_event)]
