"""Async facade over the per-(language, author) corpus artifacts.

Each artifact is opened lazily, exactly once, and shared by every caller.
Search and lookup methods never raise for corpus trouble: a missing artifact,
a failed open, a damaged artifact or a bad regular expression all come back as
an empty list (or ``None`` for lookups) and are logged and counted instead.
Use :meth:`CorpusIndex.open` directly when the distinction matters.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import functools
import logging
from pathlib import Path
import threading
from typing import Any, TypeVar

from sutta_search.config import Settings
from sutta_search.domain.search import AuthorMetadata, SuttaScore, split_document_key
from sutta_search.errors import (
    ArtifactNotFoundError,
    CorpusClosedError,
    CorpusError,
    OpenFailedError,
)
from sutta_search.observability.context import corpus_context
from sutta_search.observability.metrics import (
    INDEX_OPENS,
    OPEN_INDEXES,
    SEARCH_FAILURES,
    SEARCH_LATENCY,
    track_latency,
)
from sutta_search.observability.tracing import create_span
from sutta_search.search.author_index import AuthorIndex


logger = logging.getLogger(__name__)

T = TypeVar("T")


class CorpusIndex:
    """Lazily opened, read-only corpus artifacts keyed by ``language/author``.

    Usage::

        async with CorpusIndex(settings) as corpus:
            keys = await corpus.search_keywords("en", "sujato", "root of suffering")
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or Settings()
        self._indexes: dict[str, AuthorIndex] = {}
        self._open_failures: dict[str, OpenFailedError] = {}
        self._pending_opens: dict[str, asyncio.Future] = {}
        self._closed = False

    async def __aenter__(self) -> CorpusIndex:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def default_limit(self) -> int:
        return self._settings.max_doc

    @property
    def closed(self) -> bool:
        return self._closed

    def _resolve_limit(self, limit: int | None) -> int:
        if limit is None:
            return self._settings.max_doc
        return max(0, int(limit))

    # Handles

    async def open(self, language: str, author: str) -> AuthorIndex:
        """Return the shared handle for ``language/author``, opening it on first use.

        Concurrent callers for one key share a single in-flight open; a caller
        that is cancelled while waiting does not abandon it.

        Raises:
            ArtifactNotFoundError: when no artifact is installed (checked again on the next call).
            OpenFailedError: when the artifact cannot be opened (cached, never retried).
            CorpusClosedError: after :meth:`aclose`.
        """
        key = f"{language}/{author}"
        if self._closed:
            raise CorpusClosedError("CorpusIndex is closed")
        index = self._indexes.get(key)
        if index is not None:
            return index
        failure = self._open_failures.get(key)
        if failure is not None:
            logger.debug("Corpus %s failed to open earlier; not retrying", key)
            raise OpenFailedError(str(failure)) from failure

        pending = self._pending_opens.get(key)
        if pending is None:
            path = self._settings.artifact_path(language, author)
            pending = asyncio.ensure_future(
                asyncio.to_thread(
                    AuthorIndex.open,
                    language,
                    author,
                    path,
                    cache_size_kb=self._settings.sqlite_cache_size_kb,
                    mmap_size_bytes=self._settings.sqlite_mmap_size_bytes,
                    cancel_check_rows=self._settings.regex_cancel_check_rows,
                )
            )
            # Registered before any waiter, so the handle is cached when they resume.
            pending.add_done_callback(functools.partial(self._finish_open, key))
            self._pending_opens[key] = pending
        return await asyncio.shield(pending)

    def _finish_open(self, key: str, future: asyncio.Future) -> None:
        """Record the outcome of the open for ``key``; runs on the event loop."""
        self._pending_opens.pop(key, None)
        if future.cancelled():
            return
        exc = future.exception()
        if exc is None:
            self._indexes[key] = future.result()
            INDEX_OPENS.labels(corpus=key, outcome="opened").inc()
            OPEN_INDEXES.inc()
        elif isinstance(exc, ArtifactNotFoundError):
            INDEX_OPENS.labels(corpus=key, outcome="missing").inc()
        elif isinstance(exc, OpenFailedError):
            self._open_failures[key] = exc
            INDEX_OPENS.labels(corpus=key, outcome="failed").inc()
            logger.warning("Corpus %s could not be opened: %s", key, exc)

    async def aclose(self) -> None:
        """Close every cached handle once, after in-flight opens and queries finish."""
        if self._closed:
            return
        self._closed = True
        pending = list(self._pending_opens.values())
        if pending:
            await asyncio.wait(pending)
        indexes = list(self._indexes.values())
        self._indexes.clear()
        for index in indexes:
            await asyncio.to_thread(index.close)
            OPEN_INDEXES.dec()
        logger.info("CorpusIndex closed (%d artifacts)", len(indexes))

    async def available_authors(self) -> set[tuple[str, str]]:
        """Installed ``(language, author)`` pairs, found by scanning ``corpus_dir``."""
        return await asyncio.to_thread(self._scan_artifacts)

    def _scan_artifacts(self) -> set[tuple[str, str]]:
        corpus_dir = Path(self._settings.corpus_dir)
        suffix = self._settings.db_suffix
        if not corpus_dir.is_dir():
            logger.debug("Corpus directory %s does not exist", corpus_dir)
            return set()
        found: set[tuple[str, str]] = set()
        for path in corpus_dir.iterdir():
            if not path.is_file() or not path.name.endswith(suffix):
                continue
            stem = path.name[: len(path.name) - len(suffix)] if suffix else path.name
            language, sep, author = stem.partition("-")
            if sep and language and author:
                found.add((language, author))
        return found

    # Queries

    async def _run(
        self,
        method: str,
        language: str,
        author: str,
        call: Callable[[AuthorIndex], Awaitable[T]],
        default: T,
        **span_attributes: Any,
    ) -> T:
        corpus = f"{language}/{author}"
        with corpus_context(corpus), create_span(
            f"corpus.{method}", attributes={"corpus.key": corpus, **span_attributes}
        ):
            try:
                index = await self.open(language, author)
                with track_latency(SEARCH_LATENCY, corpus=corpus, method=method):
                    return await call(index)
            except ArtifactNotFoundError as exc:
                logger.info("No corpus artifact for %s: %s", corpus, exc)
                SEARCH_FAILURES.labels(corpus=corpus, method=method, error_type=type(exc).__name__).inc()
                return default
            except OpenFailedError as exc:
                logger.debug("Corpus %s unavailable for %s: %s", corpus, method, exc)
                SEARCH_FAILURES.labels(corpus=corpus, method=method, error_type=type(exc).__name__).inc()
                return default
            except CorpusError as exc:
                logger.warning("Corpus %s %s failed: %s", corpus, method, exc)
                SEARCH_FAILURES.labels(corpus=corpus, method=method, error_type=type(exc).__name__).inc()
                return default

    async def get_translation(self, language: str, author: str, sutta_id: str) -> dict[str, str] | None:
        """Segments of one document keyed by segment id, or None when absent."""

        async def call(index: AuthorIndex) -> dict[str, str] | None:
            return await asyncio.to_thread(index.get_translation, sutta_id)

        return await self._run("get_translation", language, author, call, None, **{"sutta.id": sutta_id})

    async def get_translation_by_key(self, key: str) -> dict[str, str] | None:
        """Lookup by full document key, e.g. ``en/sujato/mn1``."""
        try:
            language, author, sutta_id = split_document_key(key)
        except ValueError as exc:
            logger.debug("Bad document key: %s", exc)
            return None
        return await self.get_translation(language, author, sutta_id)

    async def metadata(self, language: str, author: str) -> AuthorMetadata | None:
        async def call(index: AuthorIndex) -> AuthorMetadata | None:
            return await asyncio.to_thread(index.metadata)

        return await self._run("metadata", language, author, call, None)

    async def search_keywords_with_scores(
        self, language: str, author: str, query: str, limit: int | None = None
    ) -> list[SuttaScore]:
        """Ranked keyword matches with their score breakdown."""
        resolved = self._resolve_limit(limit)

        async def call(index: AuthorIndex) -> list[SuttaScore]:
            return await asyncio.to_thread(index.search_keywords_with_scores, query, resolved)

        return await self._run("search_keywords", language, author, call, [], **{"search.limit": resolved})

    async def search_keywords(self, language: str, author: str, query: str, limit: int | None = None) -> list[str]:
        """Document keys whose segments contain every token of ``query``, best first."""
        scores = await self.search_keywords_with_scores(language, author, query, limit)
        return [score.key for score in scores]

    async def search_phrase(self, language: str, author: str, phrase: str, limit: int | None = None) -> list[str]:
        resolved = self._resolve_limit(limit)

        async def call(index: AuthorIndex) -> list[str]:
            return await asyncio.to_thread(index.search_phrase, phrase, resolved)

        return await self._run("search_phrase", language, author, call, [], **{"search.limit": resolved})

    async def search_regexp_with_scores(
        self, language: str, author: str, pattern: str, limit: int | None = None
    ) -> list[SuttaScore]:
        """Full-scan regular expression search.

        Cancelling the awaiting task stops the scan at its next check.
        """
        resolved = self._resolve_limit(limit)

        async def call(index: AuthorIndex) -> list[SuttaScore]:
            cancel_event = threading.Event()
            try:
                return await asyncio.to_thread(
                    index.search_regexp_with_scores, pattern, resolved, cancel_event=cancel_event
                )
            except asyncio.CancelledError:
                cancel_event.set()
                raise

        return await self._run("search_regexp", language, author, call, [], **{"search.limit": resolved})

    async def search_regexp(self, language: str, author: str, pattern: str, limit: int | None = None) -> list[str]:
        scores = await self.search_regexp_with_scores(language, author, pattern, limit)
        return [score.key for score in scores]
