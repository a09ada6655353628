"""Exception hierarchy shared by the identifier, reference and corpus layers."""

from __future__ import annotations


class SuttaSearchError(Exception):
    """Base class for every error raised by sutta_search."""


# Identifier parsing


class ScidError(SuttaSearchError):
    """A SuttaCentral identifier could not be parsed or manipulated."""


class PartNumberError(ScidError):
    """A numeric level of an identifier is malformed (e.g. ``xyz`` in ``mn1.xyz``)."""

    def __init__(self, part: str, scid: str) -> None:
        super().__init__(f"part_number() cannot parse {part!r} in {scid!r}")
        self.part = part
        self.scid = scid


# Reference resolution


class SuttaRefError(SuttaSearchError):
    """A reference string or object could not be resolved."""


class InvalidSuttaUidError(SuttaRefError):
    """Direct construction with an empty or path-like sutta uid."""


class InvalidInputError(SuttaRefError):
    """The input is neither a string, a mapping nor a SuttaRef."""


class SuttaNotFoundError(SuttaRefError):
    """The sutta uid is not covered by the canonical id table."""


# Corpus access


class CorpusError(SuttaSearchError):
    """Base class for corpus artifact errors."""


class ArtifactNotFoundError(CorpusError):
    """No artifact is installed for the requested language and author."""


class OpenFailedError(CorpusError):
    """The artifact exists but could not be opened read-only."""


class QueryFailedError(CorpusError):
    """A query against an open artifact failed (bad regex, missing table, malformed row)."""


class SearchCancelledError(CorpusError):
    """A full-scan search was abandoned by its caller."""

    def __init__(self, message: str, rows_scanned: int = 0) -> None:
        super().__init__(message)
        self.rows_scanned = rows_scanned


class CorpusClosedError(CorpusError):
    """The corpus index has been shut down."""
