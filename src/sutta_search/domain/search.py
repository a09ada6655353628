"""Domain models for corpus search results.

Value objects are immutable (frozen=True) so ranked results cannot drift
after they leave the search layer.
"""

from pydantic import BaseModel, ConfigDict, Field


class SuttaScore(BaseModel):
    """Relevance detail for one matching document.

    ``score`` is the ranking key: the number of matching segments plus the
    fraction of the document's segments that matched.
    """

    model_config = ConfigDict(frozen=True)

    key: str = Field(description="Document key: {language}/{author}/{sutta_id}")
    match_count: int = Field(ge=0)
    total_segments: int = Field(ge=0)
    relevance_percent: float = Field(ge=0.0)
    score: float = Field(ge=0.0)

    @classmethod
    def from_counts(cls, key: str, match_count: int, total_segments: int) -> "SuttaScore":
        relevance = match_count / total_segments if total_segments else 0.0
        return cls(
            key=key,
            match_count=match_count,
            total_segments=total_segments,
            relevance_percent=relevance,
            score=match_count + relevance,
        )


class AuthorMetadata(BaseModel):
    """One-row metadata record stored inside a corpus artifact."""

    model_config = ConfigDict(frozen=True)

    language: str
    author: str


def split_document_key(key: str) -> tuple[str, str, str]:
    """Split ``en/sujato/mn1`` into ``("en", "sujato", "mn1")``.

    Raises:
        ValueError: when the key does not have three non-empty components.
    """
    language, _, rest = key.partition("/")
    author, _, sutta_id = rest.partition("/")
    if not (language and author and sutta_id):
        raise ValueError(f"Document key must look like language/author/sutta_id: {key!r}")
    return language, author, sutta_id


def document_key(language: str, author: str, sutta_id: str) -> str:
    return f"{language}/{author}/{sutta_id}"
