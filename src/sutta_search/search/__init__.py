"""Read-only full-text search over per-(language, author) corpus artifacts."""

from sutta_search.search.author_index import AuthorIndex
from sutta_search.search.corpus_index import CorpusIndex


__all__ = ["AuthorIndex", "CorpusIndex"]
