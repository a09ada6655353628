"""Search and reference resolution for a multi-author SuttaCentral corpus."""

from sutta_search.bootstrap import init_observability
from sutta_search.config import Settings, load_settings
from sutta_search.domain.scid import SuttaCentralId
from sutta_search.domain.search import AuthorMetadata, SuttaScore
from sutta_search.domain.sutta_ref import ReferenceResolver, SuttaRef
from sutta_search.search.corpus_index import CorpusIndex


__version__ = "0.1.0"

__all__ = [
    "AuthorMetadata",
    "CorpusIndex",
    "ReferenceResolver",
    "Settings",
    "SuttaCentralId",
    "SuttaRef",
    "SuttaScore",
    "__version__",
    "init_observability",
    "load_settings",
]
