"""Canonical sutta uid table.

The table is a JSON object mapping each known sutta uid to the collections
that hold it, e.g. ``{"mn1": {"root/pli/ms": "...", "translation/en/sujato": "..."}}``.
Reference resolution needs its keys sorted by :func:`compare_low`.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import logging
from pathlib import Path

import orjson

from sutta_search.domain.scid import low_key


logger = logging.getLogger(__name__)

SuidMap = dict[str, dict[str, str]]


def load_suid_map(path: str | Path) -> SuidMap:
    """Load a suid map from disk.

    Raises:
        OSError: when the file cannot be read.
        ValueError: when the file is not a JSON object of objects.
    """
    raw = orjson.loads(Path(path).read_bytes())
    if not isinstance(raw, dict):
        raise ValueError(f"suid map must be a JSON object: {path}")
    suid_map: SuidMap = {}
    for suid, info in raw.items():
        if not isinstance(info, dict):
            raise ValueError(f"suid map entry for {suid!r} must be an object")
        suid_map[str(suid)] = {str(key): str(value) for key, value in info.items()}
    logger.debug("Loaded %d sutta uids from %s", len(suid_map), path)
    return suid_map


def sorted_suids(suids: Mapping[str, object] | Iterable[str]) -> list[str]:
    """Return sutta uids in low-bound order, ready for binary search."""
    return sorted(suids, key=low_key)


def availability_key(lang: str, author: str | None) -> str:
    """Key used in a suid map entry: ``root/pli/ms`` or ``translation/en/sujato``."""
    prefix = "root" if lang == "pli" else "translation"
    return f"{prefix}/{lang}/{author or ''}"
