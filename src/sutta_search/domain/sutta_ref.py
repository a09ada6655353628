"""Sutta references: loosely formatted user input resolved to a canonical sutta.

A reference string looks like ``an1.1-10/en/sujato:1.1``: a sutta uid, an
optional language, an optional author and an optional ``:segment`` number.
Mapping inputs use the bilara field names (``sutta_uid``, ``lang``,
``author``, ``segnum``, ``scid``) plus a few legacy aliases.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
import logging
import re
from typing import Any

from sutta_search.config import Settings
from sutta_search.domain import scid as scid_algebra
from sutta_search.domain.manifest import DatabaseManifest
from sutta_search.domain.suid_map import SuidMap, availability_key, load_suid_map, sorted_suids
from sutta_search.errors import (
    InvalidInputError,
    InvalidSuttaUidError,
    ScidError,
    SuttaNotFoundError,
    SuttaSearchError,
)


logger = logging.getLogger(__name__)

DEFAULT_LANG = "pli"
DEFAULT_PALI_AUTHOR = "ms"

_SEGNUM_RE = re.compile(r":[-0-9.]*")


def find_sutta_uid_in_range(uid: str, suids: Sequence[str]) -> str:
    """Binary search ``suids`` (low-bound order) for the entry whose range holds ``uid``.

    ``mn5`` resolves to ``mn3-10`` because 3 <= 5 <= 10.

    Raises:
        SuttaNotFoundError: when no entry contains ``uid``.
    """
    low, high = 0, len(suids)
    try:
        while low < high:
            mid = (low + high) // 2
            suid = suids[mid]
            cmp_low = scid_algebra.compare_low(uid, suid)
            cmp_high = scid_algebra.compare_high(uid, suid)
            if cmp_low >= 0 and cmp_high <= 0:
                return suid
            if cmp_low < 0:
                high = mid
            else:
                low = mid + 1
    except ScidError as exc:
        raise SuttaNotFoundError(f"Cannot find {uid} in range: {exc}") from exc
    raise SuttaNotFoundError(f"Cannot find {uid} in range")


def _last_str(obj: Mapping[str, Any], *names: str) -> str | None:
    """Value of the last alias present; later names are the newer field names."""
    value: str | None = None
    for name in names:
        candidate = obj.get(name)
        if isinstance(candidate, str):
            value = candidate
    return value


@dataclass(frozen=True)
class SuttaRef:
    """A resolved reference to a sutta, optionally narrowed to one segment.

    Equality and hashing use ``(sutta_uid, lang, author, segnum)``; ``scid``
    records the id the caller addressed (``mn5:1.1`` for a reference that
    resolved to the ``mn3-10`` document).
    """

    sutta_uid: str
    lang: str = DEFAULT_LANG
    author: str | None = None
    segnum: str | None = None
    scid: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.sutta_uid, str) or not self.sutta_uid or "/" in self.sutta_uid:
            raise InvalidSuttaUidError(f"use SuttaRef.create({self.sutta_uid!r})")
        if not self.scid:
            default_scid = f"{self.sutta_uid}:{self.segnum}" if self.segnum else self.sutta_uid
            object.__setattr__(self, "scid", default_scid)

    def __str__(self) -> str:
        return self.to_string()

    def to_string(self) -> str:
        """Render ``sutta_uid[:segnum]/lang[/author]``."""
        result = self.sutta_uid
        if self.segnum:
            result += f":{self.segnum}"
        result += f"/{self.lang}"
        if self.author:
            result += f"/{self.author}"
        return result

    def exists(self, suid_map: Mapping[str, Mapping[str, str]], *, default_author: str | None = None) -> bool:
        """True if ``suid_map`` lists this sutta for the reference's language and author."""
        info = suid_map.get(self.sutta_uid)
        if not info:
            return False
        return availability_key(self.lang, self.author or default_author) in info

    @classmethod
    def create_from_string(
        cls,
        text: str = "",
        *,
        default_lang: str = DEFAULT_LANG,
        suids: Sequence[str] | None = None,
        default_pali_author: str = DEFAULT_PALI_AUTHOR,
    ) -> SuttaRef:
        """Parse ``sutta_uid[/lang[/author]][:segnum]``.

        With a non-empty ``suids`` table the uid must fall inside one of its
        ranges and the matching table entry becomes ``sutta_uid``; without one
        the uid only has to look like a scid.

        Raises:
            InvalidSuttaUidError: when no sutta uid is given.
            SuttaNotFoundError: when the uid is unknown or malformed.
        """
        ref_lower = text.lower()
        segnum: str | None = None
        ref = ref_lower
        seg_match = _SEGNUM_RE.search(ref_lower)
        if seg_match:
            segnum = seg_match.group(0)[1:] or None
            ref = ref_lower[: seg_match.start()] + ref_lower[seg_match.end() :]

        parts = [part for part in ref.replace(" ", "").split("/") if part]
        raw_uid = parts[0] if parts else ""
        lang = parts[1] if len(parts) > 1 else default_lang
        author = parts[2] if len(parts) > 2 else None
        if author is None and lang == "pli":
            author = default_pali_author

        if not raw_uid:
            raise InvalidSuttaUidError("sutta_uid cannot be empty")
        if suids:
            sutta_uid = find_sutta_uid_in_range(raw_uid, suids)
        elif scid_algebra.test(raw_uid):
            sutta_uid = raw_uid
        else:
            raise SuttaNotFoundError(f"Invalid sutta_uid: {raw_uid}")

        return cls(
            sutta_uid=sutta_uid,
            lang=lang,
            author=author,
            segnum=segnum,
            scid=f"{raw_uid}:{segnum}" if segnum else raw_uid,
        )

    @classmethod
    def create_from_object(
        cls,
        obj: Mapping[str, Any],
        *,
        default_lang: str = DEFAULT_LANG,
        suids: Sequence[str] | None = None,
        default_pali_author: str = DEFAULT_PALI_AUTHOR,
    ) -> SuttaRef:
        """Build a reference from a mapping.

        Aliases: ``suid`` for ``sutta_uid``; ``translator`` and ``author_uid``
        for ``author``. When several aliases are present the later one wins.
        """
        raw_uid = _last_str(obj, "sutta_uid", "suid")
        obj_lang = _last_str(obj, "lang")

        parsed: SuttaRef | None = None
        if raw_uid is not None:
            parsed = cls.create_from_string(
                raw_uid,
                default_lang=obj_lang or default_lang,
                suids=suids,
                default_pali_author=default_pali_author,
            )

        author = _last_str(obj, "author", "translator", "author_uid")
        return cls(
            sutta_uid=parsed.sutta_uid if parsed else "",
            lang=obj_lang or (parsed.lang if parsed else default_lang),
            author=author if author is not None else (parsed.author if parsed else None),
            segnum=_last_str(obj, "segnum") or (parsed.segnum if parsed else None),
            scid=_last_str(obj, "scid") or (parsed.scid if parsed else ""),
        )

    @classmethod
    def create_with_error(
        cls,
        value: Any,
        *,
        default_lang: str = DEFAULT_LANG,
        suids: Sequence[str] | None = None,
        default_pali_author: str = DEFAULT_PALI_AUTHOR,
    ) -> SuttaRef:
        """Create from a string, a mapping or another SuttaRef (copied)."""
        if isinstance(value, SuttaRef):
            return replace(value)
        if isinstance(value, str):
            return cls.create_from_string(
                value, default_lang=default_lang, suids=suids, default_pali_author=default_pali_author
            )
        if isinstance(value, Mapping):
            return cls.create_from_object(
                value, default_lang=default_lang, suids=suids, default_pali_author=default_pali_author
            )
        raise InvalidInputError(f"Cannot parse {type(value).__name__}")

    @classmethod
    def create(
        cls,
        value: Any,
        *,
        default_lang: str = DEFAULT_LANG,
        suids: Sequence[str] | None = None,
        default_pali_author: str = DEFAULT_PALI_AUTHOR,
    ) -> SuttaRef | None:
        """Like :meth:`create_with_error` but returns None for bad input."""
        if value is None:
            return None
        try:
            return cls.create_with_error(
                value, default_lang=default_lang, suids=suids, default_pali_author=default_pali_author
            )
        except SuttaSearchError as exc:
            logger.debug("Unresolvable sutta reference %r: %s", value, exc)
            return None


class ReferenceResolver:
    """Resolve references against an explicitly supplied canonical id table.

    The table comes from ``suids`` (already sorted), from ``suid_map`` or from
    ``settings.suid_map_path``. With no table, references are only format
    checked.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        suids: Sequence[str] | None = None,
        suid_map: SuidMap | None = None,
        manifest: DatabaseManifest | None = None,
    ) -> None:
        self._settings = settings or Settings()
        if suid_map is None and self._settings.suid_map_path is not None:
            suid_map = load_suid_map(self._settings.suid_map_path)
        if manifest is None and self._settings.manifest_path is not None:
            manifest = DatabaseManifest.load(self._settings.manifest_path)
        self._suid_map: SuidMap = suid_map or {}
        self._suids: list[str] = list(suids) if suids is not None else sorted_suids(self._suid_map)
        self._manifest = manifest

    @property
    def suids(self) -> list[str]:
        return list(self._suids)

    @property
    def manifest(self) -> DatabaseManifest | None:
        return self._manifest

    def default_author(self, lang: str) -> str | None:
        """Most comprehensive installed author for ``lang``, per the manifest."""
        if self._manifest is None:
            return None
        info = self._manifest.default_author_for_language(lang)
        return info.author if info else None

    def resolve(self, reference: Any, *, default_lang: str | None = None, normalize: bool = False) -> SuttaRef:
        """Resolve a string, mapping or SuttaRef.

        With ``normalize`` a missing author is filled in from the manifest.

        Raises:
            SuttaRefError: when the reference cannot be resolved.
        """
        ref = SuttaRef.create_with_error(
            reference,
            default_lang=default_lang or self._settings.default_language,
            suids=self._suids,
            default_pali_author=self._settings.default_pali_author,
        )
        if normalize and ref.author is None:
            author = self.default_author(ref.lang)
            if author:
                ref = replace(ref, author=author)
        return ref

    def try_resolve(
        self, reference: Any, *, default_lang: str | None = None, normalize: bool = False
    ) -> SuttaRef | None:
        if reference is None:
            return None
        try:
            return self.resolve(reference, default_lang=default_lang, normalize=normalize)
        except SuttaSearchError as exc:
            logger.debug("Unresolvable sutta reference %r: %s", reference, exc)
            return None

    def exists(self, ref: SuttaRef) -> bool:
        """True if the suid map lists the reference's sutta for its language and author."""
        return ref.exists(self._suid_map, default_author=self.default_author(ref.lang))
