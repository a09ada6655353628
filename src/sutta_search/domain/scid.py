"""SuttaCentral identifier (SCID) algebra.

A SCID looks like ``mn1.1:2.3`` or ``an1.31-40/en/sujato``: a collection prefix,
a dot separated document path, an optional ``:`` segment path and an optional
``/lang/author`` suffix.  This module parses those identifiers, projects ranges
onto their low and high bounds, and provides the total ordering used for
sorting the canonical id table and for binary search over it.

Ordering rules worth knowing before touching the comparators:

- Prefixes (the text before the first digit) compare as plain strings.
- Numeric levels are flattened (document path then segment path) and compared
  element-wise.  A missing level behaves like 0 against a non-zero level, but a
  missing level against an explicit 0 makes the shorter id the smaller one.
- ``1a`` contributes ``[1, 1]`` and ``1^b`` contributes ``[1, -25]`` so that
  caret forms sort before the bare number.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from functools import cmp_to_key
import re
from typing import Any

from sutta_search.errors import PartNumberError, ScidError


_DIGITS_RE = re.compile(r"^[0-9]+$")
_LEADING_ALPHA_RE = re.compile(r"^[-a-z]*")
_RANGE_HIGH_STRIP_RE = re.compile(r"[0-9]+-")
_RANGE_LOW_STRIP_RE = re.compile(r"-[0-9]+")
_SUFFIX_RE = re.compile(r"/[^:]*")
_DOT_SPACE_RE = re.compile(r"\. *")
_PREFIX_SPACE_RE = re.compile(r"^([-a-z]+) ([0-9])")
_TEST_RE = re.compile(r"^[-a-z]+ ?[0-9]+[-0-9a-z.:/]*$", re.IGNORECASE)
_GRAMMAR_RE = re.compile(
    r"^(?P<prefix>[-a-z]+)"
    r"(?P<document>[0-9][-0-9a-z.^]*)"
    r"(?::(?P<segment>[0-9][-0-9a-z.^]*))?"
    r"(?:/(?P<suffix>[^\s]*))?$"
)

RANGE_HIGH_SENTINEL = "9999"

_STANDARD_FORMS = {
    "sn": "SN",
    "mn": "MN",
    "dn": "DN",
    "an": "AN",
    "thig": "Thig",
    "thag": "Thag",
}


def basename(path: str) -> str:
    """Return the last ``/`` component of a path."""
    return path.split("/")[-1]


def _has_digit(text: str) -> bool:
    return any(ch.isdigit() for ch in text)


def _scid_text(id_or_path: str) -> str:
    """Extract the bare scid from a scid, a suffixed scid or a bilara path.

    ``root/pli/ms/sutta/mn1_root-pli-ms.json`` yields ``mn1``; ``mn1.1/en/sujato``
    yields ``mn1.1`` because its basename carries no numbers.
    """
    parts = id_or_path.strip().lower().split("/")
    name = parts[-1].split("_")[0]
    if not _has_digit(name) and _has_digit(parts[0]):
        name = parts[0].split("_")[0]
    return name


def _prefix(scid: str) -> str:
    for index, char in enumerate(scid):
        if char.isdigit():
            return scid[:index]
    return scid


def _split_suffix(scid: str) -> tuple[str, str]:
    main, _, suffix = scid.partition("/")
    return main, suffix


def _join_suffix(main: str, suffix: str) -> str:
    return f"{main}/{suffix}" if suffix else main


def part_number(part: str, scid: str) -> list[int]:
    """Parse one numeric level into ``[value]`` or ``[value, letter_rank]``.

    ``"5"`` -> ``[5]``, ``"1a"`` -> ``[1, 1]``, ``"1^z"`` -> ``[1, -1]``.

    Raises:
        PartNumberError: when the level holds no usable number.
    """
    if _DIGITS_RE.match(part):
        return [int(part)]

    caret_parts = part.split("^")
    head = caret_parts[0]
    if len(caret_parts) == 1:
        digits = "".join(ch for ch in head if "0" <= ch <= "9")
        letters = "".join(ch for ch in head if ch.isascii() and ch.isalpha()).lower()
        if not digits:
            raise PartNumberError(part, scid)
        if letters:
            return [int(digits), ord(letters[0]) - ord("a") + 1]
        return [int(digits)]

    tail = caret_parts[1]
    if not _DIGITS_RE.match(head):
        raise PartNumberError(part, scid)
    if tail:
        return [int(head), ord(tail[0]) - ord("z") - 1]
    return [int(head)]


def _level_parts(id_or_path: str) -> list[str]:
    scid = _LEADING_ALPHA_RE.sub("", _scid_text(id_or_path), count=1)
    return [dot_part for colon_part in scid.split(":") for dot_part in colon_part.split(".")]


def scid_numbers_low(id_or_path: str) -> list[int]:
    """Flattened numeric levels using the low side of every ``lo-hi`` range."""
    numbers: list[int] = []
    for part in _level_parts(id_or_path):
        numbers.extend(part_number(part.split("-")[0], id_or_path))
    return numbers


def scid_numbers_high(id_or_path: str) -> list[int]:
    """Flattened numeric levels using the high side of every ``lo-hi`` range."""
    numbers: list[int] = []
    for part in _level_parts(id_or_path):
        numbers.extend(part_number(part.split("-")[-1], id_or_path))
    return numbers


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def _compare_levels(a_levels: list[int], b_levels: list[int]) -> int:
    for index in range(max(len(a_levels), len(b_levels))):
        a_value = a_levels[index] if index < len(a_levels) else None
        b_value = b_levels[index] if index < len(b_levels) else None
        if a_value == b_value:
            continue
        if a_value is None:
            return _sign(-b_value) if b_value != 0 else -1
        if b_value is None:
            return _sign(a_value) if a_value != 0 else 1
        return _sign(a_value - b_value)
    return 0


def _compare_prefixes(a_scid: str, b_scid: str) -> int:
    a_prefix = _prefix(a_scid)
    b_prefix = _prefix(b_scid)
    if a_prefix == b_prefix:
        return 0
    return -1 if a_prefix < b_prefix else 1


def compare_low(a: str, b: str) -> int:
    """Order two ids by their low bounds. Returns -1, 0 or 1."""
    cmp = _compare_prefixes(_scid_text(a), _scid_text(b))
    if cmp:
        return cmp
    return _compare_levels(scid_numbers_low(a), scid_numbers_low(b))


def compare_high(a: str, b: str) -> int:
    """Order two ids by their high bounds. Returns -1, 0 or 1."""
    cmp = _compare_prefixes(_scid_text(a), _scid_text(b))
    if cmp:
        return cmp
    return _compare_levels(scid_numbers_high(a), scid_numbers_high(b))


low_key: Callable[[str], Any] = cmp_to_key(compare_low)
high_key: Callable[[str], Any] = cmp_to_key(compare_high)


def range_low(scid: str) -> str:
    """Project an id onto its low bound: ``mn1-5`` -> ``mn1``, ``mn1.1-3/en`` -> ``mn1.1/en``."""
    main, suffix = _split_suffix(scid)
    low = _RANGE_LOW_STRIP_RE.sub("", main.split("--")[0])
    return _join_suffix(low, suffix)


def range_high(scid: str) -> str:
    """Project an id onto its high bound.

    ``mn1-5`` -> ``mn5``. Ids with a segment path get a trailing ``.9999``
    sentinel so that every sub-segment sorts inside the bound:
    ``mn1-5:1`` -> ``mn5:1.9999``.
    """
    main, suffix = _split_suffix(scid)
    ext_ranges = main.split("--")
    if len(ext_ranges) > 2:
        return _join_suffix(ext_ranges[-1], suffix)

    first_colon_parts = ext_ranges[0].split(":")
    second_colon_parts = ext_ranges[1].split(":") if len(ext_ranges) > 1 else []

    high = ext_ranges[-1]
    if second_colon_parts and len(first_colon_parts) > 1 and len(second_colon_parts) < 2:
        high = f"{first_colon_parts[0]}:{high}"

    high = _RANGE_HIGH_STRIP_RE.sub("", high)
    if len(first_colon_parts) > 1:
        high = f"{high}.{RANGE_HIGH_SENTINEL}"
    return _join_suffix(high, suffix)


def scid_regexp(pattern: str | None) -> re.Pattern[str]:
    """Compile a glob pattern (``*`` and ``?``) into a regular expression."""
    if not pattern:
        return re.compile(".*")
    translated = []
    for char in pattern:
        if char == "*":
            translated.append(".*")
        elif char == "?":
            translated.append(".")
        elif char in ".$^":
            translated.append(f"\\{char}")
        else:
            translated.append(char)
    return re.compile("".join(translated))


def _split_list(text: str) -> list[str]:
    return [part.strip() for part in text.lower().split(",")]


def test(text: str) -> bool:
    """Return True if every comma separated item looks like a scid."""
    return all(_TEST_RE.match(_DOT_SPACE_RE.sub(".", part)) for part in _split_list(text))


def languages(text: str) -> list[str]:
    """Collect the ``/lang`` component of each item, in first-seen order."""
    if not test(text):
        return []
    found: list[str] = []
    for part in _split_list(text):
        slash_parts = part.split("/")
        if len(slash_parts) < 2:
            continue
        lang = slash_parts[1]
        if lang not in found:
            found.append(lang)
    return found


def match(scid: str, pattern: str) -> bool:
    """True if the range of ``scid`` overlaps the range of ``pattern``.

    Comma separated patterns are OR'd. Glob patterns (``mn1.*``) are matched
    as regular expressions against the bare scid.
    """
    patterns = [part.strip() for part in pattern.split(",") if part.strip()]
    if len(patterns) != 1:
        return any(match(scid, part) for part in patterns)

    pattern = patterns[0]
    scid_id = scid if ":" in pattern else scid.split(":")[0]
    scid_pat = _SUFFIX_RE.sub("", pattern).replace(" ", "").lower()

    if "*" in scid_pat or "?" in scid_pat:
        return scid_regexp(scid_pat).fullmatch(_SUFFIX_RE.sub("", scid_id).lower()) is not None

    id_low = range_low(scid_id)
    id_high = range_high(scid_id)
    pat_low = range_low(scid_pat)
    pat_high = range_high(scid_pat)
    return compare_high(id_high, pat_low) >= 0 and compare_low(id_low, pat_high) <= 0


def normalize(text: str) -> str:
    """Lowercase, trim and collapse ``mn 1. 2`` into ``mn1.2``."""
    normalized = _DOT_SPACE_RE.sub(".", text.strip().lower())
    return _PREFIX_SPACE_RE.sub(r"\1\2", normalized)


def parse(text: str) -> SuttaCentralId:
    """Strictly parse user input into a SuttaCentralId.

    Raises:
        ScidError: when the text does not follow the scid grammar.
        PartNumberError: when a numeric level cannot be parsed.
    """
    if not isinstance(text, str):
        raise ScidError(f"scid must be a string, got {type(text).__name__}")
    scid = normalize(text)
    found = _GRAMMAR_RE.match(scid)
    if found is None:
        raise ScidError(f"invalid scid {text!r}")
    main = scid.split("/")[0]
    scid_numbers_low(main)
    scid_numbers_high(main)
    return SuttaCentralId(scid)


@dataclass(frozen=True)
class SuttaCentralId:
    """A SuttaCentral identifier such as ``mn1.1``, ``sn45.8:1.2`` or ``thig1.1``.

    Construction only checks that a string was given; use :func:`parse` to
    validate user input.
    """

    scid: str

    def __post_init__(self) -> None:
        if not isinstance(self.scid, str):
            raise ScidError(f"required scid:{self.scid!r}")

    def __str__(self) -> str:
        return self.scid

    @classmethod
    def parse(cls, text: str) -> SuttaCentralId:
        return parse(text)

    @property
    def sutta(self) -> str:
        """Document part, before the colon."""
        return self.scid.split(":")[0]

    @property
    def nikaya(self) -> str:
        """Collection prefix, e.g. ``mn`` or ``tha-ap``."""
        return _LEADING_ALPHA_RE.match(self.sutta).group(0)

    @property
    def groups(self) -> list[str] | None:
        """Segment levels after the colon, or None for document ids."""
        return self.segment_parts()

    @property
    def parent(self) -> SuttaCentralId | None:
        groups = self.groups
        if groups is None:
            return None
        last = groups.pop()
        if not last and groups:
            groups.pop()
        if not groups:
            return SuttaCentralId(f"{self.sutta}:")
        return SuttaCentralId(f"{self.sutta}:{'.'.join(groups)}.")

    @property
    def low(self) -> SuttaCentralId:
        return SuttaCentralId(range_low(self.scid))

    @property
    def high(self) -> SuttaCentralId:
        return SuttaCentralId(range_high(self.scid))

    def section_parts(self) -> list[str]:
        return self.sutta.split(".")

    def segment_parts(self) -> list[str] | None:
        parts = self.scid.split(":")
        if len(parts) < 2:
            return None
        return parts[1].split(".")

    def standard_form(self) -> str:
        """Canonical capitalization of the prefix: ``mn1.1`` -> ``MN1.1``."""
        nikaya = self.nikaya
        standard = _STANDARD_FORMS.get(nikaya)
        if standard is None:
            return self.scid
        return standard + self.scid[len(nikaya) :]

    def add(self, *increments: int) -> SuttaCentralId:
        """Add per-level increments to the segment path, or to the document path.

        Segment levels without an increment are reset to 0.

        Raises:
            ScidError: when the collection prefix cannot be determined.
        """
        nikaya = self.nikaya
        if not nikaya:
            raise ScidError(f"Cannot determine nikaya of {self.scid!r}")

        rest = self.scid[len(nikaya) :]
        colon_parts = rest.split(":")
        if len(colon_parts) > 1:
            levels = colon_parts[1].split(".")
            for index, level in enumerate(levels):
                if index < len(increments) and _DIGITS_RE.match(level):
                    levels[index] = str(int(level) + increments[index])
                else:
                    levels[index] = "0"
            rest = f"{colon_parts[0]}:{'.'.join(levels)}"
        else:
            levels = colon_parts[0].split(".")
            for index in range(min(len(increments), len(levels))):
                if _DIGITS_RE.match(levels[index]):
                    levels[index] = str(int(levels[index]) + increments[index])
            rest = ".".join(levels)

        return SuttaCentralId(f"{nikaya}{rest}")

    def match(self, pattern: str) -> bool:
        return match(self.scid, pattern)


def standard_form(scid: str) -> str:
    return SuttaCentralId(scid).standard_form()


def parent(scid: str) -> SuttaCentralId | None:
    return SuttaCentralId(scid).parent


def add(scid: str, *increments: int) -> SuttaCentralId:
    return SuttaCentralId(scid).add(*increments)


def sort_low(scids: Iterable[str]) -> list[str]:
    """Sort ids by low bound, the order the canonical id table is kept in."""
    return sorted(scids, key=low_key)
