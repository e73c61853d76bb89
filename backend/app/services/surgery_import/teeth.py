from __future__ import annotations

import re

__all__ = ["LOWER_ARCH", "UPPER_ARCH", "ToothSet", "expand_teeth"]

ToothSet = tuple[str, ...]

# FDI numbering, patient's right to left.
UPPER_ARCH: ToothSet = (
    "18", "17", "16", "15", "14", "13", "12", "11",
    "21", "22", "23", "24", "25", "26", "27", "28",
)
LOWER_ARCH: ToothSet = (
    "38", "37", "36", "35", "34", "33", "32", "31",
    "41", "42", "43", "44", "45", "46", "47", "48",
)

_ARCHES = (UPPER_ARCH, LOWER_ARCH)
_WHITESPACE_RE = re.compile(r"\s+", re.UNICODE)
_TOOTH_MARKER = "#"
_RANGE_SEPARATOR = "~"
_SEGMENT_SEPARATOR = ","


def _strip_marker(value: str) -> str:
    return value.replace(_TOOTH_MARKER, "", 1).strip()


def _expand_range(start: str, end: str) -> list[str]:
    for arch in _ARCHES:
        if start in arch and end in arch:
            start_idx = arch.index(start)
            end_idx = arch.index(end)
            return list(arch[min(start_idx, end_idx) : max(start_idx, end_idx) + 1])
    return []


def expand_teeth(raw: str | None) -> ToothSet:
    """Expand ``"#35~37, 46"`` style notation into individual tooth numbers.

    Ranges resolve against the arch orderings; a range whose endpoints are
    not both on the same arch contributes nothing. Single teeth are kept
    as written, even when they are not on either arch. The result keeps
    first-seen order without duplicates.
    """
    if not raw:
        return ()
    seen: dict[str, None] = {}
    for segment in _WHITESPACE_RE.sub("", raw).split(_SEGMENT_SEPARATOR):
        if _RANGE_SEPARATOR in segment:
            parts = [_strip_marker(part) for part in segment.split(_RANGE_SEPARATOR)]
            for tooth in _expand_range(parts[0], parts[1]):
                seen.setdefault(tooth, None)
            continue
        tooth = _strip_marker(segment)
        if tooth:
            seen.setdefault(tooth, None)
    return tuple(seen)
