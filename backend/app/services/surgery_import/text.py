from __future__ import annotations

from datetime import date, datetime

__all__ = ["cell_text", "format_sheet_date", "normalize"]

_FULLWIDTH_FIRST = 0xFF01
_FULLWIDTH_LAST = 0xFF5E
_FULLWIDTH_OFFSET = 0xFEE0
_IDEOGRAPHIC_SPACE = "　"

_HALF_WIDTH_TABLE = {
    code: code - _FULLWIDTH_OFFSET for code in range(_FULLWIDTH_FIRST, _FULLWIDTH_LAST + 1)
}
_HALF_WIDTH_TABLE[ord(_IDEOGRAPHIC_SPACE)] = ord(" ")


def normalize(text: str | None) -> str:
    """Fold full-width ASCII variants (and the ideographic space) to half-width.

    ``"［GBR Only］"`` becomes ``"[GBR Only]"``. Already-folded text is
    returned unchanged.
    """
    if not text:
        return ""
    return text.translate(_HALF_WIDTH_TABLE)


def cell_text(value: object) -> str:
    if value is None:
        return ""
    return str(value)


def format_sheet_date(value: object) -> str:
    """Render a date cell as ``YYYY-MM-DD``; text cells pass through untouched."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        return value
    return ""
