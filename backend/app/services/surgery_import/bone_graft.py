from __future__ import annotations

import re

__all__ = ["BONE_GRAFT_MARKER", "extract_bone_graft_products"]

BONE_GRAFT_MARKER = "(동)"
_BONE_GRAFT_RE = re.compile(re.escape(BONE_GRAFT_MARKER) + r"\s*([^,/]+)")


def extract_bone_graft_products(note: str | None) -> dict[str, int]:
    """Count ``(동) <product>`` mentions, each name running to the next ``,`` or ``/``."""
    counts: dict[str, int] = {}
    for match in _BONE_GRAFT_RE.finditer(note or ""):
        name = match.group(1).strip()
        if name:
            counts[name] = counts.get(name, 0) + 1
    return counts
