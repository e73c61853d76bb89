from __future__ import annotations

import json
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import NamedTuple, Sequence

__all__ = [
    "BONE_GRAFT_UNASSIGNED_SUPPLIER",
    "DEFAULT_VENDOR_ALIASES",
    "GBR_ONLY_MARKER",
    "GBR_ONLY_SUPPLIER",
    "INSURANCE_SUPPLIER",
    "Classification",
    "VendorAlias",
    "bone_graft_supplier",
    "classify_supplier",
    "determine_supplier",
    "extract_product_name",
    "load_vendor_aliases",
    "rewrite_size_notation",
]

INSURANCE_SUPPLIER = "보험"
GBR_ONLY_SUPPLIER = "GBR Only"
GBR_ONLY_MARKER = "[GBR Only]"
BONE_GRAFT_UNASSIGNED_SUPPLIER = "기타/미지정"

_VENDOR_SEPARATOR = " - "
_PRODUCT_TERMINATOR = "/"
_SIZE_RE = re.compile(r"[ΦØ]\s*([0-9]+\.?[0-9]*)\s*[*×x]\s*([0-9]+\.?[0-9]*)")


class VendorAlias(NamedTuple):
    pattern: str
    supplier: str


# Order matters: the first pattern found in the note wins.
DEFAULT_VENDOR_ALIASES: tuple[VendorAlias, ...] = (
    VendorAlias("IZENOSS", "IZEN"),
    VendorAlias("TITAN BONE", "비오케이"),
    VendorAlias("Allobone", "씨지바이오"),
    VendorAlias("PUREROS", "푸어로스"),
    VendorAlias("이젠임플란트(주)", "주식회사 메타약품_의료기기팀"),
    VendorAlias("IZEN", "주식회사 메타약품_의료기기팀"),
    VendorAlias("PLAN", "주식회사 메타약품_의료기기팀"),
    VendorAlias("OSSTEM", "오스템임플란트 주식회사"),
    VendorAlias("메가젠", "(주)메가젠임플란트"),
    VendorAlias("Megagen", "(주)메가젠임플란트"),
    VendorAlias("Straumann", "스트라우만"),
)


@dataclass(frozen=True)
class Classification:
    supplier: str
    product_name: str
    is_gbr_only: bool = False


def load_vendor_aliases(path: Path | None) -> tuple[VendorAlias, ...]:
    """Read an ordered alias table from JSON, or return the built-in table.

    The file holds a list whose items are either ``[pattern, supplier]``
    pairs or ``{"pattern": ..., "supplier": ...}`` objects. List order is
    match order.
    """
    if path is None:
        return DEFAULT_VENDOR_ALIASES
    raw = Path(path).read_text(encoding="utf-8")
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON list.")
    aliases: list[VendorAlias] = []
    for index, item in enumerate(data):
        if isinstance(item, dict):
            pattern, supplier = item.get("pattern"), item.get("supplier")
        elif isinstance(item, list) and len(item) == 2:
            pattern, supplier = item
        else:
            raise ValueError(f"{path}: entry {index} must be a pair or an object.")
        if not isinstance(pattern, str) or not pattern or not isinstance(supplier, str):
            raise ValueError(f"{path}: entry {index} needs a non-empty pattern and a supplier.")
        aliases.append(VendorAlias(pattern, supplier))
    return tuple(aliases)


def determine_supplier(note: str, aliases: Sequence[VendorAlias] = DEFAULT_VENDOR_ALIASES) -> str:
    for alias in aliases:
        if alias.pattern in note:
            return alias.supplier
    vendor_key = note.split(_VENDOR_SEPARATOR, 1)[0].strip()
    for alias in aliases:
        if alias.pattern == vendor_key:
            return alias.supplier
    return vendor_key


def rewrite_size_notation(product_name: str) -> str:
    """``"IZENOSS Φ5.0×10"`` -> ``"IZENOSS 5010"`` (diameter x10, length padded)."""
    match = _SIZE_RE.search(product_name)
    if match is None:
        return product_name
    diameter = (Decimal(match.group(1)) * 10).to_integral_value(rounding=ROUND_HALF_UP)
    length = int(Decimal(match.group(2)))
    code = f"{int(diameter)}{length:02d}"
    rest = product_name.replace(match.group(0), "", 1).strip()
    # A bare size yields just the code, with no leading space.
    return f"{rest} {code}" if rest else code


def extract_product_name(note: str) -> str:
    product_part = note.split(_PRODUCT_TERMINATOR, 1)[0].strip()
    if _VENDOR_SEPARATOR in product_part:
        product_part = product_part.split(_VENDOR_SEPARATOR, 1)[1].strip()
    return rewrite_size_notation(product_part)


def classify_supplier(
    note: str,
    *,
    is_insurance: bool,
    aliases: Sequence[VendorAlias] = DEFAULT_VENDOR_ALIASES,
) -> Classification:
    """Resolve the supplier and product for an already-normalized implant note."""
    product_name = extract_product_name(note)
    if is_insurance:
        return Classification(supplier=INSURANCE_SUPPLIER, product_name=product_name)
    if GBR_ONLY_MARKER in note:
        return Classification(
            supplier=GBR_ONLY_SUPPLIER,
            product_name=product_name,
            is_gbr_only=True,
        )
    return Classification(supplier=determine_supplier(note, aliases), product_name=product_name)


def bone_graft_supplier(
    product_name: str, aliases: Sequence[VendorAlias] = DEFAULT_VENDOR_ALIASES
) -> str:
    upper = product_name.upper()
    for alias in aliases:
        if alias.pattern.upper() in upper:
            return alias.supplier
    return BONE_GRAFT_UNASSIGNED_SUPPLIER
