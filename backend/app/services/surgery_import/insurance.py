from __future__ import annotations

from typing import Iterable

from app.services.surgery_import.patient import first_digit_run
from app.services.surgery_import.sheet import InsuranceRow
from app.services.surgery_import.text import cell_text, format_sheet_date

__all__ = ["InsuranceIndex", "build_insurance_index", "insurance_key", "is_insured"]

InsuranceIndex = dict[str, list[str]]


def insurance_key(date_text: str, chart_number: str) -> str:
    return f"{date_text}|{chart_number}"


def build_insurance_index(rows: Iterable[InsuranceRow]) -> InsuranceIndex:
    """Map ``"<stage-2 date>|<chart number>"`` to the insured teeth, in sheet order.

    Only the stage-2 date takes part in matching. Text dates are kept as
    written, so they only match surgery rows that use the same spelling.
    """
    index: InsuranceIndex = {}
    for row in rows:
        if row.is_short:
            continue
        tooth = cell_text(row.tooth).replace("#", "", 1).strip()
        if not row.stage2_date or not tooth:
            continue
        key = insurance_key(format_sheet_date(row.stage2_date), first_digit_run(cell_text(row.patient_info)))
        index.setdefault(key, []).append(tooth)
    return index


def is_insured(index: InsuranceIndex, date_text: str, chart_number: str, teeth: Iterable[str]) -> bool:
    insured = index.get(insurance_key(date_text, chart_number))
    if not insured:
        return False
    wanted = set(teeth)
    return any(tooth in wanted for tooth in insured)
