from __future__ import annotations

import re
from dataclasses import dataclass

__all__ = ["PatientIdentity", "first_digit_run", "split_patient_info"]

_FIRST_DIGIT_RE = re.compile(r"\d", re.ASCII)
_DIGIT_RUN_RE = re.compile(r"\d+", re.ASCII)
_PARENS_RE = re.compile(r"[()]")


@dataclass(frozen=True)
class PatientIdentity:
    name: str
    chart_number: str


def split_patient_info(raw: str | None) -> PatientIdentity:
    """Split ``"홍길동(12345)"`` into name and chart number at the first digit.

    A name that itself contains a digit splits early.
    """
    text = raw or ""
    match = _FIRST_DIGIT_RE.search(text)
    if match is None:
        return PatientIdentity(name=text, chart_number="")
    idx = match.start()
    return PatientIdentity(
        name=_PARENS_RE.sub("", text[:idx]).strip(),
        chart_number=_PARENS_RE.sub("", text[idx:]).strip(),
    )


def first_digit_run(raw: str | None) -> str:
    match = _DIGIT_RUN_RE.search(raw or "")
    return match.group(0) if match else ""
