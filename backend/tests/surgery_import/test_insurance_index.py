from datetime import datetime

from app.services.surgery_import.insurance import (
    build_insurance_index,
    insurance_key,
    is_insured,
)
from app.services.surgery_import.sheet import InsuranceRow


def _row(row_number, patient, tooth, stage2, stage1=None, stage3=None, is_short=False):
    return InsuranceRow(
        row_number=row_number,
        patient_info=patient,
        tooth=tooth,
        stage1_date=stage1,
        stage2_date=stage2,
        stage3_date=stage3,
        is_short=is_short,
    )


def test_index_accumulates_in_sheet_order_with_duplicates():
    rows = [
        _row(2, "홍길동(12345)", "#36", datetime(2024, 3, 5)),
        _row(3, "홍길동 12345", "#46", datetime(2024, 3, 5)),
        _row(4, "홍길동(12345)", "#36", datetime(2024, 3, 5)),
        _row(5, "김철수(777)", "#11", datetime(2024, 3, 6)),
    ]
    index = build_insurance_index(rows)
    assert index == {
        "2024-03-05|12345": ["36", "46", "36"],
        "2024-03-06|777": ["11"],
    }


def test_only_stage2_date_is_used():
    rows = [_row(2, "홍길동(12345)", "#36", None, stage1=datetime(2024, 1, 1), stage3=datetime(2024, 6, 1))]
    assert build_insurance_index(rows) == {}


def test_rows_missing_tooth_or_short_are_skipped():
    rows = [
        _row(2, "홍길동(12345)", None, datetime(2024, 3, 5)),
        _row(3, "홍길동(12345)", "  # ", datetime(2024, 3, 5)),
        _row(4, "홍길동(12345)", "#36", datetime(2024, 3, 5), is_short=True),
    ]
    assert build_insurance_index(rows) == {}


def test_text_dates_are_used_verbatim():
    index = build_insurance_index([_row(2, "홍길동(12345)", "36", "2024.03.05")])
    assert index == {"2024.03.05|12345": ["36"]}
    assert not is_insured(index, "2024-03-05", "12345", ("36",))


def test_is_insured_needs_a_shared_tooth():
    index = {insurance_key("2024-03-05", "12345"): ["36", "46"]}
    assert is_insured(index, "2024-03-05", "12345", ("35", "36"))
    assert not is_insured(index, "2024-03-05", "12345", ("37",))
    assert not is_insured(index, "2024-03-06", "12345", ("36",))
