from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from app.core.settings import settings
from app.db.session import SessionLocal
from app.services.surgery_import.importer import import_surgery_upload
from app.services.surgery_import.suppliers import load_vendor_aliases


def _parse_existing_path(value: str) -> Path:
    path = Path(value)
    if not path.is_file():
        raise argparse.ArgumentTypeError(f"File not found: {value}")
    return path


def _parse_branch(value: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise argparse.ArgumentTypeError("Branch name must not be empty.")
    return cleaned


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Import surgery and insurance workbooks into the material ledger."
    )
    parser.add_argument(
        "--branch",
        required=True,
        type=_parse_branch,
        help="Clinic branch the workbooks belong to.",
    )
    parser.add_argument(
        "--surgery-file",
        type=_parse_existing_path,
        default=None,
        help="Workbook containing the surgery sheet.",
    )
    parser.add_argument(
        "--insurance-file",
        type=_parse_existing_path,
        default=None,
        help="Workbook containing the insured-implant sheet.",
    )
    parser.add_argument(
        "--surgery-sheet",
        default=settings.surgery_sheet_name,
        help=f"Surgery sheet name (default: {settings.surgery_sheet_name}).",
    )
    parser.add_argument(
        "--insurance-sheet",
        default=settings.insurance_sheet_name,
        help=f"Insurance sheet name (default: {settings.insurance_sheet_name}).",
    )
    parser.add_argument(
        "--aliases-file",
        type=_parse_existing_path,
        default=settings.vendor_aliases_path,
        help="JSON vendor alias table (default: VENDOR_ALIASES_PATH or built-in).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and report without writing to the database.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log every skipped row.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.surgery_file is None and args.insurance_file is None:
        parser.error("Provide --surgery-file and/or --insurance-file.")

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    session = SessionLocal()
    try:
        result = import_surgery_upload(
            session,
            args.branch,
            surgery_workbook=args.surgery_file,
            insurance_workbook=args.insurance_file,
            surgery_sheet_name=args.surgery_sheet,
            insurance_sheet_name=args.insurance_sheet,
            aliases=load_vendor_aliases(args.aliases_file),
            dry_run=args.dry_run,
        )
        if args.dry_run:
            session.rollback()
        else:
            session.commit()
    finally:
        session.close()

    print(json.dumps(result.as_dict(), indent=2, sort_keys=True, ensure_ascii=False))
    return 0 if result.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
