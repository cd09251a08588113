#!/usr/bin/env python3
"""
Decode and validate an ACES XML document.

Usage:
    python import_document.py --file data/aces_42.xml
    python import_document.py --file data/aces_42.xml --reference-dir data/autocare --json
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from aces_core.config import settings
from aces_core.db import load_configured_store
from aces_core.errors import DecodeError
from aces_core.services.document_decoder import decode_document
from aces_core.services.validator import validate_batch


async def run(filepath: str, reference_dir: str | None, sqlite_path: str | None, as_json: bool) -> int:
    path = Path(filepath)
    if not path.exists():
        print(f"Error: file not found: {path}")
        return 2

    try:
        result = decode_document(path.read_bytes())
    except DecodeError as e:
        print(f"Error: {e.message}")
        return 2

    store = await load_configured_store(
        reference_dir or settings.reference_data_dir,
        sqlite_path or settings.reference_sqlite_path,
    )
    report = validate_batch(store, result.applications)

    if as_json:
        body = result.as_dict()
        body["validation"] = report.as_dict()
        print(json.dumps(body, indent=2))
    else:
        print(f"ACES {result.version.value}: {result.app_count} App elements")
        print(f"  decoded: {len(result.applications)}  decode errors: {len(result.errors)}")
        print(f"  assets: {result.asset_count}  digital files: {result.digital_file_count}")
        for error in result.errors:
            print(f"  ! App {error.source_id}: {error.message}")
        for warning in result.warnings:
            print(f"  ~ {warning}")
        print(f"  valid: {len(report.valid)}  invalid: {len(report.invalid)}")
        for item in report.invalid:
            label = item.application.id or f"#{item.index + 1}"
            for reason in item.outcome.reasons:
                print(f"  x App {label}: {reason}")

    return 0 if result.success and not report.invalid else 1


def main():
    parser = argparse.ArgumentParser(description="Decode and validate an ACES XML document")
    parser.add_argument("--file", required=True, help="Path to the ACES XML document")
    parser.add_argument("--reference-dir", help="Directory holding VCdb/, PCdb/, Qdb/ table folders")
    parser.add_argument("--reference-sqlite", help="SQLite export of the reference databases")
    parser.add_argument("--json", action="store_true", help="Print the full report as JSON")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    sys.exit(asyncio.run(run(args.file, args.reference_dir, args.reference_sqlite, args.json)))


if __name__ == "__main__":
    main()
