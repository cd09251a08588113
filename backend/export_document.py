#!/usr/bin/env python3
"""
Encode a JSON list of Applications into an ACES XML document.

Usage:
    python export_document.py --input data/applications.json --brand BBBB
    python export_document.py --input data/applications.json --brand BBBB --incremental --output aces.xml
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

sys.path.insert(0, str(Path(__file__).parent))

from aces_core.config import settings
from aces_core.db import load_configured_store
from aces_core.schemas.application import Application
from aces_core.schemas.document import ExportOptions, SchemaVersion, SubmissionType
from aces_core.services.document_encoder import encode_document
from aces_core.services.submission import export_applications


async def run(args) -> int:
    path = Path(args.input)
    if not path.exists():
        print(f"Error: file not found: {path}")
        return 2

    try:
        applications = TypeAdapter(list[Application]).validate_json(path.read_bytes())
    except ValidationError as e:
        print(f"Error: invalid applications file: {e}")
        return 2

    try:
        options = ExportOptions.from_settings(
            settings,
            brand_aaiaid=args.brand,
            sub_brand_aaiaid=args.sub_brand,
            submission_type=SubmissionType.INCREMENTAL if args.incremental else SubmissionType.FULL,
            minimum_version=SchemaVersion(args.min_version) if args.min_version else None,
            fill_qualifier_text=args.fill_qualifier_text,
        )
    except ValidationError as e:
        print(f"Error: invalid export options: {e}")
        return 2

    if args.skip_validation:
        document = encode_document(applications, options)
    else:
        store = await load_configured_store(
            args.reference_dir or settings.reference_data_dir,
            args.reference_sqlite or settings.reference_sqlite_path,
        )
        exported = export_applications(store, applications, options)
        for item in exported.report.invalid:
            label = item.application.id or f"#{item.index + 1}"
            print(f"  x App {label}: {'; '.join(item.outcome.reasons)}", file=sys.stderr)
        document = exported.document
        if document is None:
            print("Error: no valid applications to export", file=sys.stderr)
            return 1

    if args.output:
        Path(args.output).write_text(document.xml, encoding="utf-8")
        print(f"Wrote {document.record_count} applications (ACES {document.version.value}) to {args.output}")
    else:
        print(document.xml, end="")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Encode Applications (JSON) into ACES XML")
    parser.add_argument("--input", required=True, help="JSON file with a list of applications")
    parser.add_argument("--brand", required=True, help="Brand AAIA id for the header")
    parser.add_argument("--sub-brand", help="Sub-brand AAIA id")
    parser.add_argument("--incremental", action="store_true", help="Incremental submission (default FULL)")
    parser.add_argument("--min-version", choices=[v.value for v in SchemaVersion], help="Lowest version to emit")
    parser.add_argument("--output", help="Write XML here instead of stdout")
    parser.add_argument("--reference-dir", help="Directory holding VCdb/, PCdb/, Qdb/ table folders")
    parser.add_argument("--reference-sqlite", help="SQLite export of the reference databases")
    parser.add_argument("--skip-validation", action="store_true", help="Encode every application as given")
    parser.add_argument(
        "--fill-qualifier-text", action="store_true", help="Take missing qualifier text from the Qdb reference data"
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
