"""CLI entry point for offline form checks and record export.

Usage:
    python -m intake validate draft.json
    python -m intake normalize draft.json --output record.json
    python -m intake export records.json --output estudiantes.xlsx
    python -m intake export --from-api --output estudiantes.csv
    python -m intake options

Draft files are either a saved draft (``{"step": ..., "values": {...}}``) or
a flat ``{field_id: value}`` mapping. Without a file argument the saved draft
in the configured draft directory is used. Option lists come from the bundled
catalog unless ``--from-api`` is given.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from intake.form.catalog import option_lists
from intake.form.engine import DependencyEngine, UppercaseListener
from intake.form.messages import describe
from intake.form.models.form_state import FormStateStore
from intake.form.normalizer import NormalizationResult, SubmissionNormalizer
from intake.form.settings import get_settings
from intake.form.steps import STEPS
from intake.lib.api import StudentApiClient
from intake.lib.drafts import DraftStore
from intake.lib.env import load_env_file
from intake.lib.errors import IntakeError
from intake.lib.export import export_records
from intake.lib.logging import setup_logging
from intake.lib.validators import ValidationIssue, format_validation_report

logger = logging.getLogger(__name__)


def load_draft_values(path: Path) -> tuple[Dict[str, Any], List[str]]:
    """Read field values (and touched ids, if any) from a draft file."""
    document = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(document, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    if isinstance(document.get("values"), dict):
        return document["values"], list(document.get("touched", []))
    return document, []


def resolve_draft_path(draft: Optional[Path]) -> Path:
    """The given draft file, or the saved draft from the configured draft directory."""
    if draft is not None:
        return draft
    return DraftStore.from_settings(get_settings()).path


def fetch_options(from_api: bool) -> Dict[str, List[str]]:
    if not from_api:
        return option_lists()
    with StudentApiClient.from_settings(get_settings()) as client:
        return client.get_enumerated_options()


def build_store(values: Dict[str, Any], options: Dict[str, List[str]]) -> FormStateStore:
    """Restore values into a fresh store and settle every dependency."""
    store = FormStateStore()
    store.restore(values)
    UppercaseListener(store).normalize()
    engine = DependencyEngine(store, options=options)
    engine.refresh()
    store.mark_touched(store.schema.ids)
    return store


def collect_issues(store: FormStateStore) -> List[ValidationIssue]:
    issues = []
    for step in STEPS:
        for field_id in step.field_ids:
            errors = store.errors_for(field_id)
            if errors:
                label = f"{step.title} / {store.schema[field_id].label}"
                issues.append(ValidationIssue.error(label, describe(errors[0])))
    return issues


def validate_command(draft: Optional[Path], from_api: bool) -> int:
    """Validate a draft against every field rule. Returns an exit code."""
    draft = resolve_draft_path(draft)
    values, _ = load_draft_values(draft)
    store = build_store(values, fetch_options(from_api))
    issues = collect_issues(store)

    print()
    print("=" * 60)
    print(f"FORM VALIDATION: {draft}")
    print("=" * 60)
    print(format_validation_report(issues))
    print("=" * 60)

    if issues:
        print("RESULT: FAILED - Fix errors above before submitting")
        return 1
    print("RESULT: PASSED - Form is ready to submit")
    return 0


def normalize_command(draft: Optional[Path], output: Optional[Path], from_api: bool) -> int:
    """Print (or write) the canonical record for a draft."""
    draft = resolve_draft_path(draft)
    values, _ = load_draft_values(draft)
    store = build_store(values, fetch_options(from_api))
    result: NormalizationResult = SubmissionNormalizer().normalize(store.snapshot())

    if result.warnings:
        print(format_validation_report(result.warnings), file=sys.stderr)

    text = json.dumps(result.record, indent=2, ensure_ascii=False)
    if output:
        output.write_text(text + "\n", encoding="utf-8")
        print(f"Wrote canonical record to {output}")
    else:
        print(text)
    return 0


def export_command(records_file: Optional[Path], from_api: bool, output: Path) -> int:
    """Export canonical records to a spreadsheet."""
    if from_api:
        with StudentApiClient.from_settings(get_settings()) as client:
            records = client.list_records()
    elif records_file is not None:
        records = json.loads(records_file.read_text(encoding="utf-8"))
        if isinstance(records, dict):
            records = [records]
    else:
        print("Error: Provide a records file or --from-api")
        return 1

    path = export_records(records, output)
    print(f"Exported {len(records)} record(s) to {path}")
    return 0


def options_command(from_api: bool) -> int:
    """List option categories and their codes."""
    options = fetch_options(from_api)
    width = max((len(c) for c in options), default=10)

    print(f"  {'Category':<{width}}  Codes")
    print(f"  {'-' * width}  {'-' * 40}")
    for category in sorted(options):
        print(f"  {category:<{width}}  {', '.join(options[category])}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="student-intake",
        description="Validate, normalize and export student registration records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Check the saved draft against every field rule
    python -m intake validate

    # Produce the canonical record the backend receives
    python -m intake normalize draft.json --output record.json

    # Export submitted records with legacy numeric codes
    python -m intake export --from-api --output estudiantes.xlsx
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "--json-log",
        action="store_true",
        help="Output logs in JSON format (for log aggregation systems)",
    )
    parser.add_argument("--log-file", help="Write logs to a file in addition to console")
    parser.add_argument("--env-file", help="Load environment variables from this .env file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    validate_parser = subparsers.add_parser("validate", help="Validate a draft file")
    validate_parser.add_argument("draft", nargs="?", type=Path, help="Draft file (default: the saved draft)")
    validate_parser.add_argument("--from-api", action="store_true", help="Use live option lists")

    normalize_parser = subparsers.add_parser("normalize", help="Print the canonical record")
    normalize_parser.add_argument("draft", nargs="?", type=Path, help="Draft file (default: the saved draft)")
    normalize_parser.add_argument("--output", type=Path, help="Write the record to this file")
    normalize_parser.add_argument("--from-api", action="store_true", help="Use live option lists")

    export_parser = subparsers.add_parser("export", help="Export records to .xlsx or .csv")
    export_parser.add_argument("records", nargs="?", type=Path, help="JSON file of records")
    export_parser.add_argument("--from-api", action="store_true", help="Fetch records from the API")
    export_parser.add_argument("--output", type=Path, required=True, help="Target .xlsx or .csv")

    options_parser = subparsers.add_parser("options", help="List option categories")
    options_parser.add_argument("--from-api", action="store_true", help="Fetch from the API")

    args = parser.parse_args(argv)

    if args.env_file:
        load_env_file(args.env_file)
    setup_logging(verbose=args.verbose, json_format=args.json_log, log_file=args.log_file)

    try:
        if args.command == "validate":
            return validate_command(args.draft, args.from_api)
        if args.command == "normalize":
            return normalize_command(args.draft, args.output, args.from_api)
        if args.command == "export":
            return export_command(args.records, args.from_api, args.output)
        return options_command(args.from_api)
    except IntakeError as e:
        print(f"Error: {e.message}")
        if e.suggestion:
            print(f"  Fix: {e.suggestion}")
        return 1
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
