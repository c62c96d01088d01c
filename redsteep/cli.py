"""
Redsteep CLI
=============

Command-line interface for verifying tokens and inspecting the ledger.

Usage:
    redsteep verify eyJ0IjoiUkVEU1RFRVAtREVNTyIs... --now 2026-01-01
    redsteep tokens --status active
    redsteep encode --id MED-001 --batch B456789
    redsteep decode eyJ0IjoiUkVEU1RFRVAtREVNTyIs...
    redsteep validate --input ledger.json
    redsteep export-schemas --output-dir schemas

Exit codes: 0 success / accepted, 1 usage or input error, 2 rejected.
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import date, datetime, timezone
from pathlib import Path

from redsteep.config import get_config
from redsteep.utils import generate_run_id, setup_logging


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(
        prog="redsteep",
        description="Redsteep: batch authenticity verification against a reference ledger",
    )
    parser.add_argument("--config", type=str, default=None, help="Path to config YAML")
    parser.add_argument("--ledger", type=str, default=None, help="Ledger JSON/YAML file")
    parser.add_argument("--verbose", "-v", action="store_true")

    # Also accepted after the subcommand; SUPPRESS keeps the top-level value
    # when the subcommand form is not given.
    ledger_parent = argparse.ArgumentParser(add_help=False)
    ledger_parent.add_argument(
        "--ledger", type=str, default=argparse.SUPPRESS, help="Ledger JSON/YAML file",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # ── verify ──────────────────────────────────────────────────
    verify_parser = subparsers.add_parser(
        "verify", parents=[ledger_parent], help="Verify scanned tokens",
    )
    verify_parser.add_argument("tokens", nargs="+", help="Token string(s)")
    verify_parser.add_argument(
        "--now", type=str, default=None,
        help="Evaluation time (ISO date or datetime); defaults to current UTC time",
    )
    verify_parser.add_argument("--json", action="store_true", help="Print outcomes as JSON")

    # ── tokens ──────────────────────────────────────────────────
    tokens_parser = subparsers.add_parser(
        "tokens", parents=[ledger_parent], help="List ledger records with their tokens",
    )
    tokens_parser.add_argument("--query", default="", help="Filter by name, id, or batch")
    tokens_parser.add_argument("--status", choices=["active", "recalled"], default=None)

    # ── encode ──────────────────────────────────────────────────
    encode_parser = subparsers.add_parser(
        "encode", parents=[ledger_parent], help="Encode a token",
    )
    encode_parser.add_argument("--id", required=True)
    encode_parser.add_argument("--batch", required=True)
    encode_parser.add_argument(
        "--checksum", default=None,
        help="Checksum to embed; looked up on the ledger when omitted",
    )

    # ── decode ──────────────────────────────────────────────────
    decode_parser = subparsers.add_parser("decode", help="Syntactic token check")
    decode_parser.add_argument("token")

    # ── validate ────────────────────────────────────────────────
    validate_parser = subparsers.add_parser("validate", help="Validate a ledger file")
    validate_parser.add_argument("--input", required=True, help="Ledger JSON/YAML file")

    # ── export-schemas ──────────────────────────────────────────
    schema_parser = subparsers.add_parser("export-schemas", help="Export JSON schemas")
    schema_parser.add_argument("--output-dir", default="schemas")

    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # argparse exits 2 on usage errors, which is reserved for rejections
        if e.code == 2:
            sys.exit(1)
        raise

    config = get_config(args.config)
    if args.ledger:
        config.ledger.path = Path(args.ledger)
    setup_logging(
        level="DEBUG" if args.verbose else config.log_level,
        format_style=config.log_format,
        run_id=generate_run_id() if args.verbose else None,
    )

    commands = {
        "verify": cmd_verify,
        "tokens": cmd_tokens,
        "encode": cmd_encode,
        "decode": cmd_decode,
        "validate": cmd_validate,
        "export-schemas": cmd_export_schemas,
    }
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)
    handler(args, config)


def parse_now(value: str | None) -> datetime | date:
    """Parse --now: a bare date, an ISO datetime, or current UTC time."""
    if value is None:
        return datetime.now(timezone.utc)
    if "T" in value or " " in value:
        # fromisoformat only accepts a "Z" suffix from Python 3.11
        if value.endswith(("Z", "z")):
            value = value[:-1] + "+00:00"
        return datetime.fromisoformat(value)
    return date.fromisoformat(value)


def load_ledger_or_exit(config):
    """Index the configured ledger, exiting with status 1 if it cannot be loaded."""
    import yaml

    from redsteep.ledger.index import LedgerIndex

    try:
        return LedgerIndex.from_config(config)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        sys.exit(1)
    except (ValueError, yaml.YAMLError) as e:
        # pydantic.ValidationError is a ValueError
        print(f"Error: cannot load ledger: {e}")
        sys.exit(1)


def cmd_verify(args, config):
    """Verify one or more tokens."""
    from redsteep.codec.token import TokenCodec
    from redsteep.pipeline import VerificationPipeline
    from redsteep.rules.evaluator import RuleEvaluator

    try:
        now = parse_now(args.now)
    except ValueError:
        print(f"Error: cannot parse --now {args.now!r}")
        sys.exit(1)

    pipeline = VerificationPipeline(
        load_ledger_or_exit(config),
        codec=TokenCodec.from_config(config),
        evaluator=RuleEvaluator.from_config(config),
        max_workers=config.verification.max_workers,
    )
    outcomes = [pipeline.verify(token, now) for token in args.tokens]

    if args.json:
        print(json.dumps([o.model_dump(mode="json") for o in outcomes], indent=2))
    else:
        for outcome in outcomes:
            icon = "✅" if outcome.ok else "❌"
            print(f"{icon} {outcome.message}")
            if outcome.record is not None:
                r = outcome.record
                print(f"   {r.name} | {r.id} / {r.batch} | exp {r.exp} | {r.status.value}")
                print(f"   {r.manufacturer} → {r.supplier} → {r.shop}")
            if outcome.duplicate:
                print("   ⚠️  Duplicate scan: this code has been presented before.")

    if not all(o.ok for o in outcomes):
        sys.exit(2)


def cmd_tokens(args, config):
    """List ledger records with the token each would carry."""
    from redsteep.codec.token import TokenCodec
    from redsteep.schemas.record import RecordStatus

    ledger = load_ledger_or_exit(config)
    codec = TokenCodec.from_config(config)
    status = RecordStatus(args.status) if args.status else None

    rows = ledger.search(args.query, status=status)
    for r in rows:
        print(f"{r.id:<10} {r.batch:<10} {r.status.value:<9} {r.name}")
        print(f"  {codec.encode(r)}")
    print(f"\n{len(rows)} of {len(ledger)} records")


def cmd_encode(args, config):
    """Encode a token from explicit fields or a ledger entry."""
    from redsteep.codec.token import TokenCodec
    from redsteep.schemas.claim import Claim

    codec = TokenCodec.from_config(config)
    if args.checksum is not None:
        claim = Claim(tag=codec.marker, id=args.id, batch=args.batch, checksum=args.checksum)
        print(codec.encode(claim))
        return

    record = load_ledger_or_exit(config).get(args.id, args.batch)
    if record is None:
        print(f"Error: no ledger entry for {args.id} / {args.batch}")
        sys.exit(1)
    print(codec.encode(record))


def cmd_decode(args, config):
    """Decode a token without consulting the ledger."""
    from redsteep.codec.token import TokenCodec
    from redsteep.schemas.claim import DecodeFailure

    result = TokenCodec.from_config(config).decode(args.token.strip())
    if isinstance(result, DecodeFailure):
        print(f"Decode FAILED: {result.error.value}: {result.detail}")
        sys.exit(1)
    print(json.dumps(result.to_payload(), indent=2, ensure_ascii=False))
    print("Well-formed claim (authenticity requires a ledger match).")


def cmd_validate(args, config):
    """Validate a ledger file."""
    import yaml

    from redsteep.ledger.validator import validate_ledger

    path = Path(args.input)
    if not path.is_file():
        print(f"Error: {path} not found")
        sys.exit(1)

    with open(path, encoding="utf-8") as f:
        try:
            if path.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
        except (ValueError, yaml.YAMLError) as e:
            print(f"Validation FAILED: cannot parse {path}: {e}")
            sys.exit(1)

    errors = validate_ledger(data)
    if errors:
        print(f"Validation FAILED: {len(errors)} errors")
        for err in errors:
            print(f"  - {err}")
        sys.exit(1)
    print("Validation PASSED ✅")


def cmd_export_schemas(args, config):
    """Export JSON schemas for all data contracts."""
    from redsteep.ledger.validator import export_all_schemas

    paths = export_all_schemas(args.output_dir)
    for path in paths:
        print(f"Exported: {path}")
    print(f"\n{len(paths)} schemas exported to {args.output_dir}/")


if __name__ == "__main__":
    main()
