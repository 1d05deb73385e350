"""Command-line interface for the invigilation allocation engine."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import asdict
from typing import Dict, List

from invigilation.config import EngineConfig, load_config
from invigilation.domain.db import get_session, init_database
from invigilation.domain.models import PENDING, Allocation
from invigilation.engine.generator import AllocationGenerator
from invigilation.engine.maintenance import (
    clear_day,
    clear_roster,
    faculty_allocations,
    reconcile_loads,
    schedule_history,
)
from invigilation.engine.reassign import ReassignmentService
from invigilation.errors import InvigilationError, StorageError, ValidationError
from invigilation.io.export_csv import export_day_csv
from invigilation.services.constraints import load_constraints, save_constraints


def _config(args: argparse.Namespace) -> EngineConfig:
    return load_config(args.config)


def _db_url(args: argparse.Namespace, cfg: EngineConfig) -> str:
    return args.db or cfg.database_url


def _print_allocations(rows: List[Allocation]) -> None:
    for row in rows:
        owner = row.invigilator.email if row.invigilator else "-"
        print(f"  {row.id:>5}  {row.date}  {row.slot:<3} {row.classroom_code:<10} {row.status:<9} {owner}")


def _parse_weights(pairs: List[str] | None) -> Dict[str, float]:
    weights: Dict[str, float] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValidationError(f"Expected KEY=WEIGHT, got {pair!r}")
        try:
            weights[key] = float(value)
        except ValueError as e:
            raise ValidationError(f"Weight for {key!r} must be numeric, got {value!r}") from e
    return weights


def _cmd_init_db(args: argparse.Namespace, cfg: EngineConfig) -> None:
    """Initialize the database."""
    db_url = _db_url(args, cfg)
    init_database(db_url)
    print(f"[OK] Database initialized: {db_url}")


def _cmd_generate(args: argparse.Namespace, cfg: EngineConfig) -> None:
    """Generate allocations for a date."""
    session = get_session(_db_url(args, cfg))
    try:
        rows = AllocationGenerator(session, cfg).generate(args.date)
        pending = sum(1 for r in rows if r.status == PENDING)
        _print_allocations(rows)
        if args.out:
            export_day_csv(session, args.out, args.date)
        print(f"[OK] Generated {len(rows)} allocations for {args.date} ({pending} pending)")
        if args.clear_roster:
            cleared = clear_roster(session)
            print(f"[OK] Cleared {cleared} roster entries")
    finally:
        session.close()


def _cmd_show(args: argparse.Namespace, cfg: EngineConfig) -> None:
    """Show allocations for a date or for one faculty member."""
    session = get_session(_db_url(args, cfg))
    try:
        if args.faculty is not None:
            rows = faculty_allocations(session, args.faculty)
            _print_allocations(rows)
            print(f"[OK] {len(rows)} allocations for faculty {args.faculty}")
        else:
            rows = AllocationGenerator(session, cfg).get_for_date(args.date)
            _print_allocations(rows)
            print(f"[OK] {len(rows)} allocations on {args.date}")
    finally:
        session.close()


def _cmd_reassign(args: argparse.Namespace, cfg: EngineConfig) -> None:
    """Reassign one allocation."""
    session = get_session(_db_url(args, cfg))
    try:
        alloc = ReassignmentService(session).reassign(args.allocation, args.to)
        print(f"[OK] Allocation {alloc.id} now assigned to faculty {alloc.invigilator_id}")
    finally:
        session.close()


def _cmd_clear_day(args: argparse.Namespace, cfg: EngineConfig) -> None:
    """Delete a date's allocations and adjust loads."""
    session = get_session(_db_url(args, cfg))
    try:
        result = clear_day(session, args.date)
        print(f"[OK] Deleted {result.deleted} allocations on {result.date}; adjusted {result.adjusted} faculty")
    finally:
        session.close()


def _cmd_reset_roster(args: argparse.Namespace, cfg: EngineConfig) -> None:
    """Delete the uploaded roster."""
    session = get_session(_db_url(args, cfg))
    try:
        cleared = clear_roster(session)
        print(f"[OK] Cleared {cleared} roster entries")
    finally:
        session.close()


def _cmd_reconcile(args: argparse.Namespace, cfg: EngineConfig) -> None:
    """Recompute workload counters from allocations."""
    session = get_session(_db_url(args, cfg))
    try:
        drift = reconcile_loads(session)
        for d in drift:
            print(f"  faculty {d.faculty_id}: load {d.stored_load} -> {d.actual_load}")
        print(f"[OK] Reconciled counters; {len(drift)} faculty corrected")
    finally:
        session.close()


def _cmd_history(args: argparse.Namespace, cfg: EngineConfig) -> None:
    """List dates with allocation counts."""
    session = get_session(_db_url(args, cfg))
    try:
        for date, count in schedule_history(session):
            print(f"  {date}  {count}")
    finally:
        session.close()


def _cmd_export(args: argparse.Namespace, cfg: EngineConfig) -> None:
    """Export a date's allocations to CSV."""
    session = get_session(_db_url(args, cfg))
    try:
        count = export_day_csv(session, args.out, args.date)
        print(f"[OK] Exported {count} allocations to {args.out}")
    finally:
        session.close()


def _cmd_set_constraints(args: argparse.Namespace, cfg: EngineConfig) -> None:
    """Update the global constraints."""
    session = get_session(_db_url(args, cfg))
    try:
        current = asdict(load_constraints(session, cfg.default_constraints))
        if args.max_hours_per_day is not None:
            current["max_hours_per_day"] = args.max_hours_per_day
        if args.no_same_day_repeat is not None:
            current["no_same_day_repeat"] = args.no_same_day_repeat
        current["department_weighting"].update(_parse_weights(args.department_weight))
        current["designation_weighting"].update(_parse_weights(args.designation_weight))
        saved = save_constraints(session, current)
        print(f"[OK] Constraints saved: {saved}")
    finally:
        session.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="invigilation",
        description="Invigilator-to-room allocation engine",
    )

    # Global options
    parser.add_argument("--db", help="Database URL (overrides the config file)")
    parser.add_argument("--config", help="Path to config YAML")

    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init-db", help="Initialize database")
    init.set_defaults(func=_cmd_init_db)

    gen = sub.add_parser("generate", help="Generate allocations for a date")
    gen.add_argument("--date", required=True, help="Date (YYYY-MM-DD)")
    gen.add_argument("--out", help="Optional: export allocations to CSV")
    gen.add_argument("--clear-roster", action="store_true", help="Delete the roster after a successful run")
    gen.set_defaults(func=_cmd_generate)

    show = sub.add_parser("show", help="Show allocations for a date or a faculty member")
    which = show.add_mutually_exclusive_group(required=True)
    which.add_argument("--date", help="Date (YYYY-MM-DD)")
    which.add_argument("--faculty", type=int, help="Faculty ID")
    show.set_defaults(func=_cmd_show)

    rea = sub.add_parser("reassign", help="Reassign an allocation to another faculty member")
    rea.add_argument("--allocation", required=True, type=int, help="Allocation ID")
    rea.add_argument("--to", required=True, type=int, help="Target faculty ID")
    rea.set_defaults(func=_cmd_reassign)

    clr = sub.add_parser("clear-day", help="Delete a date's allocations and adjust loads")
    clr.add_argument("--date", required=True, help="Date (YYYY-MM-DD)")
    clr.set_defaults(func=_cmd_clear_day)

    rst = sub.add_parser("reset-roster", help="Delete the uploaded faculty roster")
    rst.set_defaults(func=_cmd_reset_roster)

    rec = sub.add_parser("reconcile", help="Recompute workload counters from allocations")
    rec.set_defaults(func=_cmd_reconcile)

    hist = sub.add_parser("history", help="List dates with allocation counts")
    hist.set_defaults(func=_cmd_history)

    exp = sub.add_parser("export", help="Export a date's allocations to CSV")
    exp.add_argument("--date", required=True, help="Date (YYYY-MM-DD)")
    exp.add_argument("--out", required=True, help="Path to output CSV")
    exp.set_defaults(func=_cmd_export)

    con = sub.add_parser("set-constraints", help="Update the global allocation constraints")
    con.add_argument("--max-hours-per-day", type=int, help="Per-day cap (0 disables)")
    repeat = con.add_mutually_exclusive_group()
    repeat.add_argument("--no-same-day-repeat", dest="no_same_day_repeat", action="store_true", default=None)
    repeat.add_argument("--allow-same-day-repeat", dest="no_same_day_repeat", action="store_false")
    con.add_argument("--department-weight", action="append", metavar="DEPT=WEIGHT")
    con.add_argument("--designation-weight", action="append", metavar="DESIGNATION=WEIGHT")
    con.set_defaults(func=_cmd_set_constraints)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        cfg = _config(args)
        logging.basicConfig(level=cfg.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
        args.func(args, cfg)
    except InvigilationError as e:
        print(f"[ERROR] {e}")
        return 1
    except StorageError as e:
        print(f"[ERROR] {args.command} failed: {e}")
        raise
    return 0


if __name__ == "__main__":
    sys.exit(main())
