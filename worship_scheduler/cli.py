"""Command-line interface for the worship scheduler engine."""

from __future__ import annotations

import argparse
import logging
import sys

from sqlalchemy.orm import Session

from worship_scheduler.config import EngineConfig, load_config
from worship_scheduler.domain.db import create_db_engine, get_session_factory, init_database
from worship_scheduler.engine.planner import build_planner
from worship_scheduler.errors import EngineError
from worship_scheduler.io.export_csv import export_content_set_csv, export_fulfillments_csv
from worship_scheduler.io.import_csv import (
    import_events_csv,
    import_fulfillments_csv,
    import_participants_csv,
    import_rotation_csv,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(levelname)s] %(message)s"


def _load(args: argparse.Namespace) -> EngineConfig:
    cfg = load_config(args.config)
    if args.db:
        cfg = cfg.with_db_url(args.db)
    return cfg


def _open_session(cfg: EngineConfig) -> Session:
    engine = create_db_engine(cfg.db_url, busy_timeout=cfg.sqlite_busy_timeout)
    return get_session_factory(engine)()


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def _cmd_init_db(args: argparse.Namespace, cfg: EngineConfig) -> int:
    """Initialize the database."""
    init_database(cfg.db_url)
    print(f"[OK] Database initialized: {cfg.db_url}")
    return 0


def _cmd_import_csv(args: argparse.Namespace, cfg: EngineConfig) -> int:
    """Import CSV data into database."""
    session = _open_session(cfg)

    try:
        # Order matters: rotation and history reference participants and events
        if args.participants:
            count = import_participants_csv(session, args.participants)
            print(f"[OK] Imported {count} participants")

        if args.events:
            count = import_events_csv(session, args.events)
            print(f"[OK] Imported {count} events")

        if args.rotation:
            count = import_rotation_csv(session, args.rotation)
            print(f"[OK] Imported {count} rotation entries")

        if args.fulfillments:
            count = import_fulfillments_csv(session, args.fulfillments)
            print(f"[OK] Imported {count} fulfillment records")

        print("[OK] CSV import complete")
        return 0

    except Exception as e:
        session.rollback()
        print(f"[ERROR] Import failed: {e}")
        raise
    finally:
        session.close()


def _cmd_suggest_leader(args: argparse.Namespace, cfg: EngineConfig) -> int:
    """Print the suggested next leader for a role."""
    planner = build_planner(cfg)
    pick = planner.suggest_next_for_role(args.role)
    if pick is None:
        print(f"[OK] No rotation list for role '{args.role}'")
    else:
        print(f"[OK] Next for '{args.role}': participant {pick}")
    return 0


def _cmd_confirm_leader(args: argparse.Namespace, cfg: EngineConfig) -> int:
    """Confirm a participant in a role for an event."""
    planner = build_planner(cfg)
    record = planner.confirm_assignment(args.event, args.role, args.participant)
    print(
        f"[OK] Participant {record.participant_id} confirmed as '{record.role_category_id}' "
        f"for event {record.event_id}"
    )
    return 0


def _cmd_forecast(args: argparse.Namespace, cfg: EngineConfig) -> int:
    """Project upcoming leaders without recording anything."""
    planner = build_planner(cfg)
    for entry in planner.forecast(args.role, args.events):
        who = entry.participant_id if entry.participant_id is not None else "-"
        print(f"{entry.event_date.isoformat()}  event {entry.event_id}: {who}")
    return 0


def _cmd_slots(args: argparse.Namespace, cfg: EngineConfig) -> int:
    """List a contributor's slots with derived status."""
    planner = build_planner(cfg)
    views = planner.slots_for_contributor(args.contributor)
    for slot in views:
        overdue = " (overdue)" if slot.is_overdue else ""
        print(
            f"slot {slot.id}  set {slot.content_set_id}  {slot.status:<9}  "
            f"{slot.active_count}/{slot.min_items}-{slot.max_items}  due {slot.due_at.isoformat()}{overdue}"
        )
    print(f"[OK] {len(views)} slots for participant {args.contributor}")
    return 0


def _cmd_export_set(args: argparse.Namespace, cfg: EngineConfig) -> int:
    """Export a content set to CSV."""
    session = _open_session(cfg)
    try:
        count = export_content_set_csv(session, args.content_set, args.out)
        print(f"[OK] Exported {count} items to {args.out}")
        return 0
    finally:
        session.close()


def _cmd_export_history(args: argparse.Namespace, cfg: EngineConfig) -> int:
    """Export a role's fulfillment history to CSV."""
    session = _open_session(cfg)
    try:
        count = export_fulfillments_csv(session, args.role, args.out)
        print(f"[OK] Exported {count} fulfillment records to {args.out}")
        return 0
    finally:
        session.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="worship-scheduler",
        description="Service staffing and content assembly engine",
    )

    # Global options
    parser.add_argument("--config", help="Path to config YAML (defaults apply when omitted)")
    parser.add_argument("--db", help="Database URL (overrides config)")

    sub = parser.add_subparsers(dest="command", required=True)

    # init-db command
    init = sub.add_parser("init-db", help="Initialize database")
    init.set_defaults(func=_cmd_init_db)

    # import-csv command
    imp = sub.add_parser("import-csv", help="Import CSV data into database")
    imp.add_argument("--participants", help="Path to participants CSV")
    imp.add_argument("--events", help="Path to events CSV")
    imp.add_argument("--rotation", help="Path to rotation list CSV")
    imp.add_argument("--fulfillments", help="Path to fulfillment history CSV")
    imp.set_defaults(func=_cmd_import_csv)

    # suggest-leader command
    sug = sub.add_parser("suggest-leader", help="Suggest who should lead next")
    sug.add_argument("--role", required=True, help="Role category ID (e.g., lead)")
    sug.set_defaults(func=_cmd_suggest_leader)

    # confirm-leader command
    con = sub.add_parser("confirm-leader", help="Confirm a leader for an event")
    con.add_argument("--event", required=True, type=int, help="Event ID")
    con.add_argument("--role", required=True, help="Role category ID")
    con.add_argument("--participant", required=True, type=int, help="Participant ID")
    con.set_defaults(func=_cmd_confirm_leader)

    # forecast command
    fc = sub.add_parser("forecast", help="Project leaders for upcoming events")
    fc.add_argument("--role", required=True, help="Role category ID")
    fc.add_argument("--events", required=True, type=int, nargs="+", help="Event IDs")
    fc.set_defaults(func=_cmd_forecast)

    # slots command
    sl = sub.add_parser("slots", help="List a contributor's slots")
    sl.add_argument("--contributor", required=True, type=int, help="Participant ID")
    sl.set_defaults(func=_cmd_slots)

    # export-set command
    exs = sub.add_parser("export-set", help="Export a content set to CSV")
    exs.add_argument("--content-set", required=True, type=int, help="Content set ID")
    exs.add_argument("--out", required=True, help="Destination CSV path")
    exs.set_defaults(func=_cmd_export_set)

    # export-history command
    exh = sub.add_parser("export-history", help="Export a role's fulfillment history to CSV")
    exh.add_argument("--role", required=True, help="Role category ID")
    exh.add_argument("--out", required=True, help="Destination CSV path")
    exh.set_defaults(func=_cmd_export_history)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    cfg = _load(args)
    _configure_logging(cfg.log_level)
    logger.debug("Using database %s", cfg.db_url)

    try:
        return args.func(args, cfg)
    except EngineError as e:
        print(f"[ERROR] {e.kind}: {e.message}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
