"""CSV import utilities to load data into database."""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd
from sqlalchemy.orm import Session

from worship_scheduler.domain.models import Event, Participant, RoleFulfillment, RotationEntry
from worship_scheduler.domain.repositories import EventRepository, ParticipantRepository
from worship_scheduler.timeutils import to_utc_naive, utcnow

logger = logging.getLogger(__name__)

_TRUE_VALUES = ["TRUE", "T", "1", "YES", "Y"]


def _read(csv_path: str | Path, required: list[str]) -> pd.DataFrame:
    df = pd.read_csv(csv_path)

    # Normalize column names
    df.columns = df.columns.str.lower().str.strip()

    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"{csv_path}: missing columns {missing}")
    return df


def _flag(value, default: bool = True) -> bool:
    if pd.isna(value):
        return default
    return str(value).strip().upper() in _TRUE_VALUES


def import_participants_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import participants and their role memberships.

    Expected columns: id, name, email (optional), roles (optional,
    semicolon-separated role category ids, e.g. "lead;keys").

    Args:
        session: Database session
        csv_path: Path to participants CSV

    Returns:
        Number of participants imported
    """
    df = _read(csv_path, ["id", "name"])

    count = 0
    for _, row in df.iterrows():
        roles = []
        if pd.notna(row.get("roles")):
            roles = [r.strip() for r in str(row["roles"]).split(";") if r.strip()]
        participant = Participant(
            id=int(row["id"]),
            name=str(row["name"]).strip(),
            email=str(row["email"]).strip() if pd.notna(row.get("email")) else None,
        )
        ParticipantRepository.create(session, participant, roles)
        count += 1

    session.commit()
    logger.info("Imported %d participants from %s", count, csv_path)
    return count


def import_events_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import events; each one gets its empty draft content set.

    Expected columns: id, category_id, event_date (YYYY-MM-DD).

    Returns:
        Number of events imported
    """
    df = _read(csv_path, ["id", "category_id", "event_date"])

    # Convert date
    df["event_date"] = pd.to_datetime(df["event_date"]).dt.date

    count = 0
    for _, row in df.iterrows():
        EventRepository.create(
            session,
            Event(id=int(row["id"]), category_id=str(row["category_id"]).strip(), event_date=row["event_date"]),
        )
        count += 1

    session.commit()
    logger.info("Imported %d events from %s", count, csv_path)
    return count


def import_rotation_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import rotation lists.

    Expected columns: role_category_id, participant_id, rotation_order,
    is_active (optional, defaults to TRUE).

    Returns:
        Number of rotation entries imported

    Raises:
        ValueError: If a role category repeats a rotation_order
    """
    df = _read(csv_path, ["role_category_id", "participant_id", "rotation_order"])
    df["role_category_id"] = df["role_category_id"].astype(str).str.strip()

    dupes = df[df.duplicated(subset=["role_category_id", "rotation_order"], keep=False)]
    if not dupes.empty:
        raise ValueError(f"{csv_path}: duplicate rotation_order within a role category")

    entries = []
    for _, row in df.iterrows():
        entries.append(
            RotationEntry(
                role_category_id=row["role_category_id"],
                participant_id=int(row["participant_id"]),
                rotation_order=int(row["rotation_order"]),
                is_active=_flag(row.get("is_active")),
            )
        )

    # Bulk insert
    session.add_all(entries)
    session.commit()

    logger.info("Imported %d rotation entries from %s", len(entries), csv_path)
    return len(entries)


def import_fulfillments_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import past role fulfillments (history recorded before this system).

    Expected columns: role_category_id, event_id, participant_id,
    sequence_order (optional), recorded_at (optional).

    Rows are appended in file order, sorted by recorded_at when present.

    Returns:
        Number of fulfillment records imported
    """
    df = _read(csv_path, ["role_category_id", "event_id", "participant_id"])
    df["role_category_id"] = df["role_category_id"].astype(str).str.strip()

    if "recorded_at" in df.columns:
        df["recorded_at"] = pd.to_datetime(df["recorded_at"])
        df = df.sort_values("recorded_at", kind="stable")

    records = []
    for _, row in df.iterrows():
        recorded_at = row.get("recorded_at")
        records.append(
            RoleFulfillment(
                role_category_id=row["role_category_id"],
                event_id=int(row["event_id"]),
                participant_id=int(row["participant_id"]),
                sequence_order=int(row["sequence_order"]) if pd.notna(row.get("sequence_order")) else None,
                recorded_at=to_utc_naive(recorded_at.to_pydatetime()) if pd.notna(recorded_at) else utcnow(),
            )
        )

    # Bulk insert
    session.add_all(records)
    session.commit()

    logger.info("Imported %d fulfillment records from %s", len(records), csv_path)
    return len(records)
