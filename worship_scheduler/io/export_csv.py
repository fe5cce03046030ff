"""CSV export utilities."""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd
from sqlalchemy.orm import Session

from worship_scheduler.domain.repositories import ContentSetRepository, RotationRepository
from worship_scheduler.errors import NotFoundError

logger = logging.getLogger(__name__)

CONTENT_SET_COLUMNS = [
    "content_set_id",
    "event_id",
    "status",
    "leader_id",
    "position",
    "item_id",
    "catalog_entry_id",
    "variant_id",
    "unfamiliar",
    "performer_id",
    "key_override",
    "media_url_override",
    "notes",
]

FULFILLMENT_COLUMNS = [
    "id",
    "role_category_id",
    "event_id",
    "event_date",
    "participant_id",
    "sequence_order",
    "recorded_at",
]


def export_content_set_csv(session: Session, content_set_id: int, out_path: str | Path) -> int:
    """
    Write a content set's items, in position order, to CSV.

    Args:
        session: Database session
        content_set_id: Set to export
        out_path: Destination CSV path

    Returns:
        Number of items written

    Raises:
        NotFoundError: If the content set does not exist
    """
    content_set = ContentSetRepository.get_by_id(session, content_set_id)
    if content_set is None:
        raise NotFoundError(f"Content set {content_set_id} not found")

    rows = [
        {
            "content_set_id": content_set.id,
            "event_id": content_set.event_id,
            "status": content_set.status,
            "leader_id": content_set.leader_id,
            "position": item.position,
            "item_id": item.id,
            "catalog_entry_id": item.catalog_entry_id,
            "variant_id": item.variant_id,
            "unfamiliar": bool(item.unfamiliar),
            "performer_id": item.performer_id,
            "key_override": item.key_override,
            "media_url_override": item.media_url_override,
            "notes": item.notes,
        }
        for item in ContentSetRepository.items(session, content_set_id)
    ]

    df = pd.DataFrame(rows, columns=CONTENT_SET_COLUMNS)
    df.to_csv(out_path, index=False)
    logger.info("Exported %d items of content set %s to %s", len(df), content_set_id, out_path)
    return len(df)


def export_fulfillments_csv(session: Session, role_category_id: str, out_path: str | Path) -> int:
    """
    Write the fulfillment history of a role, in recording order, to CSV.

    Returns:
        Number of records written
    """
    rows = [
        {
            "id": r.id,
            "role_category_id": r.role_category_id,
            "event_id": r.event_id,
            "event_date": r.event.event_date,
            "participant_id": r.participant_id,
            "sequence_order": r.sequence_order,
            "recorded_at": r.recorded_at,
        }
        for r in RotationRepository.history(session, role_category_id)
    ]

    df = pd.DataFrame(rows, columns=FULFILLMENT_COLUMNS)
    # Keep integer dtype despite missing sequence orders
    df["sequence_order"] = df["sequence_order"].astype("Int64")
    df.to_csv(out_path, index=False)
    logger.info("Exported %d %s fulfillments to %s", len(df), role_category_id, out_path)
    return len(df)
