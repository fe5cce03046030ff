"""Services for ordering, composition and rotation logic."""

from .invariants import can_add, check_composition, is_unfamiliar
from .ordering import insert_at, remove_and_compact, reorder
from .rotation import project, select_next
from .slots import derive_status

__all__ = [
    "can_add",
    "check_composition",
    "is_unfamiliar",
    "insert_at",
    "remove_and_compact",
    "reorder",
    "select_next",
    "project",
    "derive_status",
]
