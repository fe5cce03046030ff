"""I/O utilities for CSV import/export."""

from .import_csv import (
    import_events_csv,
    import_fulfillments_csv,
    import_participants_csv,
    import_rotation_csv,
)
from .export_csv import export_content_set_csv, export_fulfillments_csv

__all__ = [
    "import_participants_csv",
    "import_events_csv",
    "import_rotation_csv",
    "import_fulfillments_csv",
    "export_content_set_csv",
    "export_fulfillments_csv",
]
