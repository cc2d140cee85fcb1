"""
app/services package marker.
"""

from app.services.dashboard_service import (
    DashboardService,
    SheetRowSource,
    get_dashboard_service,
    get_row_source,
)
from app.services.export_service import ExportResult, ExportService, to_csv
from app.services.row_cache import RowCache

__all__ = [
    "DashboardService",
    "SheetRowSource",
    "get_dashboard_service",
    "get_row_source",
    "ExportResult",
    "ExportService",
    "to_csv",
    "RowCache",
]
