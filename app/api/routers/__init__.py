"""
app/api/routers package marker.
"""

from app.api.routers.dashboard_router import router as dashboard_router
from app.api.routers.export_router import router as export_router
from app.api.routers.hierarchy_router import router as hierarchy_router
from app.api.routers.sheet_router import router as sheet_router
from app.api.routers.trends_router import router as trends_router

__all__ = [
    "dashboard_router",
    "export_router",
    "hierarchy_router",
    "sheet_router",
    "trends_router",
]
