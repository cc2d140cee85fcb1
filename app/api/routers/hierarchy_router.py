"""
app/api/routers/hierarchy_router.py

Region -> city -> site hierarchy endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.schemas.dashboard import HierarchyResponse
from app.services.dashboard_service import DashboardService, get_dashboard_service

router = APIRouter(tags=["hierarchy"])


@router.get("/hierarchy", response_model=HierarchyResponse, response_model_exclude_none=True)
def get_hierarchy(service: DashboardService = Depends(get_dashboard_service)) -> dict:
    """
    Hierarchy derived from the configured sheet, or the built-in demo catalog.
    """

    return service.hierarchy().to_dict()
