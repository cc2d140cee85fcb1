"""
app/schemas package marker.
"""

from app.schemas.dashboard import (
    AccumulativePointResponse,
    AnomalyReportResponse,
    AnomalyResponse,
    CityAccumulationResponse,
    CityResponse,
    HealthResponse,
    HierarchyResponse,
    RegionResponse,
    SiteResponse,
)

__all__ = [
    "AccumulativePointResponse",
    "AnomalyReportResponse",
    "AnomalyResponse",
    "CityAccumulationResponse",
    "CityResponse",
    "HealthResponse",
    "HierarchyResponse",
    "RegionResponse",
    "SiteResponse",
]
