"""
app/schemas/dashboard.py

Response schemas for the dashboard endpoints.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    sheet_configured: bool
    scheduler_enabled: bool


class RegionResponse(_CamelModel):
    id: str
    name: str


class CityResponse(_CamelModel):
    id: str
    name: str
    region_id: str


class SiteResponse(_CamelModel):
    id: str
    name: str
    city_id: str
    lat: float
    lng: float
    district: str | None = None


class HierarchyResponse(_CamelModel):
    regions: list[RegionResponse] = Field(default_factory=list)
    cities: list[CityResponse] = Field(default_factory=list)
    sites: list[SiteResponse] = Field(default_factory=list)


class CityAccumulationResponse(_CamelModel):
    fuel_liters: int
    co2_tons: float
    power_kwh: int


class AccumulativePointResponse(_CamelModel):
    month: str
    per_city: dict[str, CityAccumulationResponse] = Field(default_factory=dict)


class AnomalyResponse(BaseModel):
    index: int = Field(..., ge=0)
    value: float
    z: float


class AnomalyReportResponse(BaseModel):
    mean: float
    std: float = Field(..., ge=0)
    anomalies: list[AnomalyResponse] = Field(default_factory=list)
