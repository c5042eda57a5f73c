"""
노선/적재량 관련 Pydantic 스키마
"""

import datetime as dt

from pydantic import BaseModel


class Place(BaseModel):
    city: str
    address: str


class ScheduleOut(BaseModel):
    frequency: str
    departure_time: str
    estimated_duration_hours: float


class RoutePricingOut(BaseModel):
    base_rate: float
    per_kg_rate: float
    per_cubic_meter_rate: float


class RouteOut(BaseModel):
    id: int
    route_code: str
    name: str
    origin: Place
    destination: Place
    schedule: ScheduleOut
    pricing: RoutePricingOut
    cutoff_hours: int
    next_departure_at: dt.datetime | None = None
    booking_cutoff_at: dt.datetime | None = None


class DimensionValues(BaseModel):
    weight: float  # kg
    volume: float  # m³
    parcels: float


class CapacityResponse(BaseModel):
    route_id: int
    route_code: str
    date: dt.date
    capacity: DimensionValues
    used: DimensionValues
    available: DimensionValues
    utilization_percentage: DimensionValues
