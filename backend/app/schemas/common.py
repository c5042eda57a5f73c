"""
공통 Pydantic 스키마
"""

from datetime import datetime
from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    db_connected: bool
    redis_connected: bool
    timestamp: datetime


class ErrorResponse(BaseModel):
    code: str
    message: str
    detail: dict = {}
