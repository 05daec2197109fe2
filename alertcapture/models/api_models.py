"""
API response models for the webhook endpoints.
"""

from typing import Optional

from pydantic import BaseModel


class CaptureResponse(BaseModel):
    """Response model for a successfully processed alert."""

    status: str
    capture_name: str
    watcher_name: str
    evicted_capture: Optional[str] = None
    message: str


class HealthResponse(BaseModel):
    """Liveness response. Reports configuration completeness, never values."""

    status: str
    service: str
    version: str
    credentials_configured: bool
    storage_account_configured: bool
