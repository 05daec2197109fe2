"""
Outcome of processing one alert through the capture pipeline.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from alertcapture.exceptions import CaptureError
from alertcapture.models.constants import ErrorCategory, PipelineStep


class CaptureProcessingResult(BaseModel):
    """
    Tagged result of a pipeline run.

    Exactly one of the success fields (capture_name) or the failure fields
    (error_category, error_type, failed_step) is populated.
    """

    success: bool
    capture_name: Optional[str] = None
    watcher_name: Optional[str] = None
    evicted_capture: Optional[str] = None
    target_id: Optional[str] = None

    failed_step: Optional[PipelineStep] = None
    error_category: Optional[ErrorCategory] = None
    error_type: Optional[str] = None
    error_message: Optional[str] = None
    error_details: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def succeeded(cls, capture_name: str, watcher_name: str, target_id: str,
                  evicted_capture: Optional[str] = None) -> CaptureProcessingResult:
        return cls(
            success=True,
            capture_name=capture_name,
            watcher_name=watcher_name,
            target_id=target_id,
            evicted_capture=evicted_capture,
        )

    @classmethod
    def failed(cls, step: PipelineStep, error: Exception) -> CaptureProcessingResult:
        """Classify an error raised during a step."""
        if isinstance(error, CaptureError):
            category = error.category
            details = error.to_dict()
        else:
            category = ErrorCategory.INTERNAL
            details = {"error_type": error.__class__.__name__}
        return cls(
            success=False,
            failed_step=step,
            error_category=category,
            error_type=error.__class__.__name__,
            error_message=str(error),
            error_details=details,
        )

    @property
    def http_status(self) -> int:
        if self.success:
            return 200
        return (self.error_category or ErrorCategory.INTERNAL).http_status
