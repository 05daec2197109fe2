"""
Errors raised by the Azure control plane integration.

Every remote failure is surfaced as a ControlPlaneError tagged with the
operation that failed and, when the service answered, its HTTP status and
error code. Callers translate these into pipeline errors.
"""

from typing import Any, Dict, Optional

import httpx


class ControlPlaneError(Exception):
    """A control plane request failed or a long-running operation did not succeed."""

    def __init__(self, message: str, operation: str, status_code: Optional[int] = None,
                 error_code: Optional[str] = None):
        super().__init__(message)
        self.operation = operation
        self.status_code = status_code
        self.error_code = error_code

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @property
    def is_auth_failure(self) -> bool:
        return self.status_code in (400, 401, 403)

    @classmethod
    def from_response(cls, response: httpx.Response, operation: str) -> "ControlPlaneError":
        """Build an error from a non-success response, reading the ARM or identity error body."""
        error_code = None
        detail = response.reason_phrase or ""
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict):
                # Resource Manager: {"error": {"code": ..., "message": ...}}
                error_code = error.get("code")
                detail = error.get("message") or detail
            elif isinstance(error, str):
                # Identity platform: {"error": "invalid_client", "error_description": ...}
                error_code = error
                detail = body.get("error_description") or detail

        return cls(
            f"{operation} failed with HTTP {response.status_code}: {detail}",
            operation=operation,
            status_code=response.status_code,
            error_code=error_code,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "operation": self.operation,
            "status_code": self.status_code,
            "error_code": self.error_code,
            "message": str(self),
        }
