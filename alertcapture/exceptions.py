"""
Custom exceptions for the packet capture pipeline.

Provides a consistent exception hierarchy so every pipeline failure can be
classified into a client-fault or server-fault response by the orchestrator.
"""

from typing import Any, Dict, List, Optional

from alertcapture.models.constants import ErrorCategory


class CaptureError(Exception):
    """
    Base exception for all pipeline errors.

    Carries debugging context and the response category the failure maps to.
    """

    category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        """
        Initialize pipeline error.

        Args:
            message: Human-readable error description
            context: Additional context data for debugging
        """
        super().__init__(message)
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": str(self),
            "category": self.category.value,
            "context": self.context,
        }


class AlertValidationError(CaptureError):
    """The webhook payload did not carry a complete alert context."""

    category = ErrorCategory.BAD_REQUEST

    def __init__(self, message: str, missing_fields: Optional[List[str]] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context)
        self.missing_fields = list(missing_fields or [])

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["missing_fields"] = self.missing_fields
        return result


class ConfigurationError(CaptureError):
    """Deployment configuration is missing or invalid."""

    def __init__(self, message: str, missing_config: Optional[List[str]] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context)
        self.missing_config = list(missing_config or [])

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["missing_config"] = self.missing_config
        return result


class CredentialError(ConfigurationError):
    """Service principal secrets are blank."""


class AuthError(CaptureError):
    """The control plane rejected the credentials or the subscription is inaccessible."""


class ResourceNotFoundError(CaptureError):
    """A referenced compute or storage resource does not exist."""

    category = ErrorCategory.BAD_REQUEST

    def __init__(self, message: str, resource_id: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context)
        self.resource_id = resource_id

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["resource_id"] = self.resource_id
        return result


class ProvisioningError(CaptureError):
    """A remote create, delete, list or status operation failed."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context)
        self.operation = operation

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["operation"] = self.operation
        return result
