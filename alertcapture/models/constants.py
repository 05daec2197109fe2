"""
Constants for the alert packet capture service.

This module defines all constant values used throughout the application
to ensure consistency and reduce hardcoded values.
"""

from enum import Enum
from typing import List


class ErrorCategory(Enum):
    """Response classification for pipeline failures."""

    BAD_REQUEST = "bad_request"
    INTERNAL = "internal"

    @property
    def http_status(self) -> int:
        """HTTP status code returned to the webhook caller."""
        return 400 if self is ErrorCategory.BAD_REQUEST else 500


class PipelineStep(Enum):
    """Ordered steps of a single capture invocation."""

    EXTRACT_CONTEXT = "extract_context"
    RESOLVE_CREDENTIALS = "resolve_credentials"
    LOCATE_COMPUTE = "locate_compute"
    LOCATE_STORAGE = "locate_storage"
    ENSURE_NETWORK_WATCHER = "ensure_network_watcher"
    ENSURE_AGENT = "ensure_agent"
    ROTATE_AND_CREATE = "rotate_and_create"

    @classmethod
    def values(cls) -> List[str]:
        """All step values as strings, in execution order."""
        return [step.value for step in cls]


class OSType(Enum):
    """Operating system family reported on a virtual machine's OS disk."""

    WINDOWS = "Windows"
    LINUX = "Linux"


# Capture agent identity on the compute resource
NETWORK_WATCHER_EXTENSION_PUBLISHER = "Microsoft.Azure.NetworkWatcher"
NETWORK_WATCHER_AGENT_WINDOWS = "NetworkWatcherAgentWindows"
NETWORK_WATCHER_AGENT_LINUX = "NetworkWatcherAgentLinux"

# Compact timestamp appended to capture names
CAPTURE_NAME_TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"

# Long-running operation terminal states reported by the control plane
OPERATION_SUCCEEDED = "Succeeded"
OPERATION_TERMINAL_STATES = ("Succeeded", "Failed", "Canceled")
