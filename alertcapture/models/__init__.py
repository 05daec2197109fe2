# Models package - Minimal exports to avoid circular imports
from .alert import AlertContext
from .resources import (
    AgentDescriptor,
    ComputeTarget,
    NetworkWatcher,
    PacketCapture,
    PacketCaptureStatus,
    ResourceGroup,
    StorageTarget,
)

__all__ = [
    "AgentDescriptor",
    "AlertContext",
    "ComputeTarget",
    "NetworkWatcher",
    "PacketCapture",
    "PacketCaptureStatus",
    "ResourceGroup",
    "StorageTarget",
]
