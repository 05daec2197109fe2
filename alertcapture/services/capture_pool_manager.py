"""
Capacity-bounded packet capture pool on a network watcher.

Before each new capture the pool is checked against its maximum size. When
full, the statuses of all captures are fetched concurrently and the capture
that started first is deleted. Exactly one capture is evicted per creation,
so the pool never grows past the maximum as long as invocations for the
same watcher are serialized by the caller.
"""

import asyncio
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from pydantic import BaseModel

from alertcapture.exceptions import ProvisioningError
from alertcapture.integrations.azure import AzureControlPlaneClient, ControlPlaneError
from alertcapture.models.resources import (
    ComputeTarget,
    NetworkWatcher,
    PacketCapture,
    PacketCaptureStatus,
    StorageTarget,
)
from alertcapture.utils.logger import get_module_logger
from alertcapture.utils.timestamp import capture_name_suffix

logger = get_module_logger(__name__)

# Captures that never reported a start time are the oldest candidates
_NEVER_STARTED = datetime.min.replace(tzinfo=timezone.utc)


class CaptureRotation(BaseModel):
    """Outcome of a rotate-and-create call."""

    capture: PacketCapture
    evicted: Optional[str] = None


class CapturePoolManager:
    """Evicts the oldest capture when the pool is full, then creates a new one."""

    def __init__(self, name_max_length: int = 50) -> None:
        self.name_max_length = name_max_length

    def capture_name(self, target: ComputeTarget, moment: Optional[datetime] = None) -> str:
        """Target name truncated to the maximum length plus a compact timestamp."""
        return target.name[:self.name_max_length] + capture_name_suffix(moment)

    async def rotate_and_create(
        self,
        handle: AzureControlPlaneClient,
        watcher: NetworkWatcher,
        target: ComputeTarget,
        storage: StorageTarget,
        max_count: int,
        capture_duration_seconds: int,
    ) -> CaptureRotation:
        """
        Make room in the pool if needed and create a capture for the target.

        Raises:
            ProvisioningError: If listing, status lookup, eviction or creation fails.
                A failed eviction aborts before anything is created.
        """
        captures = await self._list(handle, watcher)

        evicted = None
        if len(captures) >= max_count:
            logger.info(f"{len(captures)} captures on {watcher.name} (max {max_count}), finding oldest.")
            evicted = await self.evict_oldest(handle, watcher, captures)

        name = self.capture_name(target)
        logger.info(f"Creating Packet Capture {name}")
        try:
            capture = await handle.create_packet_capture(
                watcher,
                name,
                target_id=target.id,
                storage_id=storage.id,
                time_limit_seconds=capture_duration_seconds,
            )
        except ControlPlaneError as e:
            raise ProvisioningError(
                f"Unable to create packet capture {name}: {str(e)}",
                operation=e.operation,
                context=e.to_dict(),
            ) from e

        logger.info("Packet Capture created successfully")
        return CaptureRotation(capture=capture, evicted=evicted)

    async def evict_oldest(
        self,
        handle: AzureControlPlaneClient,
        watcher: NetworkWatcher,
        captures: List[PacketCapture],
    ) -> str:
        """Delete the capture with the earliest start time and return its name."""
        ranked = await self.rank_by_start_time(handle, watcher, captures)
        oldest = ranked[0][0]

        logger.info(f"Removing: {oldest.name}")
        try:
            await handle.delete_packet_capture(watcher, oldest.name)
        except ControlPlaneError as e:
            raise ProvisioningError(
                f"Unable to delete packet capture {oldest.name}: {str(e)}",
                operation=e.operation,
                context=e.to_dict(),
            ) from e
        return oldest.name

    async def rank_by_start_time(
        self,
        handle: AzureControlPlaneClient,
        watcher: NetworkWatcher,
        captures: List[PacketCapture],
    ) -> List[Tuple[PacketCapture, PacketCaptureStatus]]:
        """
        Pair each capture with its status, oldest first.

        Statuses are fetched concurrently and collected by index, so the
        order is independent of which lookup finishes first. The sort is
        stable: equal start times keep listing order.
        """
        try:
            statuses = await asyncio.gather(
                *(handle.get_packet_capture_status(watcher, capture.name) for capture in captures)
            )
        except ControlPlaneError as e:
            raise ProvisioningError(
                f"Unable to query packet capture status on {watcher.name}: {str(e)}",
                operation=e.operation,
                context=e.to_dict(),
            ) from e

        paired = list(zip(captures, statuses))
        return sorted(paired, key=lambda pair: pair[1].capture_start_time or _NEVER_STARTED)

    async def _list(self, handle: AzureControlPlaneClient, watcher: NetworkWatcher) -> List[PacketCapture]:
        try:
            return await handle.list_packet_captures(watcher)
        except ControlPlaneError as e:
            raise ProvisioningError(
                f"Unable to list packet captures on {watcher.name}: {str(e)}",
                operation=e.operation,
                context=e.to_dict(),
            ) from e
