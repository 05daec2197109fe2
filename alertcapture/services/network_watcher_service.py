"""
Network watcher provisioning.

Packet captures can only be created through the network watcher of the
target's region. This service finds that watcher or creates it, converging
on a single deterministically named watcher per region.
"""

from typing import List, Optional

from alertcapture.exceptions import ProvisioningError
from alertcapture.integrations.azure import AzureControlPlaneClient, ControlPlaneError
from alertcapture.models.resources import NetworkWatcher, ResourceGroup, normalize_region
from alertcapture.utils.logger import get_module_logger

logger = get_module_logger(__name__)


class NetworkWatcherService:
    """Idempotently finds or creates the regional network watcher."""

    def __init__(self, resource_group_name: str = "NetworkWatcherRG",
                 name_prefix: str = "NetworkWatcher_") -> None:
        self.resource_group_name = resource_group_name
        self.name_prefix = name_prefix

    def watcher_name(self, region: str) -> str:
        """Deterministic watcher name for a region."""
        return f"{self.name_prefix}{normalize_region(region)}"

    async def ensure(self, handle: AzureControlPlaneClient, region: str) -> NetworkWatcher:
        """
        Return the network watcher for a region, creating it when absent.

        Args:
            handle: Authenticated control plane client
            region: Region of the capture target

        Returns:
            Existing or newly created NetworkWatcher

        Raises:
            ProvisioningError: If the resource group or watcher cannot be created
        """
        watcher = await self.find(handle, region)
        if watcher is not None:
            logger.debug(f"Using network watcher {watcher.name} in region {region}")
            return watcher
        return await self._create(handle, region)

    async def find(self, handle: AzureControlPlaneClient, region: str) -> Optional[NetworkWatcher]:
        """First watcher in the region, or None. Listing failures count as none found."""
        try:
            watchers: List[NetworkWatcher] = await handle.list_network_watchers()
        except ControlPlaneError as e:
            logger.warning(f"Unable to list network watchers, treating as none found: {e}")
            return None

        if not watchers:
            logger.debug("No Network Watchers found in subscription.")
            return None

        logger.debug(f"Network Watchers found in subscription - checking if any are in region {region}")
        for watcher in watchers:
            if watcher.is_in_region(region):
                return watcher

        logger.info(f"No network watchers found in region {region}")
        return None

    async def _create(self, handle: AzureControlPlaneClient, region: str) -> NetworkWatcher:
        logger.info(
            f"No Network Watcher exists in region {region}. "
            f"Will attempt to create in ResourceGroup {self.resource_group_name}"
        )
        try:
            resource_group = await self._ensure_resource_group(handle, region)

            name = self.watcher_name(region)
            logger.info(f"Creating the network watcher {name} in resource group {resource_group.name}")
            watcher = await handle.create_network_watcher(name, region, resource_group.name)
        except ControlPlaneError as e:
            logger.error(f"Unable to create ResourceGroup or Network Watcher: {e}")
            raise ProvisioningError(
                f"Unable to create network watcher for region {region}: {str(e)}",
                operation=e.operation,
                context=e.to_dict(),
            ) from e

        logger.info("Network Watcher created successfully")
        return watcher

    async def _ensure_resource_group(self, handle: AzureControlPlaneClient, region: str) -> ResourceGroup:
        try:
            return await handle.get_resource_group(self.resource_group_name)
        except ControlPlaneError as e:
            if not e.is_not_found:
                raise

        logger.info(
            f"Resource Group {self.resource_group_name} does not exist. Creating it in region: {region}. "
            "Note - the region of the Network Watcher's Resource Group does not have to match "
            "the region of the Network Watcher."
        )
        resource_group = await handle.create_resource_group(self.resource_group_name, region)
        logger.info("Created Resource Group")
        return resource_group
