"""
Network watcher agent installation on capture targets.
"""

from typing import Iterable

from alertcapture.exceptions import ProvisioningError
from alertcapture.integrations.azure import AzureControlPlaneClient, ControlPlaneError
from alertcapture.models.constants import (
    NETWORK_WATCHER_AGENT_LINUX,
    NETWORK_WATCHER_AGENT_WINDOWS,
    NETWORK_WATCHER_EXTENSION_PUBLISHER,
    OSType,
)
from alertcapture.models.resources import AgentDescriptor, ComputeTarget
from alertcapture.utils.logger import get_module_logger

logger = get_module_logger(__name__)


class AgentExtensionService:
    """
    Ensures the capture agent extension is present on a virtual machine.

    This is a presence check keyed on the publisher: any installed
    network watcher extension satisfies it, whatever its version.
    """

    def __init__(self, extension_name: str = "packetcapture", version: str = "1.4",
                 default_agent_type: str = NETWORK_WATCHER_AGENT_WINDOWS) -> None:
        self.extension_name = extension_name
        self.version = version
        self.default_agent_type = default_agent_type

    def descriptor_for(self, target: ComputeTarget) -> AgentDescriptor:
        """Agent variant matching the target's OS family."""
        if target.os_type is OSType.LINUX:
            agent_type = NETWORK_WATCHER_AGENT_LINUX
        elif target.os_type is OSType.WINDOWS:
            agent_type = NETWORK_WATCHER_AGENT_WINDOWS
        else:
            agent_type = self.default_agent_type
        return AgentDescriptor(
            name=self.extension_name,
            publisher=NETWORK_WATCHER_EXTENSION_PUBLISHER,
            type=agent_type,
            version=self.version,
        )

    async def ensure(self, handle: AzureControlPlaneClient, target: ComputeTarget) -> None:
        """
        Install the agent unless one from the network watcher publisher is present.

        Raises:
            ProvisioningError: If the extensions cannot be listed or installed
        """
        logger.debug(f"Checking for Network Watcher Extension on VM: {target.name}")
        if self._has_agent(target.installed_agents):
            logger.debug(f"Network Watcher Extension already present on {target.name}")
            return

        # The VM payload does not always embed its extensions
        try:
            extensions = await handle.list_vm_extensions(target.id)
        except ControlPlaneError as e:
            raise ProvisioningError(
                f"Unable to list extensions on {target.name}: {str(e)}",
                operation=e.operation,
                context=e.to_dict(),
            ) from e

        if self._has_agent(extensions):
            logger.debug(f"Network Watcher Extension already present on {target.name}")
            return

        descriptor = self.descriptor_for(target)
        try:
            await handle.create_vm_extension(target.id, target.region, descriptor)
        except ControlPlaneError as e:
            logger.error(f"Unable to install extension {descriptor.type} on {target.name}: {e}")
            raise ProvisioningError(
                f"Unable to install {descriptor.type} on {target.name}: {str(e)}",
                operation=e.operation,
                context=e.to_dict(),
            ) from e

        logger.info(f"Installed Extension {descriptor.type} on {target.name}")

    @staticmethod
    def _has_agent(extensions: Iterable[AgentDescriptor]) -> bool:
        return any(ext.publisher == NETWORK_WATCHER_EXTENSION_PUBLISHER for ext in extensions)
