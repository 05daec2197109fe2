"""
Lookup of the compute and storage resources a capture is bound to.
"""

from alertcapture.exceptions import ConfigurationError, ProvisioningError, ResourceNotFoundError
from alertcapture.integrations.azure import AzureControlPlaneClient, ControlPlaneError
from alertcapture.models.resources import ComputeTarget, StorageTarget
from alertcapture.utils.logger import get_module_logger

logger = get_module_logger(__name__)


class ResourceLocator:
    """Resolves resources by identifier. Absence is terminal for the invocation."""

    def __init__(self, storage_account_id: str) -> None:
        self.storage_account_id = storage_account_id

    async def locate_compute(self, handle: AzureControlPlaneClient, resource_id: str) -> ComputeTarget:
        logger.debug(f"Obtaining VM {resource_id}")
        try:
            target = await handle.get_virtual_machine(resource_id)
        except ControlPlaneError as e:
            raise self._translate(e, "VM", resource_id) from e
        logger.debug(f"VM found: {target.name}; {target.id}")
        return target

    async def locate_storage(self, handle: AzureControlPlaneClient) -> StorageTarget:
        if not self.storage_account_id:
            raise ConfigurationError(
                "Packet capture storage account is not configured",
                missing_config=["packet_capture_storage_account"],
            )
        logger.debug("Looking for Storage Account")
        try:
            storage = await handle.get_storage_account(self.storage_account_id)
        except ControlPlaneError as e:
            raise self._translate(e, "Storage Account", self.storage_account_id) from e
        logger.debug(f"Storage Account found: {storage.name}")
        return storage

    @staticmethod
    def _translate(error: ControlPlaneError, kind: str, resource_id: str) -> Exception:
        if error.is_not_found:
            logger.error(f"{kind}: {resource_id} was not found")
            return ResourceNotFoundError(
                f"{kind} not found: {resource_id}",
                resource_id=resource_id,
                context=error.to_dict(),
            )
        return ProvisioningError(
            f"Failed to look up {kind} {resource_id}: {str(error)}",
            operation=error.operation,
            context=error.to_dict(),
        )
