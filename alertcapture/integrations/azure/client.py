"""
Azure Resource Manager client for the resources a packet capture depends on.

Exposes the control plane operations the pipeline consumes (virtual
machines, storage accounts, resource groups, network watchers, VM
extensions and packet captures) over the ARM REST API. Each operation
returns a typed model or raises ControlPlaneError; long-running operations
are polled to completion before returning.
"""

import asyncio
from typing import Any, Dict, List, Optional

import httpx

from alertcapture.integrations.azure.exceptions import ControlPlaneError
from alertcapture.models.constants import OPERATION_SUCCEEDED, OPERATION_TERMINAL_STATES
from alertcapture.models.resources import (
    AgentDescriptor,
    ComputeTarget,
    NetworkWatcher,
    PacketCapture,
    PacketCaptureStatus,
    ResourceGroup,
    StorageTarget,
)
from alertcapture.utils.logger import get_module_logger

logger = get_module_logger(__name__)

COMPUTE_API_VERSION = "2023-09-01"
NETWORK_API_VERSION = "2023-09-01"
STORAGE_API_VERSION = "2023-01-01"
RESOURCES_API_VERSION = "2022-09-01"
SUBSCRIPTIONS_API_VERSION = "2022-12-01"


class AzureControlPlaneClient:
    """Authenticated handle scoped to a single subscription."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        subscription_id: str,
        access_token: str,
        arm_endpoint: str = "https://management.azure.com",
        poll_interval_seconds: float = 5.0,
        owns_client: bool = False,
    ) -> None:
        self.client = http_client
        self.subscription_id = subscription_id
        self.arm_endpoint = arm_endpoint.rstrip("/")
        self.poll_interval_seconds = poll_interval_seconds
        self._owns_client = owns_client
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
            "User-Agent": "alertcapture/1.0",
        }

    @property
    def subscription_path(self) -> str:
        return f"/subscriptions/{self.subscription_id}"

    # ------------------------------------------------------------------
    # Subscription, compute and storage
    # ------------------------------------------------------------------

    async def get_subscription(self) -> Dict[str, Any]:
        response = await self._request(
            "GET", self.subscription_path, "get_subscription", SUBSCRIPTIONS_API_VERSION
        )
        return response.json()

    async def get_virtual_machine(self, resource_id: str) -> ComputeTarget:
        response = await self._request(
            "GET", resource_id, "get_virtual_machine", COMPUTE_API_VERSION
        )
        return ComputeTarget.from_arm(response.json())

    async def get_storage_account(self, resource_id: str) -> StorageTarget:
        response = await self._request(
            "GET", resource_id, "get_storage_account", STORAGE_API_VERSION
        )
        return StorageTarget.from_arm(response.json())

    # ------------------------------------------------------------------
    # Resource groups and network watchers
    # ------------------------------------------------------------------

    async def get_resource_group(self, name: str) -> ResourceGroup:
        response = await self._request(
            "GET", f"{self.subscription_path}/resourcegroups/{name}",
            "get_resource_group", RESOURCES_API_VERSION
        )
        return ResourceGroup.from_arm(response.json())

    async def create_resource_group(self, name: str, region: str) -> ResourceGroup:
        path = f"{self.subscription_path}/resourcegroups/{name}"
        response = await self._request(
            "PUT", path, "create_resource_group", RESOURCES_API_VERSION,
            json={"location": region}, expected=(200, 201)
        )
        return ResourceGroup.from_arm(response.json())

    async def list_network_watchers(self) -> List[NetworkWatcher]:
        items = await self._list(
            f"{self.subscription_path}/providers/Microsoft.Network/networkWatchers",
            "list_network_watchers", NETWORK_API_VERSION
        )
        return [NetworkWatcher.from_arm(item) for item in items]

    async def create_network_watcher(self, name: str, region: str, resource_group: str) -> NetworkWatcher:
        path = (
            f"{self.subscription_path}/resourceGroups/{resource_group}"
            f"/providers/Microsoft.Network/networkWatchers/{name}"
        )
        operation = "create_network_watcher"
        response = await self._request(
            "PUT", path, operation, NETWORK_API_VERSION,
            json={"location": region}, expected=(200, 201)
        )
        body = await self._complete(response, operation, NETWORK_API_VERSION)
        return NetworkWatcher.from_arm(body)

    # ------------------------------------------------------------------
    # VM extensions
    # ------------------------------------------------------------------

    async def list_vm_extensions(self, vm_id: str) -> List[AgentDescriptor]:
        items = await self._list(f"{vm_id}/extensions", "list_vm_extensions", COMPUTE_API_VERSION)
        return [AgentDescriptor.from_arm(item) for item in items]

    async def create_vm_extension(self, vm_id: str, region: str, descriptor: AgentDescriptor) -> AgentDescriptor:
        operation = "create_vm_extension"
        payload = {
            "location": region,
            "properties": {
                "publisher": descriptor.publisher,
                "type": descriptor.type,
                "typeHandlerVersion": descriptor.version,
                "autoUpgradeMinorVersion": True,
            },
        }
        response = await self._request(
            "PUT", f"{vm_id}/extensions/{descriptor.name}", operation, COMPUTE_API_VERSION,
            json=payload, expected=(200, 201)
        )
        body = await self._complete(response, operation, COMPUTE_API_VERSION)
        return AgentDescriptor.from_arm(body)

    # ------------------------------------------------------------------
    # Packet captures
    # ------------------------------------------------------------------

    async def list_packet_captures(self, watcher: NetworkWatcher) -> List[PacketCapture]:
        items = await self._list(
            f"{watcher.id}/packetCaptures", "list_packet_captures", NETWORK_API_VERSION
        )
        return [PacketCapture.from_arm(item) for item in items]

    async def get_packet_capture_status(self, watcher: NetworkWatcher, name: str) -> PacketCaptureStatus:
        operation = "get_packet_capture_status"
        response = await self._request(
            "POST", f"{watcher.id}/packetCaptures/{name}/queryStatus", operation,
            NETWORK_API_VERSION, expected=(200, 202)
        )
        body = await self._complete(response, operation, NETWORK_API_VERSION)
        return PacketCaptureStatus.from_arm(body, name=name)

    async def delete_packet_capture(self, watcher: NetworkWatcher, name: str) -> None:
        operation = "delete_packet_capture"
        response = await self._request(
            "DELETE", f"{watcher.id}/packetCaptures/{name}", operation,
            NETWORK_API_VERSION, expected=(200, 202, 204)
        )
        await self._complete(response, operation, NETWORK_API_VERSION)

    async def create_packet_capture(
        self,
        watcher: NetworkWatcher,
        name: str,
        target_id: str,
        storage_id: str,
        time_limit_seconds: int,
    ) -> PacketCapture:
        operation = "create_packet_capture"
        payload = {
            "properties": {
                "target": target_id,
                "storageLocation": {"storageId": storage_id},
                "timeLimitInSeconds": time_limit_seconds,
            }
        }
        response = await self._request(
            "PUT", f"{watcher.id}/packetCaptures/{name}", operation, NETWORK_API_VERSION,
            json=payload, expected=(200, 201)
        )
        body = await self._complete(response, operation, NETWORK_API_VERSION)
        return PacketCapture.from_arm(body)

    async def close(self) -> None:
        """Close the HTTP client only if we own it."""
        if self._owns_client:
            await self.client.aclose()

    # ------------------------------------------------------------------
    # Transport helpers
    # ------------------------------------------------------------------

    def _url(self, path_or_url: str) -> str:
        if path_or_url.startswith(("http://", "https://")):
            return path_or_url
        return f"{self.arm_endpoint}/{path_or_url.lstrip('/')}"

    async def _request(
        self,
        method: str,
        path_or_url: str,
        operation: str,
        api_version: Optional[str] = None,
        json: Optional[Dict[str, Any]] = None,
        expected: tuple = (200,),
    ) -> httpx.Response:
        params = {"api-version": api_version} if api_version else None
        try:
            response = await self.client.request(
                method, self._url(path_or_url), params=params, json=json, headers=self.headers
            )
        except httpx.HTTPError as e:
            raise ControlPlaneError(f"{operation} failed: {str(e)}", operation=operation) from e

        if response.status_code not in expected:
            raise ControlPlaneError.from_response(response, operation)
        return response

    async def _list(self, path: str, operation: str, api_version: str) -> List[Dict[str, Any]]:
        """Collect every item of a paged list, following nextLink."""
        items: List[Dict[str, Any]] = []
        response = await self._request("GET", path, operation, api_version)
        while True:
            body = response.json()
            items.extend(body.get("value") or [])
            next_link = body.get("nextLink")
            if not next_link:
                return items
            # nextLink already carries the api-version query parameter
            response = await self._request("GET", next_link, operation)

    async def _complete(self, response: httpx.Response, operation: str, api_version: str) -> Dict[str, Any]:
        """
        Wait for a possibly long-running operation and return the final body.

        ARM signals asynchronous completion with an Azure-AsyncOperation
        header (polled for a terminal status) and/or a Location header
        (polled until it stops answering 202).
        """
        if response.status_code not in (201, 202):
            return response.json() if response.content else {}

        async_url = response.headers.get("Azure-AsyncOperation")
        location = response.headers.get("Location")
        method = response.request.method

        if async_url:
            await self._poll_async_operation(async_url, response, operation)
            if method == "PUT":
                final = await self._request("GET", str(response.request.url), operation)
                return final.json()
            if method == "POST" and location:
                final = await self._request("GET", location, operation, expected=(200,))
                return final.json() if final.content else {}
            return {}

        if location:
            return await self._poll_location(location, response, operation)

        return response.json() if response.content else {}

    async def _poll_async_operation(self, url: str, response: httpx.Response, operation: str) -> None:
        delay = self._retry_after(response)
        while True:
            await asyncio.sleep(delay)
            poll = await self._request("GET", url, operation)
            body = poll.json()
            status = body.get("status")
            if status in OPERATION_TERMINAL_STATES:
                if status != OPERATION_SUCCEEDED:
                    error = body.get("error") or {}
                    raise ControlPlaneError(
                        f"{operation} finished with status {status}: {error.get('message', 'no details')}",
                        operation=operation,
                        status_code=poll.status_code,
                        error_code=error.get("code"),
                    )
                logger.debug(f"{operation} completed")
                return
            delay = self._retry_after(poll)

    async def _poll_location(self, url: str, response: httpx.Response, operation: str) -> Dict[str, Any]:
        delay = self._retry_after(response)
        while True:
            await asyncio.sleep(delay)
            poll = await self._request("GET", url, operation, expected=(200, 201, 202, 204))
            if poll.status_code != 202:
                return poll.json() if poll.content else {}
            delay = self._retry_after(poll)

    def _retry_after(self, response: httpx.Response) -> float:
        value = response.headers.get("Retry-After")
        try:
            return float(value) if value is not None else self.poll_interval_seconds
        except ValueError:
            return self.poll_interval_seconds
