"""
Test utilities for reducing redundancy and improving test maintainability.

This module provides shared factories and an in-memory control plane:

1. AlertFactory - Webhook payloads and alert contexts
2. ResourceFactory - Virtual machines, storage accounts, watchers, captures
3. SettingsFactory - Settings instances isolated from the environment
4. FakeControlPlane - In-memory stand-in for AzureControlPlaneClient that
   records every call and supports per-operation failure injection

Usage:
    from tests.utils import AlertFactory, FakeControlPlane

    plane = FakeControlPlane()
    vm = plane.add_virtual_machine(ResourceFactory.create_vm())
    watcher = plane.add_network_watcher(ResourceFactory.create_watcher("eastus"))
    plane.add_captures(watcher, [("old", T1), ("new", T2)])
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from alertcapture.config.settings import Settings
from alertcapture.integrations.azure import ControlPlaneError
from alertcapture.models.alert import AlertContext
from alertcapture.models.constants import OSType
from alertcapture.models.resources import (
    AgentDescriptor,
    ComputeTarget,
    NetworkWatcher,
    PacketCapture,
    PacketCaptureStatus,
    ResourceGroup,
    StorageTarget,
)

SUBSCRIPTION_ID = "00000000-0000-0000-0000-000000000001"
VM_ID = (
    f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/app-rg"
    "/providers/Microsoft.Compute/virtualMachines/web-01"
)
STORAGE_ID = (
    f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/capture-rg"
    "/providers/Microsoft.Storage/storageAccounts/capturestore"
)
BASE_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class AlertFactory:
    """Factory for webhook payloads."""

    @staticmethod
    def create_context_fields(**overrides: Any) -> Dict[str, Any]:
        fields = {
            "subscriptionId": SUBSCRIPTION_ID,
            "resourceGroupName": "app-rg",
            "resourceRegion": "eastus",
            "resourceName": "web-01",
            "resourceId": VM_ID,
        }
        fields.update(overrides)
        return fields

    @staticmethod
    def create_metric_alert_payload(**overrides: Any) -> Dict[str, Any]:
        """Classic metric alert webhook: context at the top level."""
        return {
            "status": "Activated",
            "context": AlertFactory.create_context_fields(**overrides),
        }

    @staticmethod
    def create_wrapped_payload(**overrides: Any) -> Dict[str, Any]:
        """Payload with the context nested under a data wrapper."""
        return {
            "schemaId": "Microsoft.Insights/activityLogs",
            "data": {
                "status": "Activated",
                "context": AlertFactory.create_context_fields(**overrides),
            },
        }

    @staticmethod
    def create_webhook_envelope_payload(**overrides: Any) -> Dict[str, Any]:
        """Named webhook envelope with the alert under RequestBody."""
        return {
            "WebhookName": "alert",
            "RequestBody": {
                "status": "Activated",
                "context": AlertFactory.create_context_fields(**overrides),
                "properties": {},
            },
        }

    @staticmethod
    def create_context(**overrides: Any) -> AlertContext:
        return AlertContext(**AlertFactory.create_context_fields(**overrides))


class ResourceFactory:
    """Factory for cloud resource models."""

    @staticmethod
    def create_vm(name: str = "web-01", region: str = "eastus",
                  os_type: Optional[OSType] = OSType.WINDOWS, vm_id: Optional[str] = None) -> ComputeTarget:
        return ComputeTarget(
            id=vm_id or (
                f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/app-rg"
                f"/providers/Microsoft.Compute/virtualMachines/{name}"
            ),
            name=name,
            region=region,
            os_type=os_type,
        )

    @staticmethod
    def create_storage() -> StorageTarget:
        return StorageTarget(id=STORAGE_ID, name="capturestore")

    @staticmethod
    def create_watcher(region: str = "eastus", name: Optional[str] = None,
                       resource_group: str = "NetworkWatcherRG") -> NetworkWatcher:
        name = name or f"NetworkWatcher_{region}"
        return NetworkWatcher(
            id=(
                f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/{resource_group}"
                f"/providers/Microsoft.Network/networkWatchers/{name}"
            ),
            name=name,
            region=region,
            resource_group=resource_group,
        )

    @staticmethod
    def start_times(count: int) -> List[datetime]:
        """Ascending start times one minute apart."""
        return [BASE_TIME + timedelta(minutes=i) for i in range(count)]


class SettingsFactory:
    """Settings that ignore the process environment and .env files."""

    @staticmethod
    def create_settings(**overrides: Any) -> Settings:
        values = {
            "tenant_id": "tenant-123",
            "client_id": "client-456",
            "client_key": "secret-789",
            "packet_capture_storage_account": STORAGE_ID,
            "operation_poll_interval_seconds": 0,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)


class FakeControlPlane:
    """In-memory control plane with the AzureControlPlaneClient interface."""

    def __init__(self, subscription_id: str = SUBSCRIPTION_ID) -> None:
        self.subscription_id = subscription_id
        self.virtual_machines: Dict[str, ComputeTarget] = {}
        self.storage_accounts: Dict[str, StorageTarget] = {}
        self.resource_groups: Dict[str, ResourceGroup] = {}
        self.network_watchers: List[NetworkWatcher] = []
        self.extensions: Dict[str, List[AgentDescriptor]] = {}
        self.captures: Dict[str, List[PacketCapture]] = {}
        self.start_times: Dict[Tuple[str, str], Optional[datetime]] = {}
        self.failures: Dict[str, ControlPlaneError] = {}
        self.calls: List[Tuple[str, tuple]] = []
        self.closed = False

    # -- setup helpers -------------------------------------------------

    def fail(self, operation: str, status_code: int = 500, error_code: str = "InternalServerError") -> None:
        self.failures[operation] = ControlPlaneError(
            f"{operation} failed with HTTP {status_code}",
            operation=operation,
            status_code=status_code,
            error_code=error_code,
        )

    def add_virtual_machine(self, vm: ComputeTarget) -> ComputeTarget:
        self.virtual_machines[vm.id] = vm
        self.extensions.setdefault(vm.id, [])
        return vm

    def add_storage_account(self, storage: StorageTarget) -> StorageTarget:
        self.storage_accounts[storage.id] = storage
        return storage

    def add_network_watcher(self, watcher: NetworkWatcher) -> NetworkWatcher:
        self.network_watchers.append(watcher)
        self.captures.setdefault(watcher.id, [])
        return watcher

    def add_captures(self, watcher: NetworkWatcher,
                     entries: Sequence[Tuple[str, Optional[datetime]]]) -> None:
        for name, start_time in entries:
            self.captures.setdefault(watcher.id, []).append(PacketCapture(name=name))
            self.start_times[(watcher.id, name)] = start_time

    def pool(self, watcher: NetworkWatcher) -> List[str]:
        return [capture.name for capture in self.captures.get(watcher.id, [])]

    def call_count(self, operation: str) -> int:
        return sum(1 for op, _ in self.calls if op == operation)

    def _record(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, args))
        if operation in self.failures:
            raise self.failures[operation]

    @staticmethod
    def _not_found(operation: str, resource: str) -> ControlPlaneError:
        return ControlPlaneError(
            f"{operation} failed with HTTP 404: {resource} not found",
            operation=operation,
            status_code=404,
            error_code="ResourceNotFound",
        )

    # -- control plane interface ---------------------------------------

    async def get_subscription(self) -> Dict[str, Any]:
        self._record("get_subscription")
        return {"subscriptionId": self.subscription_id, "state": "Enabled"}

    async def get_virtual_machine(self, resource_id: str) -> ComputeTarget:
        self._record("get_virtual_machine", resource_id)
        if resource_id not in self.virtual_machines:
            raise self._not_found("get_virtual_machine", resource_id)
        return self.virtual_machines[resource_id]

    async def get_storage_account(self, resource_id: str) -> StorageTarget:
        self._record("get_storage_account", resource_id)
        if resource_id not in self.storage_accounts:
            raise self._not_found("get_storage_account", resource_id)
        return self.storage_accounts[resource_id]

    async def get_resource_group(self, name: str) -> ResourceGroup:
        self._record("get_resource_group", name)
        if name not in self.resource_groups:
            raise self._not_found("get_resource_group", name)
        return self.resource_groups[name]

    async def create_resource_group(self, name: str, region: str) -> ResourceGroup:
        self._record("create_resource_group", name, region)
        group = ResourceGroup(
            id=f"/subscriptions/{self.subscription_id}/resourceGroups/{name}",
            name=name,
            region=region,
        )
        self.resource_groups[name] = group
        return group

    async def list_network_watchers(self) -> List[NetworkWatcher]:
        self._record("list_network_watchers")
        return list(self.network_watchers)

    async def create_network_watcher(self, name: str, region: str, resource_group: str) -> NetworkWatcher:
        self._record("create_network_watcher", name, region, resource_group)
        watcher = ResourceFactory.create_watcher(region=region, name=name, resource_group=resource_group)
        # PUT semantics: same name replaces, never duplicates
        self.network_watchers = [w for w in self.network_watchers if w.id != watcher.id]
        return self.add_network_watcher(watcher)

    async def list_vm_extensions(self, vm_id: str) -> List[AgentDescriptor]:
        self._record("list_vm_extensions", vm_id)
        return list(self.extensions.get(vm_id, []))

    async def create_vm_extension(self, vm_id: str, region: str, descriptor: AgentDescriptor) -> AgentDescriptor:
        self._record("create_vm_extension", vm_id, region, descriptor)
        self.extensions.setdefault(vm_id, []).append(descriptor)
        return descriptor

    async def list_packet_captures(self, watcher: NetworkWatcher) -> List[PacketCapture]:
        self._record("list_packet_captures", watcher.id)
        return list(self.captures.get(watcher.id, []))

    async def get_packet_capture_status(self, watcher: NetworkWatcher, name: str) -> PacketCaptureStatus:
        self._record("get_packet_capture_status", watcher.id, name)
        return PacketCaptureStatus(
            name=name,
            capture_start_time=self.start_times.get((watcher.id, name)),
            status="Stopped",
        )

    async def delete_packet_capture(self, watcher: NetworkWatcher, name: str) -> None:
        self._record("delete_packet_capture", watcher.id, name)
        self.captures[watcher.id] = [c for c in self.captures.get(watcher.id, []) if c.name != name]

    async def create_packet_capture(self, watcher: NetworkWatcher, name: str, target_id: str,
                                    storage_id: str, time_limit_seconds: int) -> PacketCapture:
        self._record("create_packet_capture", watcher.id, name, target_id, storage_id, time_limit_seconds)
        capture = PacketCapture(
            name=name,
            target_id=target_id,
            storage_id=storage_id,
            time_limit_seconds=time_limit_seconds,
            provisioning_state="Succeeded",
        )
        self.captures.setdefault(watcher.id, []).append(capture)
        self.start_times[(watcher.id, name)] = None
        return capture

    async def close(self) -> None:
        self.closed = True
