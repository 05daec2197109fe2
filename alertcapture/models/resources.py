"""
Cloud resource models used by the capture pipeline.

Each model knows how to build itself from the Azure Resource Manager JSON
representation of the resource, keeping the raw payload shape out of the
services.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from alertcapture.models.constants import OSType
from alertcapture.utils.timestamp import parse_arm_timestamp


def normalize_region(region: str) -> str:
    """
    Canonical form of a region name.

    Only the representation is normalized ("East US" and "eastus" are the
    same region); distinct regions never compare equal.
    """
    return "".join(region.split()).lower()


def _properties(payload: Dict[str, Any]) -> Dict[str, Any]:
    return payload.get("properties") or {}


class AgentDescriptor(BaseModel):
    """An extension installed (or to be installed) on a virtual machine."""

    model_config = ConfigDict(frozen=True)

    name: str
    publisher: str
    type: str
    version: Optional[str] = None

    @classmethod
    def from_arm(cls, payload: Dict[str, Any]) -> AgentDescriptor:
        props = _properties(payload)
        return cls(
            name=payload.get("name", ""),
            publisher=props.get("publisher", ""),
            type=props.get("type", ""),
            version=props.get("typeHandlerVersion"),
        )


class ComputeTarget(BaseModel):
    """Virtual machine the capture is attached to."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    region: str
    os_type: Optional[OSType] = None
    installed_agents: FrozenSet[AgentDescriptor] = Field(default_factory=frozenset)

    @classmethod
    def from_arm(cls, payload: Dict[str, Any]) -> ComputeTarget:
        os_disk = _properties(payload).get("storageProfile", {}).get("osDisk", {})
        os_type = None
        raw_os_type = os_disk.get("osType")
        if raw_os_type:
            os_type = next(
                (member for member in OSType if member.value.lower() == str(raw_os_type).lower()),
                None,
            )
        # Extensions are embedded in the VM payload as child resources
        agents = frozenset(
            AgentDescriptor.from_arm(resource)
            for resource in payload.get("resources") or []
            if "/extensions/" in resource.get("id", "").lower()
        )
        return cls(
            id=payload["id"],
            name=payload["name"],
            region=payload["location"],
            os_type=os_type,
            installed_agents=agents,
        )


class StorageTarget(BaseModel):
    """Storage account that receives capture files."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str

    @classmethod
    def from_arm(cls, payload: Dict[str, Any]) -> StorageTarget:
        return cls(id=payload["id"], name=payload["name"])


class ResourceGroup(BaseModel):
    """Resource group hosting network watchers."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    region: str

    @classmethod
    def from_arm(cls, payload: Dict[str, Any]) -> ResourceGroup:
        return cls(id=payload["id"], name=payload["name"], region=payload["location"])


class NetworkWatcher(BaseModel):
    """Regional diagnostics endpoint that hosts packet captures."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    region: str
    resource_group: str

    @classmethod
    def from_arm(cls, payload: Dict[str, Any]) -> NetworkWatcher:
        return cls(
            id=payload["id"],
            name=payload["name"],
            region=payload["location"],
            resource_group=resource_group_from_id(payload["id"]),
        )

    def is_in_region(self, region: str) -> bool:
        return normalize_region(self.region) == normalize_region(region)


class PacketCapture(BaseModel):
    """A time-boxed packet capture registered on a network watcher."""

    model_config = ConfigDict(frozen=True)

    name: str
    target_id: Optional[str] = None
    storage_id: Optional[str] = None
    time_limit_seconds: Optional[int] = None
    provisioning_state: Optional[str] = None

    @classmethod
    def from_arm(cls, payload: Dict[str, Any]) -> PacketCapture:
        props = _properties(payload)
        return cls(
            name=payload["name"],
            target_id=props.get("target"),
            storage_id=(props.get("storageLocation") or {}).get("storageId"),
            time_limit_seconds=props.get("timeLimitInSeconds"),
            provisioning_state=props.get("provisioningState"),
        )


class PacketCaptureStatus(BaseModel):
    """Result of querying a packet capture's runtime status."""

    model_config = ConfigDict(frozen=True)

    name: str
    capture_start_time: Optional[datetime] = None
    status: Optional[str] = None
    stop_reason: Optional[str] = None

    @field_validator("capture_start_time", mode="before")
    @classmethod
    def parse_start_time(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_arm_timestamp(value)
        if isinstance(value, datetime) and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def from_arm(cls, payload: Dict[str, Any], name: Optional[str] = None) -> PacketCaptureStatus:
        return cls(
            name=payload.get("name") or name or "",
            capture_start_time=payload.get("captureStartTime"),
            status=payload.get("packetCaptureStatus"),
            stop_reason=payload.get("stopReason"),
        )


def resource_group_from_id(resource_id: str) -> str:
    """Extract the resource group name from an ARM resource id."""
    parts = resource_id.strip("/").split("/")
    lowered = [part.lower() for part in parts]
    if "resourcegroups" in lowered:
        index = lowered.index("resourcegroups")
        if index + 1 < len(parts):
            return parts[index + 1]
    return ""
