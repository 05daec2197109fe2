"""
Application settings and configuration management.
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from alertcapture.models.constants import NETWORK_WATCHER_AGENT_WINDOWS


class Settings(BaseSettings):
    """Application settings."""

    # Server Configuration
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    log_level: str = Field(default="INFO")
    max_payload_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Maximum accepted webhook body size in bytes"
    )

    # Service Principal Credentials
    tenant_id: str = Field(default="", description="Directory (tenant) identifier")
    client_id: str = Field(default="", description="Service principal application identifier")
    client_key: str = Field(default="", description="Service principal client secret")

    @field_validator('tenant_id', 'client_id', 'client_key', 'packet_capture_storage_account', mode='after')
    @classmethod
    def strip_secrets(cls, v: str) -> str:
        """Strip whitespace so blank-looking values are treated as missing."""
        return v.strip() if v else v

    # Capture Configuration
    packet_capture_storage_account: str = Field(
        default="",
        description="Resource id of the storage account receiving capture files"
    )
    max_packet_captures: int = Field(
        default=10,
        ge=1,
        description="Maximum number of captures kept on a network watcher"
    )
    capture_time_limit_seconds: int = Field(
        default=15,
        ge=1,
        description="Duration of each packet capture in seconds"
    )
    capture_name_max_length: int = Field(
        default=50,
        ge=1,
        description="Maximum number of target-name characters used in a capture name"
    )

    # Network Watcher Configuration
    network_watcher_resource_group: str = Field(
        default="NetworkWatcherRG",
        description="Resource group that hosts network watchers created by this service"
    )
    network_watcher_name_prefix: str = Field(
        default="NetworkWatcher_",
        description="Prefix of network watcher names; the lower-cased region is appended"
    )
    network_watcher_extension_name: str = Field(default="packetcapture")
    network_watcher_extension_version: str = Field(default="1.4")
    default_agent_type: str = Field(
        default=NETWORK_WATCHER_AGENT_WINDOWS,
        description="Agent type installed when the VM's OS family cannot be determined"
    )

    # Control Plane Configuration
    arm_endpoint: str = Field(default="https://management.azure.com")
    authority_host: str = Field(default="https://login.microsoftonline.com")
    http_timeout_seconds: float = Field(
        default=60.0,
        description="Timeout applied to each control plane HTTP request"
    )
    operation_poll_interval_seconds: float = Field(
        default=5.0,
        description="Fallback delay between long-running operation polls when no Retry-After is sent"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        # Allow extra fields to be ignored for backward compatibility
        extra="ignore"
    )

    def missing_credentials(self) -> List[str]:
        """Names of service principal settings that are blank."""
        return [
            name for name in ("tenant_id", "client_id", "client_key")
            if not getattr(self, name)
        ]


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
