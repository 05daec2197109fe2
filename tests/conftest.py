"""
Global pytest configuration and fixtures for all tests.

Every remote dependency is replaced by FakeControlPlane or an
httpx.MockTransport, so no test reaches a real control plane.
"""

import os

import pytest

# Keep stray credentials in the developer's shell out of cached settings
for _var in ("TENANT_ID", "CLIENT_ID", "CLIENT_KEY", "PACKET_CAPTURE_STORAGE_ACCOUNT"):
    os.environ.pop(_var, None)

from alertcapture.config.settings import get_settings  # noqa: E402
from tests.utils import (  # noqa: E402
    AlertFactory,
    FakeControlPlane,
    ResourceFactory,
    SettingsFactory,
)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Make every test see freshly loaded settings."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings():
    """Settings with complete, fake credentials."""
    return SettingsFactory.create_settings()


@pytest.fixture
def control_plane():
    """Control plane holding one Windows VM in eastus and the capture storage account."""
    plane = FakeControlPlane()
    plane.add_virtual_machine(ResourceFactory.create_vm())
    plane.add_storage_account(ResourceFactory.create_storage())
    return plane


@pytest.fixture
def alert_payload():
    """A valid metric alert payload targeting the fixture VM."""
    return AlertFactory.create_metric_alert_payload()
