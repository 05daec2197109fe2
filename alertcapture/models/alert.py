"""
Alert data models for alertcapture.
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class AlertContext(BaseModel):
    """
    Subset of a monitoring webhook payload identifying the resource that fired.

    Built once per invocation from the payload's "context" object. Field
    aliases match the camelCase keys monitoring webhooks send.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    subscription_id: str = Field(..., alias="subscriptionId", min_length=1)
    resource_group_name: str = Field(..., alias="resourceGroupName", min_length=1)
    resource_region: str = Field(..., alias="resourceRegion", min_length=1)
    resource_name: str = Field(..., alias="resourceName", min_length=1)
    resource_id: str = Field(..., alias="resourceId", min_length=1)

    @classmethod
    def get_required_fields(cls) -> List[str]:
        """Payload keys that must be present and non-blank."""
        return [
            field_info.alias or field_name
            for field_name, field_info in cls.model_fields.items()
            if field_info.is_required()
        ]

    def describe(self) -> str:
        """Multi-line rendering used in log output."""
        return (
            f"SubscriptionID: {self.subscription_id}\n"
            f"ResourceGroupName: {self.resource_group_name}\n"
            f"ResourceRegion: {self.resource_region}\n"
            f"ResourceName: {self.resource_name}\n"
            f"ResourceId: {self.resource_id}"
        )
