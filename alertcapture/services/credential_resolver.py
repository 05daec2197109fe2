"""
Credential resolution for the Azure control plane.
"""

from typing import Optional

import httpx

from alertcapture.config.settings import Settings
from alertcapture.exceptions import AuthError, CredentialError
from alertcapture.integrations.azure import (
    AzureControlPlaneClient,
    ControlPlaneError,
    ServicePrincipalAuthenticator,
)
from alertcapture.utils.logger import get_module_logger

logger = get_module_logger(__name__)


class CredentialResolver:
    """Turns configured service principal secrets into a subscription-scoped client."""

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None) -> None:
        self.settings = settings
        self.http_client = http_client

    async def resolve(self, subscription_id: str) -> AzureControlPlaneClient:
        """
        Authenticate and verify access to a subscription.

        Args:
            subscription_id: Subscription named by the alert context

        Returns:
            Authenticated AzureControlPlaneClient. The caller must close it.

        Raises:
            CredentialError: If tenant id, client id or client key is blank
            AuthError: If authentication fails or the subscription is not accessible
        """
        missing = self.settings.missing_credentials()
        if missing:
            logger.error("Service credentials are null. Check connection string settings")
            raise CredentialError(
                f"Service credentials are not configured: {', '.join(missing)}",
                missing_config=missing,
            )

        owns_client = self.http_client is None
        http_client = self.http_client or httpx.AsyncClient(timeout=self.settings.http_timeout_seconds)
        try:
            authenticator = ServicePrincipalAuthenticator(
                http_client,
                authority_host=self.settings.authority_host,
                tenant_id=self.settings.tenant_id,
                client_id=self.settings.client_id,
                client_secret=self.settings.client_key,
            )
            logger.debug("Getting Credentials")
            token = await authenticator.acquire_token(self.settings.arm_endpoint)

            client = AzureControlPlaneClient(
                http_client,
                subscription_id=subscription_id,
                access_token=token.token,
                arm_endpoint=self.settings.arm_endpoint,
                poll_interval_seconds=self.settings.operation_poll_interval_seconds,
                owns_client=owns_client,
            )
            await client.get_subscription()
        except ControlPlaneError as e:
            if owns_client:
                await http_client.aclose()
            logger.error(f"Issues logging into Azure subscription: {subscription_id}: {e}")
            raise AuthError(
                f"Unable to log into Azure subscription {subscription_id}: {str(e)}",
                context=e.to_dict(),
            ) from e
        except Exception:
            # No handle reaches the caller, so nobody else can close the client
            if owns_client:
                await http_client.aclose()
            raise

        logger.debug("Azure Credentials successfully created")
        return client
