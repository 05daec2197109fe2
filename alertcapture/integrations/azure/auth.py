"""
Service principal authentication against the Microsoft identity platform.
"""

from dataclasses import dataclass

import httpx

from alertcapture.integrations.azure.exceptions import ControlPlaneError
from alertcapture.utils.logger import get_module_logger
from alertcapture.utils.timestamp import now_utc

logger = get_module_logger(__name__)


@dataclass(frozen=True)
class AccessToken:
    """Bearer token for control plane requests."""

    token: str
    expires_on: int


class ServicePrincipalAuthenticator:
    """Acquires client-credential tokens for a service principal."""

    OPERATION = "authenticate"

    def __init__(self, http_client: httpx.AsyncClient, authority_host: str,
                 tenant_id: str, client_id: str, client_secret: str) -> None:
        self.client = http_client
        self.authority_host = authority_host.rstrip("/")
        self.tenant_id = tenant_id
        self.client_id = client_id
        self._client_secret = client_secret

    @property
    def token_url(self) -> str:
        return f"{self.authority_host}/{self.tenant_id}/oauth2/v2.0/token"

    async def acquire_token(self, resource: str) -> AccessToken:
        """
        Request a token scoped to a resource endpoint.

        Args:
            resource: Resource endpoint, e.g. https://management.azure.com

        Returns:
            AccessToken for the resource

        Raises:
            ControlPlaneError: If the identity platform is unreachable or rejects the request
        """
        data = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self._client_secret,
            "scope": f"{resource.rstrip('/')}/.default",
        }
        logger.debug(f"Requesting token for client {self.client_id} in tenant {self.tenant_id}")
        try:
            response = await self.client.post(self.token_url, data=data)
        except httpx.HTTPError as e:
            raise ControlPlaneError(
                f"{self.OPERATION} failed: {str(e)}", operation=self.OPERATION
            ) from e

        if response.status_code != 200:
            raise ControlPlaneError.from_response(response, self.OPERATION)

        try:
            body = response.json()
            token = body.get("access_token")
            expires_in = int(body.get("expires_in", 0))
        except (ValueError, TypeError, AttributeError) as e:
            raise ControlPlaneError(
                f"{self.OPERATION} failed: unreadable token response: {str(e)}",
                operation=self.OPERATION,
                status_code=response.status_code,
            ) from e

        if not token:
            raise ControlPlaneError(
                f"{self.OPERATION} failed: token response carried no access_token",
                operation=self.OPERATION,
                status_code=response.status_code,
            )
        return AccessToken(token=token, expires_on=int(now_utc().timestamp()) + expires_in)
