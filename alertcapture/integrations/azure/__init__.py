from .auth import AccessToken, ServicePrincipalAuthenticator
from .client import AzureControlPlaneClient
from .exceptions import ControlPlaneError

__all__ = [
    "AccessToken",
    "AzureControlPlaneClient",
    "ControlPlaneError",
    "ServicePrincipalAuthenticator",
]
