"""Custom exception hierarchy for EC2 membership discovery."""


class DiscoveryError(Exception):
    """Base exception for all discovery errors."""


class ConfigurationError(DiscoveryError):
    """Invalid or missing configuration, including malformed filter strings."""


class IdentityResolutionError(DiscoveryError):
    """The instance metadata endpoint was unreachable or returned a non-200 status."""

    def __init__(self, message: str, status_code: int | None = None, path: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.path = path


class CloudApiError(DiscoveryError):
    """A describe-instances call failed. Fails the current round only."""


class AddressConstructionWarning(DiscoveryError):
    """An instance's private IP could not be turned into a member address."""
