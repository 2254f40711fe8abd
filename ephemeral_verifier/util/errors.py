class EphemeralVerifierError(Exception):
    """Base class for every error raised by this package."""
    pass


class ConfigurationError(EphemeralVerifierError):
    """A required configuration value is missing."""
    pass


class UnknownProviderError(ConfigurationError):
    """The configured compute provider isn't supported."""
    pass


class ProvisioningError(EphemeralVerifierError):
    """The provider refused to create an instance, or replied with an incomplete
    payload."""
    pass


class QueryError(EphemeralVerifierError):
    """The provider couldn't report the status of an instance."""
    pass


class TransitionError(EphemeralVerifierError):
    """The provider refused to start, stop or terminate an instance."""
    pass


class WaitTimeoutError(EphemeralVerifierError):
    """An instance didn't reach the expected state in time."""
    pass
