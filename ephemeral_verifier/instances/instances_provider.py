import importlib

from ephemeral_verifier.instances.compute_client import ComputeClient
from ephemeral_verifier.util.credentials import ProviderCredentials
from ephemeral_verifier.util.errors import UnknownProviderError

DEFAULT_PROVIDER = "aws"


def create_client(credentials: ProviderCredentials, config=None) -> ComputeClient:
    """Instantiate an API client for the configured compute provider.

    The client should be created once and shared by every operation performed on
    behalf of the same set of credentials.

    Args:
        credentials (ProviderCredentials): The resolved credentials.
        config (dict): The parsed configuration.

    Returns:
        The instantiated client.

    Raises:
        UnknownProviderError: The configured compute provider isn't supported.
    """
    instances_config = (config or {}).get("instances") or {}

    provider = instances_config.get("provider", DEFAULT_PROVIDER)
    args = instances_config.get("args") or {}

    try:
        provider_import_path = "ephemeral_verifier.instances.providers.%s" % provider
        provider_module = importlib.import_module(provider_import_path)
    except ModuleNotFoundError as e:
        # Only the provider module itself being absent means the provider is unknown.
        if e.name != provider_import_path:
            raise
        raise UnknownProviderError("Unsupported compute provider %s" % provider)

    return provider_module.provider_client_class(credentials, args)
