"""Cloud provider implementations and the factory that selects one"""

from ..constants import CLOUD_PROVIDERS
from ..exceptions import ConfigurationError
from .base import CloudProvider
from .hetzner import HetznerProvider

PROVIDERS = {
    HetznerProvider.environment: HetznerProvider,
}


def get_cloud_provider(environment: str, logger=None, **kwargs) -> CloudProvider:
    """
    Create the provider for an environment

    Args:
        environment: Provider name from the configuration
        logger: Optional logger passed to the provider

    Raises:
        ConfigurationError: If no implementation exists for the environment
    """
    name = (environment or "").lower()
    provider_class = PROVIDERS.get(name)
    if provider_class is None:
        if name in CLOUD_PROVIDERS.values():
            raise ConfigurationError(
                f"Environment '{name}' is recognized but not supported by this "
                f"installation. Supported: {', '.join(sorted(PROVIDERS))}"
            )
        raise ConfigurationError(f"Unsupported environment: {environment}")
    return provider_class(logger=logger, **kwargs)


__all__ = ["CloudProvider", "HetznerProvider", "PROVIDERS", "get_cloud_provider"]
