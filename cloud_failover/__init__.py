"""
Cloud Failover Package

Moves BIG-IP failover addresses and routes between cloud instances when a
traffic group becomes active, coordinating through a shared task state
record in external storage.
"""

__version__ = "1.0.0"

from .failover import FailoverClient, FailoverPhase
from .config import Config
from .exceptions import (
    ApplyError,
    CloudFailoverError,
    ConfigurationError,
    DiscoveryError,
    ProviderError,
    StorageError,
    TaskTimeoutError,
)

__all__ = [
    "FailoverClient",
    "FailoverPhase",
    "Config",
    "CloudFailoverError",
    "ConfigurationError",
    "DiscoveryError",
    "ApplyError",
    "ProviderError",
    "StorageError",
    "TaskTimeoutError",
]
