"""Custom exceptions for cloud failover"""

from typing import Any, Dict, Optional


class CloudFailoverError(Exception):
    """Base exception for cloud failover errors

    Carries optional context (appliance hostname, last known operations)
    so that a failed run can be investigated and resumed by hand.
    """

    def __init__(
        self,
        message: str,
        hostname: Optional[str] = None,
        operations: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.hostname = hostname
        self.operations = operations

    def __str__(self) -> str:
        details = []
        if self.hostname:
            details.append(f"instance={self.hostname}")
        if self.operations:
            details.append(f"operations={self.operations}")
        if not details:
            return self.message
        return f"{self.message} ({', '.join(details)})"


class ConfigurationError(CloudFailoverError):
    """Exception raised for missing or invalid configuration"""
    pass


class DiscoveryError(CloudFailoverError):
    """Exception raised when the provider fails to discover a failover plan"""

    def __init__(self, message: str, domain: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.domain = domain


class ApplyError(CloudFailoverError):
    """Exception raised when the provider fails to apply a failover plan"""

    def __init__(self, message: str, domain: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.domain = domain


class StorageError(CloudFailoverError):
    """Exception raised when the task state cannot be read or written"""
    pass


class TaskTimeoutError(CloudFailoverError):
    """Exception raised when a running task never finished or went stale"""

    def __init__(self, message: str, attempts: int = 0, **kwargs):
        super().__init__(message, **kwargs)
        self.attempts = attempts


class ApplianceError(CloudFailoverError):
    """Exception raised for appliance management API errors"""
    pass


class MetadataError(CloudFailoverError):
    """Exception raised for metadata service errors"""
    pass


class ProviderError(CloudFailoverError):
    """Exception raised when the cloud provider cannot be set up"""
    pass
