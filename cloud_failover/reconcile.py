"""Two-phase (discover, then apply) reconciliation of addresses and routes"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .exceptions import ApplyError, DiscoveryError

logger = logging.getLogger(__name__)


@dataclass
class FailoverOperations:
    """Failover plans per domain, opaque to everything but the provider"""

    addresses: Any = None
    routes: Any = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "FailoverOperations":
        data = data or {}
        return cls(addresses=data.get("addresses"), routes=data.get("routes"))

    def to_dict(self) -> Dict[str, Any]:
        return {"addresses": self.addresses, "routes": self.routes}

    def is_empty(self) -> bool:
        return self.addresses is None and self.routes is None


class _DomainFailure(Exception):
    def __init__(self, domain: str, error: Exception):
        super().__init__(domain, error)
        self.domain = domain
        self.error = error


async def _gather_domains(coros: Dict[str, Any]) -> Dict[str, Any]:
    """Await every domain, then return results or the first failure by domain"""
    names = list(coros)
    results = await asyncio.gather(*coros.values(), return_exceptions=True)
    outcome = dict(zip(names, results))
    for name in names:
        result = outcome[name]
        if isinstance(result, Exception):
            raise _DomainFailure(name, result)
        if isinstance(result, BaseException):
            raise result
    return outcome


async def discover(
    provider, local_addresses: List[str], failover_addresses: List[str]
) -> FailoverOperations:
    """
    Compute what a failover would change, without changing anything

    Args:
        provider: Initialized cloud provider
        local_addresses: Addresses that stay with this appliance
        failover_addresses: Addresses that must move to this appliance

    Returns:
        FailoverOperations holding one plan per domain

    Raises:
        DiscoveryError: If discovery failed for either domain
    """
    logger.info("Performing Failover - discovery")
    try:
        plans = await _gather_domains(
            {
                "addresses": provider.update_addresses(
                    local_addresses=local_addresses,
                    failover_addresses=failover_addresses,
                    discover_only=True,
                ),
                "routes": provider.update_routes(
                    local_addresses=local_addresses, discover_only=True
                ),
            }
        )
    except _DomainFailure as failure:
        raise DiscoveryError(
            f"Failed to discover {failure.domain}: {failure.error}",
            domain=failure.domain,
        ) from failure.error

    return FailoverOperations(addresses=plans["addresses"], routes=plans["routes"])


async def apply(provider, operations: FailoverOperations) -> None:
    """
    Apply previously discovered plans

    Raises:
        ApplyError: If applying failed for either domain
    """
    logger.info("Performing Failover - update")
    try:
        await _gather_domains(
            {
                "addresses": provider.update_addresses(
                    update_operations=operations.addresses
                ),
                "routes": provider.update_routes(update_operations=operations.routes),
            }
        )
    except _DomainFailure as failure:
        raise ApplyError(
            f"Failed to update {failure.domain}: {failure.error}",
            domain=failure.domain,
            operations=operations.to_dict(),
        ) from failure.error
