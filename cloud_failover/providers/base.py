"""Cloud provider capability shared by every provider implementation"""

import abc
import logging
from typing import Any, Dict, List, Optional


class CloudProvider(abc.ABC):
    """
    Interface the failover engine uses to talk to a cloud

    Plans returned in discover mode are opaque to the engine: they are
    persisted as JSON and handed back unmodified in apply mode.
    """

    environment: str = ""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    @abc.abstractmethod
    async def init(self, config) -> None:
        """Prepare API clients and resolve this instance's identity"""

    @abc.abstractmethod
    async def update_addresses(
        self,
        local_addresses: Optional[List[str]] = None,
        failover_addresses: Optional[List[str]] = None,
        discover_only: bool = False,
        update_operations: Any = None,
    ) -> Any:
        """Discover an address plan, or apply one when discover_only is False"""

    @abc.abstractmethod
    async def update_routes(
        self,
        local_addresses: Optional[List[str]] = None,
        discover_only: bool = False,
        update_operations: Any = None,
    ) -> Any:
        """Discover a route plan, or apply one when discover_only is False"""

    @abc.abstractmethod
    async def upload_data_to_storage(self, key: str, data: Dict[str, Any]) -> None:
        """Store a JSON document under key"""

    @abc.abstractmethod
    async def download_data_from_storage(self, key: str) -> Optional[Dict[str, Any]]:
        """Fetch the JSON document stored under key, or None if there is none"""


def label_selector(labels: Dict[str, str]) -> str:
    """Render a label dict as a comma separated key=value selector"""
    return ",".join(f"{key}={value}" for key, value in sorted(labels.items()))
