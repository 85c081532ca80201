"""Shared fixtures for cloud failover tests"""

import logging
from typing import Any, Dict, Optional
from unittest.mock import AsyncMock, Mock

import pytest

from cloud_failover.config import Config
from cloud_failover.device import Device
from cloud_failover.providers.base import CloudProvider

HOSTNAME = "bigip1.example.com"


def traffic_group_entry(group: str, device: str, state: str) -> Dict:
    return {
        "nestedStats": {
            "entries": {
                "deviceName": {"description": f"/Common/{device}"},
                "failoverState": {"description": state},
                "trafficGroup": {"description": group},
            }
        }
    }


def traffic_group_stats(*entries: Dict) -> Dict:
    return {
        "entries": {
            f"https://localhost/mgmt/tm/cm/traffic-group/stats/{i}": entry
            for i, entry in enumerate(entries)
        }
    }


class InMemoryProvider(CloudProvider):
    """Provider double keeping storage in a dict and recording plan calls"""

    environment = "memory"

    def __init__(self, logger=None):
        super().__init__(logger)
        self.storage: Dict[str, Any] = {}
        self.saved = []
        self.address_plan = {"floating_ips": [{"id": 1, "ip": "10.0.0.9"}]}
        self.route_plan = {"routes": [{"destination": "192.168.0.0/24"}]}
        self.init_mock = AsyncMock()
        self.discover_addresses = AsyncMock(side_effect=lambda **kw: self.address_plan)
        self.discover_routes = AsyncMock(side_effect=lambda **kw: self.route_plan)
        self.apply_addresses = AsyncMock()
        self.apply_routes = AsyncMock()
        self.upload_error: Optional[Exception] = None

    async def init(self, config) -> None:
        await self.init_mock(config)

    async def update_addresses(
        self, local_addresses=None, failover_addresses=None,
        discover_only=False, update_operations=None,
    ):
        if discover_only:
            return await self.discover_addresses(
                local_addresses=local_addresses, failover_addresses=failover_addresses
            )
        return await self.apply_addresses(update_operations)

    async def update_routes(
        self, local_addresses=None, discover_only=False, update_operations=None
    ):
        if discover_only:
            return await self.discover_routes(local_addresses=local_addresses)
        return await self.apply_routes(update_operations)

    async def upload_data_to_storage(self, key, data):
        if self.upload_error is not None:
            raise self.upload_error
        self.saved.append(data)
        self.storage[key] = data

    async def download_data_from_storage(self, key):
        return self.storage.get(key)


@pytest.fixture
def config(tmp_path):
    """Create a configuration for the in-memory environment"""
    config_file = tmp_path / "config.yaml"
    config_file.write_text("""
environment: memory
failover_addresses:
  scoping_tags:
    f5_cloud_failover_label: mydeployment
external_storage:
  path: /tmp/shared
    """)
    return Config(str(config_file))


@pytest.fixture
def provider():
    return InMemoryProvider()


@pytest.fixture
def mock_device():
    """Create a mock BIG-IP with one failover self IP and one virtual address"""
    device = Mock(spec=Device)
    device.get_global_settings.return_value = {"hostname": HOSTNAME}
    device.get_traffic_groups_stats.return_value = traffic_group_stats(
        traffic_group_entry("/Common/traffic-group-1", HOSTNAME, "active"),
        traffic_group_entry("/Common/traffic-group-1", "bigip2.example.com", "standby"),
    )
    device.get_self_addresses.return_value = [
        {"address": "10.0.0.1/24", "trafficGroup": "/Common/traffic-group-local-only"},
        {"address": "10.0.0.2/24%1", "trafficGroup": "/Common/traffic-group-1"},
    ]
    device.get_virtual_addresses.return_value = [
        {"address": "10.0.0.9%1", "trafficGroup": "/Common/traffic-group-1"},
    ]
    return device


@pytest.fixture
def mock_logger():
    """Create a mock logger"""
    return Mock(spec=logging.Logger)
