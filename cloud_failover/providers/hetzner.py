"""Hetzner Cloud provider: floating IPs, alias IPs and network routes"""

import asyncio
import ipaddress
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from hcloud import Client
from hcloud.floating_ips.domain import FloatingIP
from hcloud.networks.domain import Network, NetworkRoute
from hcloud.servers.domain import Server

from ..constants import CLOUD_PROVIDERS, STORAGE_FOLDER_NAME
from ..exceptions import ConfigurationError, ProviderError, StorageError
from ..metadata import MetadataService
from .base import CloudProvider, label_selector


def _in_network(address: str, network: str) -> bool:
    try:
        return ipaddress.ip_address(address) in ipaddress.ip_network(network, strict=False)
    except ValueError:
        return False


def _in_ranges(destination: str, ranges: List[str]) -> bool:
    if not ranges:
        return True
    dest = ipaddress.ip_network(destination, strict=False)
    for address_range in ranges:
        scope = ipaddress.ip_network(address_range, strict=False)
        if dest.version == scope.version and dest.subnet_of(scope):
            return True
    return False


class HetznerProvider(CloudProvider):
    """
    Moves floating IPs, alias IPs and network routes to this server

    Address plan:
        {"floating_ips": [{"id", "ip", "server"}],
         "alias_ips": [{"server", "network", "alias_ips"}]}
    Alias IP changes are ordered so that peers release an address before
    this server claims it.

    Route plan:
        {"routes": [{"network", "destination", "old_gateway", "new_gateway"}]}

    The task state is kept as a JSON file in a directory shared by the pair.
    """

    environment = CLOUD_PROVIDERS["HETZNER"]

    def __init__(self, logger=None, metadata_service: Optional[MetadataService] = None):
        super().__init__(logger)
        self.metadata_service = metadata_service or MetadataService()
        self.client = None
        self.server_id = None
        self.tags: Dict[str, str] = {}
        self.route_tags: Dict[str, str] = {}
        self.route_ranges: List[str] = []
        self.storage_dir: Optional[Path] = None

    async def init(self, config) -> None:
        if not config.hetzner_api_token:
            raise ConfigurationError("Required field 'hetzner.api_token' missing in config")
        if not config.storage_path:
            raise ConfigurationError("Required field 'external_storage.path' missing in config")

        self.client = Client(token=config.hetzner_api_token)
        self.tags = config.failover_address_tags
        self.route_tags = config.failover_route_tags
        self.route_ranges = config.failover_route_ranges
        self.storage_dir = Path(config.storage_path) / STORAGE_FOLDER_NAME

        self.server_id = config.hetzner_server_id
        if self.server_id is None:
            self.server_id = await asyncio.to_thread(self.metadata_service.get_server_id)
        self.logger.info(f"Initialized for server ID: {self.server_id}")

    def _get_server(self):
        try:
            server = self.client.servers.get_by_id(self.server_id)
        except Exception as e:
            raise ProviderError(f"Failed to get server {self.server_id}: {e}")
        if server is None:
            raise ProviderError(f"Server with ID {self.server_id} not found")
        return server

    # Addresses

    async def update_addresses(
        self,
        local_addresses=None,
        failover_addresses=None,
        discover_only=False,
        update_operations=None,
    ) -> Any:
        if discover_only:
            return await asyncio.to_thread(
                self._discover_addresses, failover_addresses or []
            )
        await asyncio.to_thread(self._apply_addresses, update_operations)
        return None

    def _discover_addresses(self, failover_addresses: List[str]) -> Dict[str, List]:
        server = self._get_server()
        return {
            "floating_ips": self._discover_floating_ips(failover_addresses),
            "alias_ips": self._discover_alias_ips(server, failover_addresses),
        }

    def _discover_floating_ips(self, failover_addresses: List[str]) -> List[Dict]:
        if not self.tags:
            self.logger.warning("No failover_addresses.scoping_tags configured")
            return []

        floating_ips = self.client.floating_ips.get_all(
            label_selector=label_selector(self.tags)
        )
        self.logger.info(f"Found {len(floating_ips)} floating IPs matching labels")

        operations = []
        for fip in floating_ips:
            if not any(_in_network(address, fip.ip) for address in failover_addresses):
                continue
            if fip.server and fip.server.id == self.server_id:
                self.logger.info(f"Floating IP {fip.ip} already assigned to this server")
                continue
            operations.append({"id": fip.id, "ip": fip.ip, "server": self.server_id})
        return operations

    def _discover_alias_ips(self, server, failover_addresses: List[str]) -> List[Dict]:
        releases = []
        claims = []
        for pnet in server.private_net or []:
            network = self.client.networks.get_by_id(pnet.network.id)
            current = list(pnet.alias_ips or [])
            wanted = [
                address
                for address in failover_addresses
                if _in_network(address, network.ip_range)
                and address != pnet.ip
                and address not in current
            ]
            if not wanted:
                continue

            releases.extend(self._discover_alias_releases(network.id, wanted))
            claims.append(
                {
                    "server": self.server_id,
                    "network": network.id,
                    "alias_ips": sorted(set(current) | set(wanted)),
                }
            )
        return releases + claims

    def _discover_alias_releases(self, network_id: int, wanted: List[str]) -> List[Dict]:
        if not self.tags:
            return []
        releases = []
        peers = self.client.servers.get_all(label_selector=label_selector(self.tags))
        for peer in peers:
            if peer.id == self.server_id:
                continue
            for pnet in peer.private_net or []:
                if pnet.network.id != network_id:
                    continue
                held = list(pnet.alias_ips or [])
                remaining = [address for address in held if address not in wanted]
                if len(remaining) != len(held):
                    releases.append(
                        {"server": peer.id, "network": network_id, "alias_ips": remaining}
                    )
        return releases

    def _apply_addresses(self, operations: Optional[Dict[str, List]]) -> None:
        if not operations:
            self.logger.info("No address operations to apply")
            return

        for op in operations.get("alias_ips", []):
            self.logger.info(
                f"Setting alias IPs {op['alias_ips']} on server {op['server']} "
                f"network {op['network']}"
            )
            action = self.client.servers.change_alias_ips(
                Server(id=op["server"]), Network(id=op["network"]), op["alias_ips"]
            )
            action.wait_until_finished()

        for op in operations.get("floating_ips", []):
            self.logger.info(
                f"Assigning floating IP {op['ip']} (ID: {op['id']}) to server {op['server']}"
            )
            action = self.client.floating_ips.assign(
                FloatingIP(id=op["id"]), Server(id=op["server"])
            )
            action.wait_until_finished()

    # Routes

    async def update_routes(
        self, local_addresses=None, discover_only=False, update_operations=None
    ) -> Any:
        if discover_only:
            return await asyncio.to_thread(self._discover_routes, local_addresses or [])
        await asyncio.to_thread(self._apply_routes, update_operations)
        return None

    def _discover_routes(self, local_addresses: List[str]) -> Dict[str, List]:
        if not self.route_tags:
            self.logger.warning("No failover_routes.scoping_tags configured")
            return {"routes": []}

        server = self._get_server()
        own_ips = {pnet.network.id: pnet.ip for pnet in server.private_net or []}
        networks = self.client.networks.get_all(label_selector=label_selector(self.route_tags))

        operations = []
        for network in networks:
            gateways = [a for a in local_addresses if _in_network(a, network.ip_range)]
            new_gateway = gateways[0] if gateways else own_ips.get(network.id)
            if new_gateway is None:
                self.logger.warning(f"Server is not attached to network {network.name}")
                continue

            for route in network.routes or []:
                if not _in_ranges(route.destination, self.route_ranges):
                    continue
                if route.gateway == new_gateway or route.gateway in local_addresses:
                    continue
                operations.append(
                    {
                        "network": network.id,
                        "destination": route.destination,
                        "old_gateway": route.gateway,
                        "new_gateway": new_gateway,
                    }
                )
        return {"routes": operations}

    def _apply_routes(self, operations: Optional[Dict[str, List]]) -> None:
        if not operations:
            self.logger.info("No route operations to apply")
            return

        for op in operations.get("routes", []):
            network = Network(id=op["network"])
            self.logger.info(
                f"Moving route {op['destination']} from {op['old_gateway']} "
                f"to {op['new_gateway']}"
            )
            self.client.networks.delete_route(
                network, NetworkRoute(op["destination"], op["old_gateway"])
            ).wait_until_finished()
            self.client.networks.add_route(
                network, NetworkRoute(op["destination"], op["new_gateway"])
            ).wait_until_finished()

    # Storage

    async def upload_data_to_storage(self, key: str, data: Dict[str, Any]) -> None:
        await asyncio.to_thread(self._write_json, self.storage_dir / key, data)

    async def download_data_from_storage(self, key: str) -> Optional[Dict[str, Any]]:
        return await asyncio.to_thread(self._read_json, self.storage_dir / key)

    @staticmethod
    def _write_json(path: Path, data: Dict[str, Any]) -> None:
        tmp_path = path.with_name(f".{path.name}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w") as f:
                json.dump(data, f)
            os.replace(tmp_path, path)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}")

    @staticmethod
    def _read_json(path: Path) -> Optional[Dict[str, Any]]:
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to read {path}: {e}")
        if not isinstance(data, dict):
            raise StorageError(f"Expected a JSON object in {path}, got {type(data).__name__}")
        return data
