"""BIG-IP appliance management client (iControl REST)"""

import logging
import socket
from typing import Dict, List, Optional

import requests
import urllib3

from .exceptions import ApplianceError

logger = logging.getLogger(__name__)

MGMT_PORTS = [443, 8443]

ENDPOINTS = {
    "global_settings": "/mgmt/tm/sys/global-settings",
    "traffic_groups": "/mgmt/tm/cm/traffic-group/stats",
    "self_addresses": "/mgmt/tm/net/self",
    "virtual_addresses": "/mgmt/tm/ltm/virtual-address",
}
BASH_ENDPOINT = "/mgmt/tm/util/bash"


class Device:
    """Represents the BIG-IP this process runs on (or manages)"""

    DEFAULT_TIMEOUT = 30
    CONNECT_TIMEOUT = 3

    def __init__(
        self,
        hostname: str = "localhost",
        username: str = "admin",
        password: Optional[str] = None,
        port: Optional[int] = None,
        timeout: int = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            hostname: Management address of the BIG-IP
            username: iControl REST user
            password: iControl REST password
            port: Management port; discovered from MGMT_PORTS when None
            timeout: Request timeout in seconds
            session: Optional requests session (for testing)
        """
        self.hostname = hostname
        self.username = username
        self.password = password if password is not None else "admin"
        self.port = port
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.auth = (self.username, self.password)
        # BIG-IP management interfaces ship with self-signed certificates
        self.session.verify = False
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        self.global_settings: Dict = {}
        self.traffic_groups: Dict = {}
        self.self_addresses: List[Dict] = []
        self.virtual_addresses: List[Dict] = []

    @classmethod
    def from_config(cls, config) -> "Device":
        return cls(
            hostname=config.device_host,
            username=config.device_username,
            password=config.device_password,
            port=config.device_port,
        )

    @property
    def base_url(self) -> str:
        return f"https://{self.hostname}:{self.port}"

    def init(self) -> None:
        """
        Discover the management port and fetch the failover topology

        Raises:
            ApplianceError: If the device cannot be reached or queried
        """
        if self.port is None:
            self.port = self.discover_mgmt_port()

        self.global_settings = self._get(ENDPOINTS["global_settings"])
        self.traffic_groups = self._get(ENDPOINTS["traffic_groups"])
        self.self_addresses = self._get(ENDPOINTS["self_addresses"]).get("items", [])
        self.virtual_addresses = self._get(ENDPOINTS["virtual_addresses"]).get("items", [])
        logger.debug(
            f"Fetched {len(self.self_addresses)} self IPs and "
            f"{len(self.virtual_addresses)} virtual addresses from {self.hostname}"
        )

    def discover_mgmt_port(self) -> int:
        """Return the first management port (in MGMT_PORTS order) accepting connections"""
        for port in MGMT_PORTS:
            try:
                with socket.create_connection((self.hostname, port), self.CONNECT_TIMEOUT):
                    return port
            except OSError:
                logger.debug(f"Management port {port} not reachable on {self.hostname}")
        raise ApplianceError(f"Port discovery failed for {self.hostname}")

    def _request(self, method: str, path: str, **kwargs) -> Dict:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            raise ApplianceError(f"{method} {path} failed: {e}")
        except ValueError:
            raise ApplianceError(f"{method} {path} returned invalid JSON")

    def _get(self, path: str) -> Dict:
        return self._request("GET", path)

    def get_global_settings(self) -> Dict:
        return self.global_settings

    def get_traffic_groups_stats(self) -> Dict:
        return self.traffic_groups

    def get_self_addresses(self) -> List[Dict]:
        return self.self_addresses

    def get_virtual_addresses(self) -> List[Dict]:
        return self.virtual_addresses

    def execute_bash_command(self, command: str) -> Optional[str]:
        """
        Run a bash command on the BIG-IP

        Args:
            command: Command line, passed to bash -c

        Returns:
            Command output
        """
        body = {"command": "run", "utilCmdArgs": f"-c '{command}'"}
        return self._request("POST", BASH_ENDPOINT, json=body).get("commandResult")
