"""Hetzner Cloud instance metadata client"""

import requests
from .exceptions import MetadataError


class MetadataService:
    """Resolves the identity of the server this process runs on"""

    METADATA_BASE_URL = "http://169.254.169.254/hetzner/v1/metadata"
    DEFAULT_TIMEOUT = 5

    def __init__(self, base_url: str = METADATA_BASE_URL, timeout: int = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _fetch(self, path: str) -> str:
        url = f"{self.base_url}/{path}"
        try:
            response = requests.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.Timeout:
            raise MetadataError(
                f"Timeout reading {url}. Is this running on a Hetzner Cloud server?"
            )
        except requests.exceptions.RequestException as e:
            raise MetadataError(f"Failed to read {url}: {e}")
        return response.text.strip()

    def get_server_id(self) -> int:
        """
        Get the ID of this server

        Raises:
            MetadataError: If the metadata service is unreachable or the ID is invalid
        """
        value = self._fetch("instance-id")
        try:
            return int(value)
        except ValueError:
            raise MetadataError(f"Invalid server ID from metadata service: {value!r}")
