"""Configuration management for cloud failover"""

import ipaddress
import yaml
from pathlib import Path
from typing import Dict, List, Optional
from .exceptions import ConfigurationError


class Config:
    """Configuration manager for cloud failover"""

    DEFAULT_LOG_LEVEL = "INFO"
    DEFAULT_CONFIG_PATH = "/etc/cloud-failover/config.yaml"
    DEFAULT_DEVICE_HOST = "localhost"
    DEFAULT_DEVICE_USERNAME = "admin"
    TAG_SECTIONS = ["failover_addresses", "failover_routes", "external_storage"]

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration from file

        Args:
            config_path: Path to YAML configuration file

        Raises:
            ConfigurationError: If configuration is invalid or missing
        """
        self.config_path = config_path or self.DEFAULT_CONFIG_PATH
        self._config = self._load_config()
        self._validate()

    def _load_config(self) -> Dict:
        """Load configuration from YAML file"""
        config_file = Path(self.config_path)

        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {self.config_path}")

        try:
            with open(config_file, 'r') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file: {e}")
        except OSError as e:
            raise ConfigurationError(f"Failed to read config file: {e}")

        if config is None:
            raise ConfigurationError("Config file is empty")
        if not isinstance(config, dict):
            raise ConfigurationError("Config file must contain a mapping")

        return config

    def _validate(self):
        """Validate configuration values"""
        log_level = str(self._config.get('log_level', self.DEFAULT_LOG_LEVEL))
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if log_level.upper() not in valid_levels:
            raise ConfigurationError(
                f"Invalid log_level '{log_level}'. Must be one of: {', '.join(valid_levels)}"
            )

        for section in self.TAG_SECTIONS:
            tags = self._section(section).get('scoping_tags', {})
            if not isinstance(tags, dict):
                raise ConfigurationError(f"'{section}.scoping_tags' must be a mapping")

        for address_range in self.failover_route_ranges:
            try:
                ipaddress.ip_network(address_range, strict=False)
            except ValueError:
                raise ConfigurationError(
                    f"Invalid address range in 'failover_routes.scoping_address_ranges': "
                    f"{address_range}"
                )

    def _section(self, name: str) -> Dict:
        return self._config.get(name) or {}

    @property
    def environment(self) -> Optional[str]:
        """Get the cloud environment (provider name)"""
        environment = self._config.get('environment')
        return str(environment).lower() if environment else None

    @property
    def hetzner_api_token(self) -> Optional[str]:
        """Get Hetzner Cloud API token"""
        return self._section('hetzner').get('api_token')

    @property
    def hetzner_server_id(self) -> Optional[int]:
        """Get a fixed Hetzner server ID (skips the metadata service)"""
        server_id = self._section('hetzner').get('server_id')
        return int(server_id) if server_id is not None else None

    @property
    def failover_address_tags(self) -> Dict[str, str]:
        """Get label filters scoping the addresses to fail over"""
        return self._section('failover_addresses').get('scoping_tags', {})

    @property
    def failover_route_tags(self) -> Dict[str, str]:
        """Get label filters scoping the networks whose routes fail over"""
        return self._section('failover_routes').get('scoping_tags', {})

    @property
    def failover_route_ranges(self) -> List[str]:
        """Get route destination ranges to fail over (all routes if empty)"""
        return self._section('failover_routes').get('scoping_address_ranges', [])

    @property
    def storage_path(self) -> Optional[str]:
        """Get the shared directory holding the task state"""
        return self._section('external_storage').get('path')

    @property
    def storage_tags(self) -> Dict[str, str]:
        """Get label filters scoping the external storage"""
        return self._section('external_storage').get('scoping_tags', {})

    @property
    def device_host(self) -> str:
        return self._section('device').get('host', self.DEFAULT_DEVICE_HOST)

    @property
    def device_username(self) -> str:
        return self._section('device').get('username', self.DEFAULT_DEVICE_USERNAME)

    @property
    def device_password(self) -> Optional[str]:
        return self._section('device').get('password')

    @property
    def device_port(self) -> Optional[int]:
        """Get the management port (discovered when not set)"""
        port = self._section('device').get('port')
        return int(port) if port is not None else None

    @property
    def log_file(self) -> Optional[str]:
        """Get log file path"""
        return self._config.get('log_file')

    @property
    def log_level(self) -> str:
        """Get log level"""
        return str(self._config.get('log_level', self.DEFAULT_LOG_LEVEL)).upper()

    def to_dict(self) -> Dict:
        """Export configuration as dictionary (excluding sensitive data)"""
        return {
            'environment': self.environment,
            'failover_address_tags': self.failover_address_tags,
            'failover_route_tags': self.failover_route_tags,
            'failover_route_ranges': self.failover_route_ranges,
            'storage_path': self.storage_path,
            'device_host': self.device_host,
            'log_file': self.log_file,
            'log_level': self.log_level,
            'has_api_token': bool(self.hetzner_api_token),
            'has_device_password': bool(self.device_password),
        }
