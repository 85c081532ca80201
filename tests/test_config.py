"""Tests for configuration module"""

import pytest

from cloud_failover.config import Config
from cloud_failover.exceptions import ConfigurationError


class TestConfig:
    """Test suite for Config class"""

    def test_load_valid_config(self, tmp_path):
        """Test loading a valid configuration file"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("""
environment: Hetzner
hetzner:
  api_token: test_token_123
  server_id: 12345
failover_addresses:
  scoping_tags:
    f5_cloud_failover_label: mydeployment
failover_routes:
  scoping_tags:
    f5_cloud_failover_label: mydeployment
  scoping_address_ranges:
    - 192.168.1.0/24
external_storage:
  path: /mnt/failover
device:
  host: 10.0.0.10
  username: failover
  password: secret
  port: 8443
log_level: DEBUG
log_file: /var/log/test.log
        """)

        config = Config(str(config_file))

        assert config.environment == "hetzner"
        assert config.hetzner_api_token == "test_token_123"
        assert config.hetzner_server_id == 12345
        assert config.failover_address_tags == {"f5_cloud_failover_label": "mydeployment"}
        assert config.failover_route_ranges == ["192.168.1.0/24"]
        assert config.storage_path == "/mnt/failover"
        assert config.device_host == "10.0.0.10"
        assert config.device_username == "failover"
        assert config.device_port == 8443
        assert config.log_level == "DEBUG"
        assert config.log_file == "/var/log/test.log"

    def test_minimal_config(self, tmp_path):
        """Test loading minimal valid configuration"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("environment: hetzner")

        config = Config(str(config_file))

        assert config.environment == "hetzner"
        assert config.hetzner_api_token is None
        assert config.hetzner_server_id is None
        assert config.failover_address_tags == {}
        assert config.failover_route_tags == {}
        assert config.failover_route_ranges == []
        assert config.device_host == "localhost"
        assert config.device_username == "admin"
        assert config.device_port is None
        assert config.log_level == "INFO"
        assert config.log_file is None

    def test_missing_environment_is_allowed_at_load(self, tmp_path):
        """Test that environment is checked when failover runs, not at load"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("log_level: WARNING")

        assert Config(str(config_file)).environment is None

    def test_file_not_found(self):
        """Test that non-existent file raises error"""
        with pytest.raises(ConfigurationError, match="Config file not found"):
            Config("/nonexistent/path/config.yaml")

    def test_invalid_yaml(self, tmp_path):
        """Test that invalid YAML raises error"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("invalid: yaml: content: [")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            Config(str(config_file))

    def test_empty_config(self, tmp_path):
        """Test that empty config file raises error"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        with pytest.raises(ConfigurationError, match="Config file is empty"):
            Config(str(config_file))

    def test_invalid_log_level(self, tmp_path):
        """Test that invalid log level raises error"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("""
environment: hetzner
log_level: INVALID
        """)

        with pytest.raises(ConfigurationError, match="Invalid log_level"):
            Config(str(config_file))

    def test_invalid_scoping_tags(self, tmp_path):
        """Test that scoping tags must be a mapping"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("""
failover_addresses:
  scoping_tags:
    - not-a-mapping
        """)

        with pytest.raises(ConfigurationError, match="must be a mapping"):
            Config(str(config_file))

    def test_invalid_address_range(self, tmp_path):
        """Test that route scoping ranges must be networks"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("""
failover_routes:
  scoping_address_ranges:
    - 192.168.1.0/33
        """)

        with pytest.raises(ConfigurationError, match="Invalid address range"):
            Config(str(config_file))

    def test_to_dict(self, tmp_path):
        """Test configuration export to dictionary"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("""
environment: hetzner
hetzner:
  api_token: secret_token
device:
  password: secret_password
external_storage:
  path: /mnt/failover
        """)

        config = Config(str(config_file))
        config_dict = config.to_dict()

        assert config_dict['has_api_token'] is True
        assert config_dict['has_device_password'] is True
        assert config_dict['storage_path'] == "/mnt/failover"
        # Ensure secrets are not exposed
        assert 'secret_token' not in str(config_dict)
        assert 'secret_password' not in str(config_dict)
