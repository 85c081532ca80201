"""Tests for CLI module"""

import pytest
from unittest.mock import AsyncMock, Mock, patch

from cloud_failover.addresses import FailoverAddresses
from cloud_failover.cli import main, create_parser
from cloud_failover.exceptions import ApplyError
from cloud_failover.reconcile import FailoverOperations


@pytest.fixture
def config_file(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("environment: hetzner")
    return config_file


class TestCLI:
    """Test suite for CLI functionality"""

    def test_parser_creation(self):
        """Test argument parser creation"""
        parser = create_parser()

        # Test default arguments
        args = parser.parse_args([])
        assert args.config == '/etc/cloud-failover/config.yaml'
        assert args.dry_run is False
        assert args.status is False
        assert args.install_trigger is False

    def test_parser_with_config(self):
        """Test parser with custom config"""
        parser = create_parser()
        args = parser.parse_args(['-c', '/custom/path.yaml'])

        assert args.config == '/custom/path.yaml'

    def test_parser_actions_are_exclusive(self):
        """Test that only one action flag may be given"""
        parser = create_parser()

        with pytest.raises(SystemExit):
            parser.parse_args(['--dry-run', '--status'])

    @patch('cloud_failover.cli.FailoverClient')
    @patch('cloud_failover.cli.Config')
    def test_main_success(self, mock_config, mock_client, config_file):
        """Test successful main execution"""
        mock_client_instance = Mock()
        mock_client_instance.execute = AsyncMock()
        mock_client.return_value = mock_client_instance

        exit_code = main(['-c', str(config_file)])

        assert exit_code == 0
        mock_config.assert_called_once_with(str(config_file))
        mock_client_instance.execute.assert_awaited_once()

    @patch('cloud_failover.cli.FailoverClient')
    @patch('cloud_failover.cli.Config')
    def test_main_failure(self, mock_config, mock_client, config_file, capsys):
        """Test main execution with failover failure"""
        mock_client_instance = Mock()
        mock_client_instance.execute = AsyncMock(
            side_effect=ApplyError("Failed to update routes: denied", domain="routes")
        )
        mock_client.return_value = mock_client_instance

        exit_code = main(['-c', str(config_file)])

        assert exit_code == 1
        assert "Error: Failed to update routes" in capsys.readouterr().err

    @patch('cloud_failover.cli.FailoverClient')
    @patch('cloud_failover.cli.Config')
    def test_main_unexpected_failure(self, mock_config, mock_client, config_file, capsys):
        """Test main execution with an unexpected exception"""
        mock_client_instance = Mock()
        mock_client_instance.execute = AsyncMock(side_effect=RuntimeError("boom"))
        mock_client.return_value = mock_client_instance

        exit_code = main(['-c', str(config_file)])

        assert exit_code == 1
        assert "Fatal error: boom" in capsys.readouterr().err

    @patch('cloud_failover.cli.FailoverClient')
    @patch('cloud_failover.cli.Config')
    def test_main_dry_run(self, mock_config, mock_client, config_file, capsys):
        """Test main execution in dry-run mode"""
        mock_client_instance = Mock()
        mock_client_instance.hostname = "bigip1.example.com"
        mock_client_instance.config.environment = "hetzner"
        mock_client_instance.addresses = FailoverAddresses(["10.0.0.1"], ["10.0.0.2"])
        mock_client_instance.discover_only = AsyncMock(
            return_value=FailoverOperations(addresses={"floating_ips": []}, routes=None)
        )
        mock_client.return_value = mock_client_instance

        exit_code = main(['-c', str(config_file), '--dry-run'])

        assert exit_code == 0
        mock_client_instance.execute.assert_not_called()
        captured = capsys.readouterr()
        assert "DRY RUN - Failover Discovery" in captured.out
        assert "bigip1.example.com" in captured.out
        assert "10.0.0.2" in captured.out
        assert "floating_ips" in captured.out

    @patch('cloud_failover.cli.FailoverClient')
    @patch('cloud_failover.cli.Config')
    def test_main_status(self, mock_config, mock_client, config_file, capsys):
        """Test printing the stored task state"""
        mock_client_instance = Mock()
        mock_client_instance.get_task_state = AsyncMock(
            return_value={"taskState": "FAILED", "instance": "bigip1"}
        )
        mock_client.return_value = mock_client_instance

        exit_code = main(['-c', str(config_file), '--status'])

        assert exit_code == 0
        assert '"taskState": "FAILED"' in capsys.readouterr().out

    @patch('cloud_failover.cli.FailoverClient')
    @patch('cloud_failover.cli.Config')
    def test_main_status_empty(self, mock_config, mock_client, config_file, capsys):
        """Test status before any task has run"""
        mock_client_instance = Mock()
        mock_client_instance.get_task_state = AsyncMock(return_value=None)
        mock_client.return_value = mock_client_instance

        assert main(['-c', str(config_file), '--status']) == 0
        assert "No task state recorded yet" in capsys.readouterr().out

    @patch('cloud_failover.cli.install_trigger_scripts')
    @patch('cloud_failover.cli.FailoverClient')
    @patch('cloud_failover.cli.Config')
    def test_main_install_trigger(self, mock_config, mock_client, mock_install, config_file, capsys):
        """Test installing trigger scripts"""
        mock_client_instance = Mock()
        mock_client_instance.config.config_path = str(config_file)
        mock_client.return_value = mock_client_instance
        mock_install.return_value = {"tgactive": "/config/failover/tgactive"}

        exit_code = main(['-c', str(config_file), '--install-trigger'])

        assert exit_code == 0
        mock_client_instance.device.init.assert_called_once()
        mock_install.assert_called_once_with(
            mock_client_instance.device, str(config_file.resolve())
        )
        assert "/config/failover/tgactive" in capsys.readouterr().out

    @patch('cloud_failover.cli.install_trigger_scripts')
    @patch('cloud_failover.cli.FailoverClient')
    @patch('cloud_failover.cli.Config')
    def test_main_install_trigger_resolves_relative_config(
        self, mock_config, mock_client, mock_install, config_file, monkeypatch
    ):
        """Test that the installed trigger points at an absolute config path"""
        monkeypatch.chdir(config_file.parent)
        mock_client_instance = Mock()
        mock_client_instance.config.config_path = "config.yaml"
        mock_client.return_value = mock_client_instance
        mock_install.return_value = {}

        exit_code = main(['-c', 'config.yaml', '--install-trigger'])

        assert exit_code == 0
        mock_install.assert_called_once_with(
            mock_client_instance.device, str(config_file.resolve())
        )

    def test_main_config_error(self):
        """Test main with configuration error"""
        exit_code = main(['-c', '/nonexistent/config.yaml'])

        assert exit_code == 1
