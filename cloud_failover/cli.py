"""Command-line interface for cloud failover"""

import sys
import json
import asyncio
import argparse
from pathlib import Path
from typing import Optional

from . import __version__
from .config import Config
from .failover import FailoverClient
from .exceptions import CloudFailoverError
from .triggers import install_trigger_scripts


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser"""
    parser = argparse.ArgumentParser(
        prog='cloud-failover',
        description='Cloud failover of BIG-IP addresses and routes',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Execute failover with default config
  %(prog)s

  # Execute failover with custom config
  %(prog)s -c /etc/cloud-failover/config.yaml

  # Dry run mode (discover the plan without applying it)
  %(prog)s --dry-run

  # Show the stored task state
  %(prog)s --status

  # Install the tgactive/tgrefresh trigger scripts on the BIG-IP
  %(prog)s --install-trigger
        """
    )

    parser.add_argument(
        '-c', '--config',
        default=Config.DEFAULT_CONFIG_PATH,
        help=f'Path to configuration file (default: {Config.DEFAULT_CONFIG_PATH})'
    )

    action = parser.add_mutually_exclusive_group()
    action.add_argument(
        '--dry-run',
        action='store_true',
        help='Discover the failover plan without making changes'
    )
    action.add_argument(
        '--status',
        action='store_true',
        help='Print the stored task state and exit'
    )
    action.add_argument(
        '--install-trigger',
        action='store_true',
        help='Install failover trigger scripts on the BIG-IP'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    return parser


def dry_run(client: FailoverClient) -> int:
    """
    Discover and print the failover plan

    Args:
        client: FailoverClient instance

    Returns:
        Exit code (0 for success)
    """
    operations = asyncio.run(client.discover_only())

    print("=" * 60)
    print("DRY RUN - Failover Discovery")
    print("=" * 60)
    print(f"Instance: {client.hostname}")
    print(f"Environment: {client.config.environment}")
    print(f"\nLocal addresses: {', '.join(client.addresses.local_addresses) or '(none)'}")
    print(f"Failover addresses: {', '.join(client.addresses.failover_addresses) or '(none)'}")
    print("\nPlanned operations:")
    print(json.dumps(operations.to_dict(), indent=2))
    print("\nRun without --dry-run to execute failover")
    return 0


def show_status(client: FailoverClient) -> int:
    """Print the stored task state"""
    state = asyncio.run(client.get_task_state())
    if state is None:
        print("No task state recorded yet")
    else:
        print(json.dumps(state, indent=2))
    return 0


def install_trigger(client: FailoverClient) -> int:
    """Install the trigger scripts on the appliance"""
    client.device.init()
    installed = install_trigger_scripts(
        client.device, str(Path(client.config.config_path).resolve())
    )
    for name, path in installed.items():
        print(f"Installed {name} trigger at {path}")
    return 0


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for CLI

    Args:
        argv: Optional command line arguments (for testing)

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = Config(args.config)
        client = FailoverClient(config)

        if args.dry_run:
            return dry_run(client)
        if args.status:
            return show_status(client)
        if args.install_trigger:
            return install_trigger(client)

        asyncio.run(client.execute())
        return 0

    except CloudFailoverError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
