"""Failover trigger scripts run by the BIG-IP when a traffic group goes active"""

import base64
import logging
import shlex
from typing import Dict

from .constants import TRIGGER_PATHS

logger = logging.getLogger(__name__)

TRIGGER_SCRIPT_TEMPLATE = """#!/bin/sh
# Installed by cloud-failover. Runs on traffic group state changes.
logger -p local0.info "cloud-failover: triggering failover"
nohup {command} >/dev/null 2>&1 &
"""


def generate_trigger_script(config_path: str, executable: str = "cloud-failover") -> str:
    """
    Build the trigger script that starts a failover in the background

    Args:
        config_path: Configuration file passed to the failover command
        executable: Failover command on the appliance

    Returns:
        Shell script contents
    """
    command = f"{shlex.quote(executable)} -c {shlex.quote(config_path)}"
    return TRIGGER_SCRIPT_TEMPLATE.format(command=command)


def install_trigger_scripts(device, config_path: str, executable: str = "cloud-failover") -> Dict[str, str]:
    """
    Write the trigger script to every trigger path on the appliance

    The script travels base64 encoded so that it survives bash -c quoting.

    Args:
        device: Initialized appliance client
        config_path: Configuration file passed to the failover command
        executable: Failover command on the appliance

    Returns:
        Mapping of trigger name to installed path
    """
    script = generate_trigger_script(config_path, executable)
    encoded = base64.b64encode(script.encode()).decode()

    installed = {}
    for name, path in TRIGGER_PATHS.items():
        logger.info(f"Installing {name} trigger script at {path}")
        device.execute_bash_command(
            f"echo {encoded} | base64 -d > {path} && chmod 755 {path}"
        )
        installed[name] = path
    return installed
