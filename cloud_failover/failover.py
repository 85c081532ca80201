"""Failover orchestration: poll, discover, apply and record the task state"""

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

from . import reconcile
from .addresses import (
    FailoverAddresses,
    classify_self_addresses,
    classify_virtual_addresses,
    local_traffic_groups,
    partition_failover_addresses,
)
from .config import Config
from .constants import STATE_FAILED, STATE_RUNNING, STATE_SUCCEEDED
from .device import Device
from .exceptions import ApplianceError, CloudFailoverError, ConfigurationError
from .logger import setup_logger
from .providers import get_cloud_provider
from .reconcile import FailoverOperations
from .recovery import TaskAction, TaskPoller
from .state import TaskStateStore, new_task_state


class FailoverPhase(str, Enum):
    """Where a single execution currently is"""

    START = "START"
    POLLING = "POLLING"
    DISCOVERING = "DISCOVERING"
    APPLYING = "APPLYING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class FailoverClient:
    """
    Moves addresses and routes to this appliance

    Only one execution should run at a time per FailoverClient. Executions
    on different appliances coordinate through the shared task state
    record, which is advisory: two appliances that load the record at the
    same moment can both proceed.
    """

    def __init__(
        self,
        config: Config,
        device: Optional[Device] = None,
        provider_factory: Callable = get_cloud_provider,
        poller_factory: Callable = TaskPoller,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize failover client

        Args:
            config: Configuration object
            device: Optional appliance client (for testing)
            provider_factory: Callable returning a CloudProvider for an environment
            poller_factory: Callable returning a TaskPoller for a TaskStateStore
            logger: Optional logger instance (for testing)
        """
        self.config = config
        self.device = device or Device.from_config(config)
        self.provider_factory = provider_factory
        self.poller_factory = poller_factory
        self.logger = logger or setup_logger(
            "cloud_failover", log_level=config.log_level, log_file=config.log_file
        )
        self._reset()

    def _reset(self):
        self.phase = FailoverPhase.START
        self.cloud_provider = None
        self.store: Optional[TaskStateStore] = None
        self.hostname: Optional[str] = None
        self.addresses = FailoverAddresses()
        self.operations = FailoverOperations()

    async def _initialize(self):
        if not self.config.environment:
            raise ConfigurationError("Environment not provided")

        self.cloud_provider = self.provider_factory(
            self.config.environment, logger=self.logger
        )
        await self.cloud_provider.init(self.config)
        self.store = TaskStateStore(self.cloud_provider)
        await asyncio.to_thread(self.device.init)
        self.hostname = self.device.get_global_settings().get("hostname")
        if not self.hostname:
            raise ApplianceError("Hostname not found in global settings")

    async def _save_state(self, task_state: str, operations: Optional[FailoverOperations] = None):
        record = new_task_state(
            task_state,
            instance=self.hostname,
            operations=operations.to_dict() if operations else None,
        )
        try:
            await self.store.save(record)
        except Exception as e:
            self.logger.error(f"uploadDataToStorage error: {e}")
            raise

    def _classify_addresses(self) -> FailoverAddresses:
        groups = local_traffic_groups(self.device.get_traffic_groups_stats(), self.hostname)
        self_records = classify_self_addresses(self.device.get_self_addresses(), groups)
        virtual_addresses = classify_virtual_addresses(
            self.device.get_virtual_addresses(), groups
        )
        return partition_failover_addresses(self_records, virtual_addresses)

    async def _discover(self):
        self.phase = FailoverPhase.DISCOVERING
        await self._save_state(STATE_RUNNING)

        self.addresses = self._classify_addresses()
        self.logger.info(
            f"Local addresses: {self.addresses.local_addresses}, "
            f"failover addresses: {self.addresses.failover_addresses}"
        )
        self.operations = await reconcile.discover(
            self.cloud_provider,
            self.addresses.local_addresses,
            self.addresses.failover_addresses,
        )
        await self._save_state(STATE_RUNNING, self.operations)

    async def _recover(self, operations: FailoverOperations):
        self.logger.warning(f"Recovering previous task: {operations.to_dict()}")
        self.operations = operations
        await self._save_state(STATE_RUNNING, self.operations)

    async def _apply(self):
        self.phase = FailoverPhase.APPLYING
        await reconcile.apply(self.cloud_provider, self.operations)

    async def execute(self):
        """
        Execute a complete failover

        Raises:
            CloudFailoverError: If any step fails; the task state is
                recorded as FAILED (when possible) before raising
        """
        self._reset()
        self.logger.info("=" * 60)
        self.logger.info("Starting failover process")
        self.logger.info("=" * 60)

        try:
            await self._initialize()

            self.phase = FailoverPhase.POLLING
            decision = await self.poller_factory(self.store).wait_for_task()
            self.logger.debug(f"Task response: {decision}")

            recovered = FailoverOperations.from_dict(decision.operations)
            if decision.action == TaskAction.RECOVER and not recovered.is_empty():
                await self._recover(recovered)
            else:
                if decision.action == TaskAction.RECOVER:
                    self.logger.warning("Previous task left no operations, running discovery")
                await self._discover()

            await self._apply()
            await self._save_state(STATE_SUCCEEDED)
        except Exception as e:
            self.phase = FailoverPhase.FAILED
            self.logger.error(f"failover.execute() error: {e}")
            await self._record_failure()
            if isinstance(e, CloudFailoverError):
                e.hostname = e.hostname or self.hostname
                if e.operations is None and not self.operations.is_empty():
                    e.operations = self.operations.to_dict()
            raise

        self.phase = FailoverPhase.SUCCEEDED
        self.logger.info("=" * 60)
        self.logger.info("Failover complete")
        self.logger.info("=" * 60)

    async def _record_failure(self):
        if self.store is None:
            return
        try:
            await self._save_state(STATE_FAILED, self.operations)
        except Exception as e:
            self.logger.error(f"Failed to record failed task state: {e}")

    async def discover_only(self) -> FailoverOperations:
        """
        Compute the failover plans without applying them

        The task state record is neither read nor written.
        """
        self._reset()
        await self._initialize()
        self.addresses = self._classify_addresses()
        self.operations = await reconcile.discover(
            self.cloud_provider,
            self.addresses.local_addresses,
            self.addresses.failover_addresses,
        )
        return self.operations

    async def get_task_state(self) -> Optional[dict]:
        """Return the stored task state record, or None"""
        if not self.config.environment:
            raise ConfigurationError("Environment not provided")
        provider = self.provider_factory(self.config.environment, logger=self.logger)
        await provider.init(self.config)
        return await TaskStateStore(provider).load()
