"""Decide whether a run starts fresh, resumes a previous task, or waits"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from .constants import (
    POLL_INTERVAL_SECONDS,
    POLL_MAX_ATTEMPTS,
    RUNNING_TASK_MAX_AGE,
    STATE_FAILED,
    STATE_SUCCEEDED,
)
from .exceptions import TaskTimeoutError
from .state import TaskStateStore, parse_timestamp

logger = logging.getLogger(__name__)


class TaskAction(str, Enum):
    """Outcome of evaluating the persisted task state"""

    FRESH = "fresh"
    RECOVER = "recover"
    WAIT = "wait"


@dataclass
class TaskDecision:
    """Evaluation result, with the record it was derived from"""

    action: TaskAction
    state: Optional[Dict[str, Any]] = None

    @property
    def operations(self) -> Dict[str, Any]:
        return (self.state or {}).get("operations") or {}


def evaluate_task_state(
    record: Optional[Dict[str, Any]],
    now: Optional[datetime] = None,
    max_age: timedelta = RUNNING_TASK_MAX_AGE,
) -> TaskDecision:
    """
    Evaluate a loaded task state record

    Args:
        record: Task state record, or None if none exists yet
        now: Current time (defaults to utcnow)
        max_age: Age after which a RUNNING task is considered abandoned

    Returns:
        TaskDecision
    """
    if not record or not record.get("taskState"):
        return TaskDecision(TaskAction.FRESH, record)

    task_state = record["taskState"]
    if task_state == STATE_SUCCEEDED:
        return TaskDecision(TaskAction.FRESH, record)
    if task_state == STATE_FAILED:
        return TaskDecision(TaskAction.RECOVER, record)

    now = now or datetime.now(timezone.utc)
    try:
        elapsed = now - parse_timestamp(record["timestamp"])
    except (AttributeError, KeyError, TypeError, ValueError):
        logger.warning(
            f"Running task has no usable timestamp: {record.get('timestamp')!r}"
        )
        return TaskDecision(TaskAction.WAIT, record)

    if elapsed >= max_age:
        logger.error(f"Time drift exceeded maximum limit: {elapsed}")
        return TaskDecision(TaskAction.RECOVER, record)
    return TaskDecision(TaskAction.WAIT, record)


class TaskPoller:
    """Polls the task state until it is safe to proceed"""

    def __init__(
        self,
        store: TaskStateStore,
        max_attempts: int = POLL_MAX_ATTEMPTS,
        interval: float = POLL_INTERVAL_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.max_attempts = max_attempts
        self.interval = interval
        self.sleep = sleep
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def wait_for_task(self) -> TaskDecision:
        """
        Wait until no other task is running

        Returns:
            First decision that is not WAIT

        Raises:
            TaskTimeoutError: If every attempt still reported WAIT
            StorageError: If the state record cannot be read
        """
        decision = None
        for attempt in range(1, self.max_attempts + 1):
            record = await self.store.load()
            decision = evaluate_task_state(record, now=self.clock())
            if decision.action != TaskAction.WAIT:
                logger.debug(f"Task check resolved to {decision.action.value}")
                return decision

            logger.debug(
                f"Task still running (attempt {attempt}/{self.max_attempts}), "
                f"retrying in {self.interval}s"
            )
            if attempt < self.max_attempts:
                await self.sleep(self.interval)

        state = (decision.state if decision else None) or {}
        raise TaskTimeoutError(
            f"Timed out waiting for running task after {self.max_attempts} attempts",
            attempts=self.max_attempts,
            hostname=state.get("instance"),
            operations=state.get("operations"),
        )
