"""Task state record and its persistence through external storage"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .constants import STATE_FILE_NAME, STATE_SUCCEEDED

logger = logging.getLogger(__name__)


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """Format a datetime as an ISO-8601 UTC string with millisecond precision"""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def parse_timestamp(value: str) -> datetime:
    """Parse a timestamp written by utc_timestamp (or any ISO-8601 string)"""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def new_task_state(
    task_state: str = STATE_SUCCEEDED,
    instance: Optional[str] = None,
    operations: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Build a fresh task state record

    Args:
        task_state: One of SUCCEEDED, FAILED, RUNNING
        instance: Hostname of the appliance writing the record
        operations: Failover plans keyed by domain ("addresses", "routes")
        now: Timestamp override (for testing)

    Returns:
        Task state dictionary, ready for JSON serialization
    """
    return {
        "taskState": task_state or STATE_SUCCEEDED,
        "timestamp": utc_timestamp(now),
        "instance": instance or "none",
        "operations": dict(operations) if operations else {},
    }


class TaskStateStore:
    """Reads and writes the task state record through a provider's storage"""

    def __init__(self, provider, key: str = STATE_FILE_NAME):
        """
        Args:
            provider: Cloud provider exposing upload/download storage methods
            key: Name of the state record in external storage
        """
        self.provider = provider
        self.key = key

    async def save(self, record: Dict[str, Any]) -> None:
        """Upload the record, replacing any previous one"""
        logger.debug(f"Saving task state: {record['taskState']}")
        await self.provider.upload_data_to_storage(self.key, record)

    async def load(self) -> Optional[Dict[str, Any]]:
        """Download the record, or None if none has been written yet"""
        data = await self.provider.download_data_from_storage(self.key)
        logger.debug(f"State file data: {data}")
        return data or None
