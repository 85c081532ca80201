"""Classification of appliance addresses into local and failover sets"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AddressRecord:
    """A self address with its traffic group and whether that group is local"""

    address: str
    traffic_group: str
    traffic_group_match: bool


@dataclass
class FailoverAddresses:
    """Addresses that stay with this appliance and addresses that must move"""

    local_addresses: List[str] = field(default_factory=list)
    failover_addresses: List[str] = field(default_factory=list)


def _strip_route_domain(address: str) -> str:
    return address.split("%")[0]


def _strip_prefix(address: str) -> str:
    return address.split("/")[0]


def _matches_local_group(traffic_group: str, local_groups: Iterable[str]) -> bool:
    return any(traffic_group in name for name in local_groups)


def local_traffic_groups(traffic_group_stats: Dict, hostname: str) -> Set[str]:
    """
    Get the traffic groups that are active on this device

    A traffic group is local when its owning device name contains the
    hostname and its failover state is "active".

    Args:
        traffic_group_stats: Traffic group stats as returned by the appliance
        hostname: Hostname of this appliance

    Returns:
        Set of local traffic group names
    """
    groups = set()
    entries = (traffic_group_stats or {}).get("entries", {})
    for entry in entries.values():
        stats = entry["nestedStats"]["entries"]
        device_name = stats["deviceName"]["description"]
        failover_state = stats["failoverState"]["description"]
        if hostname in device_name and failover_state == "active":
            groups.add(stats["trafficGroup"]["description"])
    return groups


def classify_self_addresses(
    self_addresses: List[Dict], local_groups: Iterable[str]
) -> List[AddressRecord]:
    """
    Flag every self address with whether its traffic group is local

    Args:
        self_addresses: Self IP items as returned by the appliance
        local_groups: Names of the local traffic groups

    Returns:
        List of AddressRecord, one per self address
    """
    local_groups = list(local_groups)
    records = []
    for item in self_addresses:
        records.append(
            AddressRecord(
                address=_strip_route_domain(_strip_prefix(item["address"])),
                traffic_group=item["trafficGroup"],
                traffic_group_match=_matches_local_group(
                    item["trafficGroup"], local_groups
                ),
            )
        )
    return records


def classify_virtual_addresses(
    virtual_addresses: List[Dict], local_groups: Iterable[str]
) -> List[str]:
    """
    Get virtual addresses whose traffic group is local

    Virtual addresses on other traffic groups are dropped.

    Args:
        virtual_addresses: Virtual address items as returned by the appliance
        local_groups: Names of the local traffic groups

    Returns:
        List of addresses
    """
    if not virtual_addresses:
        logger.warning("No virtual addresses exist, create them prior to failover.")
        return []

    local_groups = list(local_groups)
    addresses = []
    for item in virtual_addresses:
        if _matches_local_group(item["trafficGroup"], local_groups):
            addresses.append(_strip_route_domain(item["address"]))
    return addresses


def partition_failover_addresses(
    self_records: List[AddressRecord], virtual_addresses: List[str]
) -> FailoverAddresses:
    """Split addresses into those that stay local and those that fail over"""
    result = FailoverAddresses()
    for record in self_records:
        if record.traffic_group_match:
            result.failover_addresses.append(record.address)
        else:
            result.local_addresses.append(record.address)
    result.failover_addresses.extend(virtual_addresses)
    return result
