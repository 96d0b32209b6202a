"""
Per-subnet address utilization for the dashboard.

Used addresses are the union of explicit IPAM rows and devices whose
free-text IP falls inside the subnet, so a device that already has an IPAM
row is counted once. A bad record is skipped rather than failing the page.
"""
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from subnetly.exceptions import InvalidAddress
from subnetly.services.address_math import ip_to_int, mask_bits, usable_capacity

logger = logging.getLogger(__name__)


@dataclass
class SubnetUtilization:
    total_ips: int
    used_ips: int
    pct: int


def compute_utilization(subnet, explicit_addresses: Iterable, devices: Iterable) -> SubnetUtilization:
    """
    Args:
        subnet: object with ``prefix`` and ``mask``.
        explicit_addresses: IPAddress rows of this subnet (or plain strings).
        devices: candidate devices; any with an ``ip_address`` inside the
            subnet count as used.
    """
    try:
        total = usable_capacity(subnet.mask)
    except InvalidAddress:
        total = 0

    used = set()
    for addr in explicit_addresses:
        value = addr if isinstance(addr, str) else addr.address
        if value:
            used.add(value)

    try:
        bits = mask_bits(subnet.mask)
        network = ip_to_int(subnet.prefix) & bits
    except InvalidAddress:
        logger.debug("Subnet %r has a malformed prefix; counting explicit rows only", subnet.prefix)
        network = None

    if network is not None:
        for device in devices:
            ip = (device.ip_address or "").strip()
            if not ip:
                continue
            try:
                if ip_to_int(ip) & bits == network:
                    used.add(ip)
            except InvalidAddress:
                continue

    used_ips = len(used)
    # half-up, so 0.5% reads as 1%
    pct = math.floor(used_ips * 100 / total + 0.5) if total > 0 else 0
    return SubnetUtilization(total_ips=total, used_ips=used_ips, pct=pct)


def subnet_stats(subnet, explicit_addresses: Iterable, devices: Iterable,
                 vlan: Optional[Any] = None) -> Dict[str, Any]:
    """Dashboard row for one subnet."""
    util = compute_utilization(subnet, explicit_addresses, devices)
    return {
        "id": subnet.id,
        "prefix": f"{subnet.prefix}/{subnet.mask}",
        "description": subnet.description,
        "gateway": subnet.gateway,
        "vlan": {"id": vlan.id, "vid": vlan.vid, "name": vlan.name} if vlan else None,
        "totalIps": util.total_ips,
        "usedIps": util.used_ips,
        "utilization": util.pct,
    }
