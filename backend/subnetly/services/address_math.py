"""
IPv4 address arithmetic used by auto-linking, utilization reporting and range
stamping.

Thin wrappers over the ipaddress module that speak dotted-quad strings and
32-bit integers. Nothing here swallows errors: malformed input raises
InvalidAddress and each caller decides whether to skip, log or surface it.
"""
import ipaddress
from typing import Optional

from subnetly.exceptions import InvalidAddress


def ip_to_int(ip: str) -> int:
    """Parse a dotted-quad IPv4 string into a big-endian 32-bit integer."""
    if not isinstance(ip, str):
        raise InvalidAddress(f"Invalid IPv4 address: {ip!r}")
    try:
        return int(ipaddress.IPv4Address(ip.strip()))
    except ValueError:
        raise InvalidAddress(f"Invalid IPv4 address: {ip!r}")


def int_to_ip(value: int) -> str:
    try:
        return str(ipaddress.IPv4Address(value))
    except ValueError:
        raise InvalidAddress(f"Value out of IPv4 range: {value}")


def _check_prefix_len(prefix_len) -> int:
    # bool is an int subclass; "24" and True are both rejected
    if type(prefix_len) is not int or not 0 <= prefix_len <= 32:
        raise InvalidAddress(f"Invalid prefix length: {prefix_len!r}")
    return prefix_len


def mask_bits(prefix_len: int) -> int:
    """Bitmask with ``prefix_len`` leading one-bits (/24 -> 0xFFFFFF00)."""
    _check_prefix_len(prefix_len)
    return int(ipaddress.IPv4Network(f"0.0.0.0/{prefix_len}").netmask)


def network_address(prefix: str, prefix_len: int) -> str:
    """Network base of ``prefix/prefix_len`` with host bits cleared."""
    _check_prefix_len(prefix_len)
    ip_to_int(prefix)
    network = ipaddress.ip_network(f"{prefix.strip()}/{prefix_len}", strict=False)
    return str(network.network_address)


def belongs_to_subnet(ip: str, network_base: str, prefix_len: int) -> bool:
    bits = mask_bits(prefix_len)
    return (ip_to_int(ip) & bits) == (ip_to_int(network_base) & bits)


def check_range(start_addr: str, end_addr: str, network_base: Optional[str] = None,
                prefix_len: Optional[int] = None):
    """Raise InvalidAddress unless start <= end, both inside the network if given."""
    start, end = ip_to_int(start_addr), ip_to_int(end_addr)
    if start > end:
        raise InvalidAddress(f"Range start {start_addr} is after its end {end_addr}")
    if network_base is None:
        return
    for addr in (start_addr, end_addr):
        if not belongs_to_subnet(addr, network_base, prefix_len):
            raise InvalidAddress(f"{addr} is outside {network_base}/{prefix_len}")


def capacity(prefix_len: int) -> int:
    """Usable host count, network and broadcast excluded.

    Not clamped: /31 and /32 yield 0 and -1. Use usable_capacity() for a
    display value.
    """
    _check_prefix_len(prefix_len)
    return 2 ** (32 - prefix_len) - 2


def usable_capacity(prefix_len: int) -> int:
    return max(capacity(prefix_len), 0)
