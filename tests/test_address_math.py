"""
Tests for services/address_math.py.
"""
import pytest

from subnetly.exceptions import InvalidAddress
from subnetly.services.address_math import (
    belongs_to_subnet,
    capacity,
    int_to_ip,
    ip_to_int,
    mask_bits,
    network_address,
    usable_capacity,
)


class TestConversion:
    @pytest.mark.parametrize("ip", ["0.0.0.0", "10.0.10.55", "192.168.1.1", "255.255.255.255"])
    def test_round_trip(self, ip: str) -> None:
        assert int_to_ip(ip_to_int(ip)) == ip

    def test_big_endian(self) -> None:
        assert ip_to_int("10.0.10.1") == 167774721
        assert ip_to_int("0.0.0.1") == 1
        assert ip_to_int("255.255.255.255") == 0xFFFFFFFF

    def test_surrounding_whitespace_ignored(self) -> None:
        assert ip_to_int(" 10.0.0.1 ") == ip_to_int("10.0.0.1")

    @pytest.mark.parametrize(
        "ip",
        ["", "10.0.0", "10.0.0.0.1", "256.0.0.1", "a.b.c.d", "10.0.-1.1", "10..0.1", "1.2.3.²", None],
    )
    def test_malformed_raises(self, ip) -> None:
        with pytest.raises(InvalidAddress):
            ip_to_int(ip)

    def test_int_out_of_range(self) -> None:
        with pytest.raises(InvalidAddress):
            int_to_ip(2 ** 32)
        with pytest.raises(InvalidAddress):
            int_to_ip(-1)


class TestMasks:
    def test_mask_bits(self) -> None:
        assert mask_bits(0) == 0
        assert mask_bits(8) == 0xFF000000
        assert mask_bits(24) == 0xFFFFFF00
        assert mask_bits(30) == 0xFFFFFFFC
        assert mask_bits(31) == 0xFFFFFFFE
        assert mask_bits(32) == 0xFFFFFFFF

    @pytest.mark.parametrize("prefix_len", [-1, 33, "24", None, True])
    def test_invalid_prefix_length(self, prefix_len) -> None:
        with pytest.raises(InvalidAddress):
            mask_bits(prefix_len)

    def test_network_address(self) -> None:
        assert network_address("10.0.10.7", 24) == "10.0.10.0"
        assert network_address(" 172.16.5.130 ", 25) == "172.16.5.128"
        assert network_address("203.0.113.9", 0) == "0.0.0.0"
        with pytest.raises(InvalidAddress):
            network_address("10.0.10", 24)
        with pytest.raises(InvalidAddress):
            network_address("10.0.10.0", 33)


class TestMembership:
    def test_inside(self) -> None:
        assert belongs_to_subnet("10.0.10.55", "10.0.10.0", 24)

    def test_outside(self) -> None:
        assert not belongs_to_subnet("10.0.11.1", "10.0.10.0", 24)

    def test_host_route(self) -> None:
        assert not belongs_to_subnet("10.0.10.1", "10.0.10.0", 32)
        assert belongs_to_subnet("10.0.10.0", "10.0.10.0", 32)

    def test_default_route_contains_everything(self) -> None:
        assert belongs_to_subnet("203.0.113.9", "0.0.0.0", 0)

    def test_unaligned_base_is_masked(self) -> None:
        assert belongs_to_subnet("10.0.10.200", "10.0.10.7", 24)


class TestCapacity:
    def test_slash_24(self) -> None:
        assert capacity(24) == 254

    def test_slash_30_and_default_route(self) -> None:
        assert capacity(30) == 2
        assert capacity(0) == 2 ** 32 - 2

    def test_point_to_point_and_host(self) -> None:
        assert capacity(31) <= 0
        assert capacity(32) <= 0
        assert usable_capacity(31) == 0
        assert usable_capacity(32) == 0

    def test_slash_16(self) -> None:
        assert usable_capacity(16) == 65534
