"""
Shared fixtures: a file-backed SQLite database with foreign keys enforced,
a session factory over it, the FastAPI app wired to that database, and a
seeded site with one of every inventory entity.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["REDIS_URL"] = ""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

import subnetly.models  # noqa: F401 - registers tables with Base
from subnetly.crypto import encrypt_passphrase
from subnetly.database import Base, create_engine_for, get_db
from subnetly.main import app
from subnetly.models import (
    Site, SiteSettings, CustomCategory, VLAN, Subnet, IPAddress, IPRange,
    SubnetTemplate, IPRangeScheme, IPRangeSchemeEntry, Device, Service, WifiNetwork, ChangeLog,
)


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'subnetly.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def make_site(session_factory, name: str = "Home Lab", slug: str = "home-lab") -> int:
    async with session_factory() as session:
        site = Site(name=name, slug=slug)
        session.add(site)
        await session.commit()
        return site.id


@pytest.fixture
async def site_id(session_factory) -> int:
    return await make_site(session_factory)


@pytest.fixture
async def empty_site_id(session_factory) -> int:
    return await make_site(session_factory, name="Branch Office", slug="branch-office")


@pytest.fixture
async def populated_site_id(session_factory, site_id: int) -> int:
    """
    Site with:
      VLAN 10 "Servers" -> 10.0.10.0/24, plus an untagged 192.168.1.0/24
      nas (10.0.10.5, has an IPAM row), printer (no IP), laptop (192.168.1.50, no row)
      a scheme with one entry, a range stamped from it, a template
      one service on nas, one WiFi network on VLAN 10 / 10.0.10.0/24
    """
    async with session_factory() as s:
        s.add(SiteSettings(site_id=site_id, health_check_enabled=True, health_check_interval=120))
        s.add(CustomCategory(site_id=site_id, type="device", name="Storage", slug="storage"))

        vlan = VLAN(site_id=site_id, vid=10, name="Servers")
        s.add(vlan)
        await s.flush()

        servers = Subnet(site_id=site_id, vlan_id=vlan.id, prefix="10.0.10.0", mask=24,
                         gateway="10.0.10.1", description="Server LAN")
        home = Subnet(site_id=site_id, prefix="192.168.1.0", mask=24, description="Home LAN")
        s.add_all([servers, home])
        await s.flush()

        nas = Device(site_id=site_id, name="nas", ip_address="10.0.10.5", category="Storage")
        printer = Device(site_id=site_id, name="printer", category="Printer", status="offline")
        laptop = Device(site_id=site_id, name="laptop", ip_address="192.168.1.50", category="Workstation")
        s.add_all([nas, printer, laptop])
        await s.flush()

        s.add(IPAddress(subnet_id=servers.id, address="10.0.10.5", mask=24,
                        assigned_to="nas", dns_name="nas", description="Auto-linked to nas"))
        s.add(IPAddress(subnet_id=home.id, address="192.168.1.1", mask=24, description="Router"))

        scheme = IPRangeScheme(site_id=site_id, name="Standard", slug="standard")
        s.add(scheme)
        await s.flush()
        entry = IPRangeSchemeEntry(scheme_id=scheme.id, start_octet=100, end_octet=199, role="dhcp")
        s.add(entry)
        await s.flush()
        s.add(IPRange(subnet_id=servers.id, scheme_entry_id=entry.id,
                      start_addr="10.0.10.100", end_addr="10.0.10.199", role="dhcp"))
        s.add(SubnetTemplate(site_id=site_id, name="Lab /24", slug="lab-24", prefix="10.99.0.0", mask=24))

        s.add(Service(site_id=site_id, device_id=nas.id, name="SMB", protocol="tcp", ports="445"))
        s.add(WifiNetwork(site_id=site_id, vlan_id=vlan.id, subnet_id=servers.id, ssid="lab-wifi",
                          passphrase=encrypt_passphrase("correct horse battery staple")))
        s.add(ChangeLog(site_id=site_id, object_type="Device", object_id=str(nas.id),
                        action="create", changes='{"name": "nas"}'))
        await s.commit()
    return site_id
