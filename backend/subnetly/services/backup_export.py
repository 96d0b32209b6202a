"""
Full-site backup export.

Walks a site's object graph in a fixed order and renders a self-contained
snapshot document. Storage ids are only used as export ids: every child
carries its parent's export id, never a foreign key into this database.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from subnetly.config import settings
from subnetly.crypto import decrypt_passphrase
from subnetly.exceptions import NotFound
from subnetly.models import (
    Site, SiteSettings, CustomCategory, VLAN, Subnet, IPAddress, IPRange,
    SubnetTemplate, IPRangeScheme, Device, Service, WifiNetwork, ChangeLog,
)
from subnetly.schemas.backup import (
    Snapshot, SnapshotSite, SnapshotSiteSettings, SnapshotCategory, SnapshotVlan,
    SnapshotSubnet, SnapshotDevice, SnapshotIPAddress, SnapshotIPRange,
    SnapshotSubnetTemplate, SnapshotRangeScheme, SnapshotSchemeEntry,
    SnapshotService, SnapshotWifiNetwork, SnapshotChangeLog,
)

logger = logging.getLogger(__name__)


def _in_site(site_id: int):
    return select(Subnet.id).where(Subnet.site_id == site_id)


async def _all(db: AsyncSession, query):
    result = await db.execute(query)
    return list(result.scalars().all())


async def export_site(db: AsyncSession, site_id: int) -> Dict[str, Any]:
    """Return the site's snapshot as a JSON-ready dict (camelCase keys)."""
    site = await db.get(Site, site_id)
    if site is None:
        raise NotFound("Site not found")

    # Every collection has a natural-key ordering with id as the final
    # tiebreak, so the same data always yields the same document.
    categories = await _all(db, select(CustomCategory).where(CustomCategory.site_id == site_id)
                            .order_by(CustomCategory.type, CustomCategory.sort_order,
                                      CustomCategory.name, CustomCategory.id))
    vlans = await _all(db, select(VLAN).where(VLAN.site_id == site_id).order_by(VLAN.vid, VLAN.id))
    subnets = await _all(db, select(Subnet).where(Subnet.site_id == site_id)
                         .order_by(Subnet.prefix, Subnet.mask, Subnet.id))
    devices = await _all(db, select(Device).where(Device.site_id == site_id).order_by(Device.name, Device.id))
    ip_addresses = await _all(db, select(IPAddress).where(IPAddress.subnet_id.in_(_in_site(site_id)))
                              .order_by(IPAddress.address, IPAddress.id))
    ip_ranges = await _all(db, select(IPRange).where(IPRange.subnet_id.in_(_in_site(site_id)))
                           .order_by(IPRange.start_addr, IPRange.id))
    templates = await _all(db, select(SubnetTemplate).where(SubnetTemplate.site_id == site_id)
                           .order_by(SubnetTemplate.sort_order, SubnetTemplate.name, SubnetTemplate.id))
    schemes = await _all(db, select(IPRangeScheme).where(IPRangeScheme.site_id == site_id)
                         .options(selectinload(IPRangeScheme.entries))
                         .order_by(IPRangeScheme.sort_order, IPRangeScheme.name, IPRangeScheme.id))
    services = await _all(db, select(Service).where(Service.site_id == site_id).order_by(Service.name, Service.id))
    wifi_networks = await _all(db, select(WifiNetwork).where(WifiNetwork.site_id == site_id)
                               .order_by(WifiNetwork.ssid, WifiNetwork.id))
    site_settings = (await db.execute(
        select(SiteSettings).where(SiteSettings.site_id == site_id)
    )).scalar_one_or_none()
    change_logs = await _all(db, select(ChangeLog).where(ChangeLog.site_id == site_id)
                             .order_by(ChangeLog.timestamp.desc(), ChangeLog.id.desc()))

    snapshot = Snapshot(
        version=settings.BACKUP_FORMAT_VERSION,
        exported_at=datetime.now(timezone.utc).isoformat(),
        site=SnapshotSite(name=site.name, slug=site.slug, description=site.description, address=site.address),
        categories=[
            SnapshotCategory(type=c.type, name=c.name, slug=c.slug, icon=c.icon,
                             color=c.color, sort_order=c.sort_order)
            for c in categories
        ],
        vlans=[
            SnapshotVlan(vid=v.vid, name=v.name, status=v.status, role=v.role,
                         description=v.description, export_id=v.id)
            for v in vlans
        ],
        subnets=[
            SnapshotSubnet(prefix=s.prefix, mask=s.mask, description=s.description, gateway=s.gateway,
                           status=s.status, role=s.role, is_pool=s.is_pool,
                           export_id=s.id, vlan_export_id=s.vlan_id)
            for s in subnets
        ],
        devices=[
            SnapshotDevice(name=d.name, mac_address=d.mac_address, ip_address=d.ip_address,
                           category=d.category, status=d.status, serial=d.serial,
                           asset_tag=d.asset_tag, notes=d.notes, platform=d.platform,
                           export_id=d.id)
            for d in devices
        ],
        ip_addresses=[
            SnapshotIPAddress(address=ip.address, mask=ip.mask, status=ip.status, dns_name=ip.dns_name,
                              description=ip.description, assigned_to=ip.assigned_to,
                              subnet_export_id=ip.subnet_id)
            for ip in ip_addresses
        ],
        ip_ranges=[
            SnapshotIPRange(start_addr=r.start_addr, end_addr=r.end_addr, role=r.role,
                            description=r.description, status=r.status,
                            subnet_export_id=r.subnet_id, scheme_entry_export_id=r.scheme_entry_id)
            for r in ip_ranges
        ],
        subnet_templates=[
            SnapshotSubnetTemplate(name=t.name, slug=t.slug, prefix=t.prefix, mask=t.mask,
                                   gateway=t.gateway, role=t.role, description=t.description,
                                   sort_order=t.sort_order)
            for t in templates
        ],
        range_schemes=[
            SnapshotRangeScheme(
                name=s.name, slug=s.slug, description=s.description, sort_order=s.sort_order,
                entries=[
                    SnapshotSchemeEntry(start_octet=e.start_octet, end_octet=e.end_octet, role=e.role,
                                        description=e.description, sort_order=e.sort_order,
                                        export_id=e.id)
                    for e in s.entries
                ],
            )
            for s in schemes
        ],
        services=[
            SnapshotService(name=s.name, protocol=s.protocol, ports=s.ports, description=s.description,
                            url=s.url, environment=s.environment, is_docker=s.is_docker,
                            docker_image=s.docker_image, docker_compose=s.docker_compose,
                            stack_name=s.stack_name, health_status=s.health_status, version=s.version,
                            dependencies=s.dependencies, tags=s.tags,
                            health_check_enabled=s.health_check_enabled,
                            device_export_id=s.device_id)
            for s in services
        ],
        wifi_networks=[
            SnapshotWifiNetwork(ssid=w.ssid, security=w.security, passphrase=decrypt_passphrase(w.passphrase),
                                band=w.band, hidden=w.hidden, enabled=w.enabled,
                                guest_network=w.guest_network, client_isolation=w.client_isolation,
                                band_steering=w.band_steering, pmf=w.pmf, tx_power=w.tx_power,
                                min_rate=w.min_rate, description=w.description,
                                vlan_export_id=w.vlan_id, subnet_export_id=w.subnet_id)
            for w in wifi_networks
        ],
        site_settings=SnapshotSiteSettings(
            health_check_enabled=site_settings.health_check_enabled,
            health_check_interval=site_settings.health_check_interval,
            health_check_timeout=site_settings.health_check_timeout,
        ) if site_settings else None,
        change_logs=[
            SnapshotChangeLog(object_type=log.object_type, object_id=log.object_id, action=log.action,
                              changes=log.changes, timestamp=log.timestamp)
            for log in change_logs
        ],
    )

    logger.info(
        "Exported site %s (%s): %d vlans, %d subnets, %d devices, %d ip addresses",
        site.slug, site_id, len(vlans), len(subnets), len(devices), len(ip_addresses),
    )
    return snapshot.model_dump(by_alias=True, mode="json")


def backup_filename(slug: str, when=None) -> str:
    when = when or datetime.now(timezone.utc)
    return f"{settings.BACKUP_FILENAME_PREFIX}-{slug}-{when.strftime('%Y-%m-%d')}.json"
