"""
Full-site backup import.

Replaces everything under a site with the contents of a snapshot:

Phase 1 deletes every row of the site, children before parents. Foreign keys
carry no ON DELETE actions, so a wrong order fails instead of orphaning rows.

Phase 2 recreates the rows parents first. Each group that others reference
records ``export id -> new id`` as it goes, and children resolve their parent
through that table. Addresses, ranges and services whose parent cannot be
resolved are skipped, as are ranges whose bounds are malformed or reversed;
optional links (a subnet's VLAN, a range's scheme entry, a WiFi network's
VLAN/subnet) fall back to NULL.

Both phases run in one transaction: a failure anywhere rolls the site back
to its pre-import state.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict

from pydantic import ValidationError
from sqlalchemy import select, update, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from subnetly.crypto import encrypt_passphrase
from subnetly.exceptions import InvalidAddress, InvalidSnapshot, NotFound, StorageFailure, translate_db_error
from subnetly.models import (
    Site, SiteSettings, CustomCategory, VLAN, Subnet, IPAddress, IPRange,
    SubnetTemplate, IPRangeScheme, IPRangeSchemeEntry, Device, Service, WifiNetwork, ChangeLog,
)
from subnetly.schemas.backup import Snapshot
from subnetly.services.address_math import check_range
from subnetly.services.changelog import log_change
from subnetly.services.site_lock import import_lock

logger = logging.getLogger(__name__)

INVALID_FORMAT_MESSAGE = "Invalid backup file format. Missing version or site data."


@dataclass
class ImportResult:
    # Records present in the snapshot, per group
    counts: Dict[str, int]
    # Records present in the snapshot but not created
    skipped: Dict[str, int] = field(default_factory=dict)


def slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower().strip()).strip("-")


def parse_snapshot(payload: Any) -> Snapshot:
    if not isinstance(payload, dict) or not payload.get("version") or not payload.get("site"):
        raise InvalidSnapshot(INVALID_FORMAT_MESSAGE)
    try:
        return Snapshot.model_validate(payload)
    except ValidationError as e:
        raise InvalidSnapshot(
            f"Invalid backup file format. {e.error_count()} invalid field(s).",
            details=e.errors(include_url=False, include_context=False),
        ) from e


def snapshot_counts(snapshot: Snapshot) -> Dict[str, int]:
    return {
        "categories": len(snapshot.categories),
        "vlans": len(snapshot.vlans),
        "subnets": len(snapshot.subnets),
        "devices": len(snapshot.devices),
        "ipAddresses": len(snapshot.ip_addresses),
        "ipRanges": len(snapshot.ip_ranges),
        "subnetTemplates": len(snapshot.subnet_templates),
        "rangeSchemes": len(snapshot.range_schemes),
        "services": len(snapshot.services),
        "wifiNetworks": len(snapshot.wifi_networks),
        "changeLogs": len(snapshot.change_logs),
    }


async def _run(db: AsyncSession, statement):
    await db.execute(statement.execution_options(synchronize_session=False))


async def wipe_site(db: AsyncSession, site_id: int):
    """Delete every inventory row of the site, children before parents."""
    site_subnets = select(Subnet.id).where(Subnet.site_id == site_id)
    site_schemes = select(IPRangeScheme.id).where(IPRangeScheme.site_id == site_id)

    await _run(db, delete(ChangeLog).where(ChangeLog.site_id == site_id))
    await _run(db, update(IPRange).where(IPRange.subnet_id.in_(site_subnets)).values(scheme_entry_id=None))
    await _run(db, delete(IPAddress).where(IPAddress.subnet_id.in_(site_subnets)))
    await _run(db, delete(IPRange).where(IPRange.subnet_id.in_(site_subnets)))
    await _run(db, delete(IPRangeSchemeEntry).where(IPRangeSchemeEntry.scheme_id.in_(site_schemes)))
    await _run(db, delete(IPRangeScheme).where(IPRangeScheme.site_id == site_id))
    await _run(db, delete(SubnetTemplate).where(SubnetTemplate.site_id == site_id))
    await _run(db, delete(WifiNetwork).where(WifiNetwork.site_id == site_id))
    await _run(db, delete(Service).where(Service.site_id == site_id))
    await _run(db, delete(Device).where(Device.site_id == site_id))
    await _run(db, delete(Subnet).where(Subnet.site_id == site_id))
    await _run(db, delete(VLAN).where(VLAN.site_id == site_id))
    await _run(db, delete(CustomCategory).where(CustomCategory.site_id == site_id))
    await _run(db, delete(SiteSettings).where(SiteSettings.site_id == site_id))


async def restore_site(db: AsyncSession, site_id: int, snapshot: Snapshot) -> Dict[str, int]:
    """Recreate the snapshot's rows under ``site_id``. Returns skipped counts."""
    skipped = {"categories": 0, "ipAddresses": 0, "ipRanges": 0, "services": 0}

    seen_categories = set()
    for c in snapshot.categories:
        if (c.type, c.slug) in seen_categories:
            skipped["categories"] += 1
            continue
        seen_categories.add((c.type, c.slug))
        db.add(CustomCategory(site_id=site_id, type=c.type, name=c.name, slug=c.slug,
                              icon=c.icon, color=c.color, sort_order=c.sort_order))
    await db.flush()

    vlan_id_map: Dict[str, int] = {}
    for v in snapshot.vlans:
        vlan = VLAN(site_id=site_id, vid=v.vid, name=v.name, status=v.status,
                    role=v.role, description=v.description)
        db.add(vlan)
        await db.flush()
        if v.export_id:
            vlan_id_map[v.export_id] = vlan.id

    subnet_id_map: Dict[str, int] = {}
    for s in snapshot.subnets:
        subnet = Subnet(site_id=site_id, vlan_id=vlan_id_map.get(s.vlan_export_id) if s.vlan_export_id else None,
                        prefix=s.prefix, mask=s.mask, description=s.description, gateway=s.gateway,
                        status=s.status, role=s.role, is_pool=s.is_pool)
        db.add(subnet)
        await db.flush()
        if s.export_id:
            subnet_id_map[s.export_id] = subnet.id

    device_id_map: Dict[str, int] = {}
    for d in snapshot.devices:
        device = Device(site_id=site_id, name=d.name, mac_address=d.mac_address, ip_address=d.ip_address,
                        category=d.category, status=d.status, serial=d.serial, asset_tag=d.asset_tag,
                        notes=d.notes, platform=d.platform)
        db.add(device)
        await db.flush()
        if d.export_id:
            device_id_map[d.export_id] = device.id

    for ip in snapshot.ip_addresses:
        subnet_id = subnet_id_map.get(ip.subnet_export_id) if ip.subnet_export_id else None
        if subnet_id is None:
            skipped["ipAddresses"] += 1
            continue
        db.add(IPAddress(subnet_id=subnet_id, address=ip.address, mask=ip.mask, status=ip.status,
                         dns_name=ip.dns_name, description=ip.description, assigned_to=ip.assigned_to))
    await db.flush()

    for t in snapshot.subnet_templates:
        db.add(SubnetTemplate(site_id=site_id, name=t.name, slug=t.slug or slugify(t.name),
                              prefix=t.prefix, mask=t.mask, gateway=t.gateway, role=t.role,
                              description=t.description, sort_order=t.sort_order))
    await db.flush()

    scheme_entry_id_map: Dict[str, int] = {}
    for s in snapshot.range_schemes:
        scheme = IPRangeScheme(site_id=site_id, name=s.name, slug=s.slug or slugify(s.name),
                               description=s.description, sort_order=s.sort_order)
        db.add(scheme)
        await db.flush()
        for idx, e in enumerate(s.entries):
            entry = IPRangeSchemeEntry(scheme_id=scheme.id, start_octet=e.start_octet, end_octet=e.end_octet,
                                       role=e.role, description=e.description,
                                       sort_order=e.sort_order if e.sort_order is not None else idx)
            db.add(entry)
            await db.flush()
            if e.export_id:
                scheme_entry_id_map[e.export_id] = entry.id

    for r in snapshot.ip_ranges:
        subnet_id = subnet_id_map.get(r.subnet_export_id) if r.subnet_export_id else None
        if subnet_id is None:
            skipped["ipRanges"] += 1
            continue
        try:
            check_range(r.start_addr, r.end_addr)
        except InvalidAddress as e:
            logger.warning("Skipping imported range %s-%s: %s", r.start_addr, r.end_addr, e)
            skipped["ipRanges"] += 1
            continue
        # A range stays valid without its scheme link
        scheme_entry_id = scheme_entry_id_map.get(r.scheme_entry_export_id) if r.scheme_entry_export_id else None
        db.add(IPRange(subnet_id=subnet_id, scheme_entry_id=scheme_entry_id, start_addr=r.start_addr,
                       end_addr=r.end_addr, role=r.role, description=r.description, status=r.status))
    await db.flush()

    for s in snapshot.services:
        device_id = device_id_map.get(s.device_export_id) if s.device_export_id else None
        if device_id is None:
            skipped["services"] += 1
            continue
        db.add(Service(site_id=site_id, device_id=device_id, name=s.name, protocol=s.protocol, ports=s.ports,
                       description=s.description, url=s.url, environment=s.environment,
                       is_docker=s.is_docker, docker_image=s.docker_image, docker_compose=s.docker_compose,
                       stack_name=s.stack_name, health_status=s.health_status, version=s.version,
                       dependencies=s.dependencies, tags=s.tags,
                       health_check_enabled=s.health_check_enabled))
    await db.flush()

    for w in snapshot.wifi_networks:
        db.add(WifiNetwork(
            site_id=site_id,
            vlan_id=vlan_id_map.get(w.vlan_export_id) if w.vlan_export_id else None,
            subnet_id=subnet_id_map.get(w.subnet_export_id) if w.subnet_export_id else None,
            ssid=w.ssid, security=w.security, passphrase=encrypt_passphrase(w.passphrase), band=w.band,
            hidden=w.hidden, enabled=w.enabled, guest_network=w.guest_network,
            client_isolation=w.client_isolation, band_steering=w.band_steering, pmf=w.pmf,
            tx_power=w.tx_power, min_rate=w.min_rate, description=w.description,
        ))
    await db.flush()

    if snapshot.site_settings:
        ss = snapshot.site_settings
        db.add(SiteSettings(site_id=site_id, health_check_enabled=ss.health_check_enabled,
                            health_check_interval=ss.health_check_interval,
                            health_check_timeout=ss.health_check_timeout))

    # Historical entries keep their original object ids on purpose
    for entry in snapshot.change_logs:
        log_change(db, site_id, entry.object_type, entry.object_id, entry.action,
                   entry.changes, timestamp=entry.timestamp)

    log_change(db, site_id, "System", site_id, "create", {
        "type": "backup_import",
        "from": snapshot.site.name,
        "exportedAt": snapshot.exported_at,
    })
    await db.flush()
    return skipped


async def import_site(db: AsyncSession, site_id: int, payload: Any) -> ImportResult:
    """Replace all data of ``site_id`` with the snapshot in ``payload``.

    Raises InvalidSnapshot, NotFound, Conflict (another import of the same
    site is running) or StorageFailure. On any failure nothing is committed.
    """
    snapshot = parse_snapshot(payload)
    site = await db.get(Site, site_id)
    if site is None:
        raise NotFound("Site not found")
    counts = snapshot_counts(snapshot)

    async with import_lock.hold(site_id):
        logger.info("Importing backup of %r (exported %s) into site %s",
                    snapshot.site.name, snapshot.exported_at, site_id)
        try:
            await wipe_site(db, site_id)
            # Objects loaded before the wipe no longer exist and their ids may be reused
            db.expunge_all()
            logger.info("Site %s wiped", site_id)
            skipped = await restore_site(db, site_id, snapshot)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.exception("Backup import into site %s failed; rolled back", site_id)
            error = translate_db_error(e)
            if not isinstance(error, StorageFailure):
                error = StorageFailure("Database rejected the backup contents")
            detail = getattr(e, "orig", None) or e
            error.message = f"{error.message} ({detail})"
            raise error from e
        except Exception:
            await db.rollback()
            logger.exception("Backup import into site %s failed; rolled back", site_id)
            raise

    logger.info("Backup imported into site %s: %s (skipped %s)", site_id, counts, skipped)
    return ImportResult(counts=counts, skipped=skipped)
