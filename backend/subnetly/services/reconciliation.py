"""
Device <-> IPAM reconciliation.

Device.ip_address is free text; IPAddress rows are the authoritative IP
inventory. These hooks keep the two pointing at each other as devices,
subnets and addresses are mutated:

- device hooks (created / updated / deleted) run after the device change has
  been committed, through reconcile_safely(), so a failure here can never
  undo or fail the device operation itself;
- subnet / address deletion hooks run inside the deleting transaction, since
  the rows they clean up must be gone before the parent row can be removed.
"""
import logging
from typing import Optional

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from subnetly.exceptions import InvalidAddress
from subnetly.models.device import Device
from subnetly.models.subnet import Subnet, IPAddress, IPRange
from subnetly.services.address_math import ip_to_int, belongs_to_subnet

logger = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def _site_subnet_ids(site_id: int):
    return select(Subnet.id).where(Subnet.site_id == site_id)


async def find_containing_subnet(db: AsyncSession, site_id: int, ip: str) -> Optional[Subnet]:
    """First subnet of the site (ascending id) whose CIDR contains ``ip``.

    Overlapping subnets are not validated anywhere, so ascending id is the
    tie-break. Subnets with an unparseable prefix are skipped; an unparseable
    ``ip`` raises InvalidAddress.
    """
    ip_to_int(ip)
    result = await db.execute(
        select(Subnet).where(Subnet.site_id == site_id).order_by(Subnet.id)
    )
    for subnet in result.scalars().all():
        try:
            if belongs_to_subnet(ip, subnet.prefix, subnet.mask):
                return subnet
        except InvalidAddress:
            logger.debug("Skipping subnet %s with malformed prefix %r", subnet.id, subnet.prefix)
    return None


async def _link_or_create(db: AsyncSession, device: Device, ip: str) -> Optional[IPAddress]:
    subnet = await find_containing_subnet(db, device.site_id, ip)
    if subnet is None:
        logger.debug("No subnet in site %s contains %s; leaving unlinked", device.site_id, ip)
        return None

    result = await db.execute(
        select(IPAddress).where(IPAddress.address == ip, IPAddress.subnet_id == subnet.id)
    )
    record = result.scalar_one_or_none()
    if record is None:
        record = IPAddress(
            address=ip,
            mask=subnet.mask,
            subnet_id=subnet.id,
            status="active",
            dns_name=device.name,
            assigned_to=device.name,
            description=f"Auto-linked to {device.name}",
        )
        db.add(record)
    else:
        record.assigned_to = device.name
        record.dns_name = device.name
    await db.flush()
    return record


async def _unlink(db: AsyncSession, site_id: int, address: str, assigned_to: str) -> int:
    result = await db.execute(
        update(IPAddress)
        .where(
            IPAddress.address == address,
            IPAddress.assigned_to == assigned_to,
            IPAddress.subnet_id.in_(_site_subnet_ids(site_id)),
        )
        .values(assigned_to=None, description=None)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


async def on_device_created(db: AsyncSession, device: Device) -> Optional[IPAddress]:
    ip = _clean(device.ip_address)
    if not ip:
        return None
    return await _link_or_create(db, device, ip)


async def on_device_updated(
    db: AsyncSession,
    device: Device,
    old_ip_address: Optional[str],
    new_ip_address: Optional[str],
    old_name: Optional[str] = None,
) -> Optional[IPAddress]:
    """Move the IPAM assignment from the old address to the new one.

    ``old_name`` is the device name before the update; the old row is matched
    on it because that is what its assigned_to still holds.
    """
    old_ip = _clean(old_ip_address)
    new_ip = _clean(new_ip_address)
    if old_ip == new_ip:
        return None

    if old_ip:
        await _unlink(db, device.site_id, old_ip, old_name or device.name)
    if new_ip:
        return await _link_or_create(db, device, new_ip)
    return None


async def on_device_deleted(db: AsyncSession, device: Device) -> int:
    ip = _clean(device.ip_address)
    if not ip:
        return 0
    return await _unlink(db, device.site_id, ip, device.name)


async def on_subnet_deleted(db: AsyncSession, site_id: int, subnet_id: int) -> int:
    """Clear device addresses pointing into the subnet, then drop its IPAM rows.

    Returns the number of devices whose ip_address was cleared.
    """
    result = await db.execute(select(IPAddress.address).where(IPAddress.subnet_id == subnet_id))
    addresses = list(result.scalars().all())

    cleared = 0
    if addresses:
        cleared_result = await db.execute(
            update(Device)
            .where(Device.site_id == site_id, Device.ip_address.in_(addresses))
            .values(ip_address="")
            .execution_options(synchronize_session=False)
        )
        cleared = cleared_result.rowcount or 0

    await db.execute(
        delete(IPAddress).where(IPAddress.subnet_id == subnet_id)
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        delete(IPRange).where(IPRange.subnet_id == subnet_id)
        .execution_options(synchronize_session=False)
    )
    return cleared


async def on_ip_address_deleted(db: AsyncSession, site_id: int, ip: IPAddress) -> int:
    result = await db.execute(
        update(Device)
        .where(Device.site_id == site_id, Device.ip_address == ip.address)
        .values(ip_address="")
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


async def reconcile_safely(db: AsyncSession, hook, *args, **kwargs) -> bool:
    """Run a device hook as a best-effort follow-up and commit it.

    Any failure is rolled back and logged, never raised: the device change
    the hook follows has already been committed. Objects loaded in ``db`` are
    expired by the rollback, so callers should render responses first.
    """
    try:
        await hook(db, *args, **kwargs)
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.warning("Reconciliation %s failed: %s", hook.__name__, e)
        return False
    return True
