from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List
from subnetly.database import get_db
from subnetly.exceptions import Conflict, InvalidAddress, NotFound
from subnetly.middleware.site_context import require_active_site
from subnetly.models.site import Site
from subnetly.models.subnet import Subnet, IPAddress
from subnetly.schemas.ipam import IPAddressCreate, IPAddressResponse
from subnetly.services.address_math import belongs_to_subnet, ip_to_int
from subnetly.services.changelog import log_change
from subnetly.services.reconciliation import on_ip_address_deleted

router = APIRouter(prefix="/api/ipam", tags=["IPAM"])


@router.get("/", response_model=List[IPAddressResponse])
async def list_ip_addresses(
    site: Site = Depends(require_active_site),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(IPAddress).join(Subnet, IPAddress.subnet_id == Subnet.id)
        .where(Subnet.site_id == site.id)
        .order_by(IPAddress.address, IPAddress.id)
    )
    return result.scalars().all()


@router.post("/", response_model=IPAddressResponse)
async def create_ip_address(
    payload: IPAddressCreate,
    site: Site = Depends(require_active_site),
    db: AsyncSession = Depends(get_db),
):
    # Raises InvalidAddress (400) for anything that is not a dotted quad
    ip_to_int(payload.address)

    subnet = (await db.execute(
        select(Subnet).where(Subnet.id == payload.subnet_id, Subnet.site_id == site.id)
    )).scalar_one_or_none()
    if not subnet:
        raise NotFound("Subnet not found in active site")
    if not belongs_to_subnet(payload.address, subnet.prefix, subnet.mask):
        raise InvalidAddress(f"{payload.address} is outside {subnet.prefix}/{subnet.mask}")

    existing = await db.execute(
        select(IPAddress.id).where(IPAddress.address == payload.address, IPAddress.subnet_id == subnet.id)
    )
    if existing.scalar_one_or_none() is not None:
        raise Conflict(f"IP address {payload.address} already exists in this subnet")

    data = payload.model_dump()
    if data["mask"] is None:
        data["mask"] = subnet.mask
    ip = IPAddress(**data)
    db.add(ip)
    await db.flush()
    log_change(db, site.id, "IPAddress", ip.id, "create", data)
    await db.commit()
    await db.refresh(ip)
    return ip


@router.delete("/{ip_id}")
async def delete_ip_address(
    ip_id: int,
    site: Site = Depends(require_active_site),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(IPAddress).join(Subnet, IPAddress.subnet_id == Subnet.id)
        .where(IPAddress.id == ip_id, Subnet.site_id == site.id)
    )
    ip = result.scalar_one_or_none()
    if not ip:
        raise NotFound("IP address not found in active site")

    cleared = await on_ip_address_deleted(db, site.id, ip)
    await db.delete(ip)
    log_change(db, site.id, "IPAddress", ip_id, "delete", {"address": ip.address})
    await db.commit()
    return {"message": "IP address deleted", "clearedDevices": cleared}
