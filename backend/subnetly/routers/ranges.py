from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List
from subnetly.database import get_db
from subnetly.exceptions import NotFound
from subnetly.middleware.site_context import require_active_site
from subnetly.models.site import Site
from subnetly.models.subnet import Subnet, IPRange
from subnetly.schemas.ipam import IPRangeCreate, IPRangeResponse
from subnetly.services.address_math import check_range
from subnetly.services.changelog import log_change

router = APIRouter(prefix="/api/ranges", tags=["IP Ranges"])


@router.get("/", response_model=List[IPRangeResponse])
async def list_ranges(
    site: Site = Depends(require_active_site),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(IPRange).join(Subnet, IPRange.subnet_id == Subnet.id)
        .where(Subnet.site_id == site.id)
        .order_by(IPRange.subnet_id, IPRange.id)
    )
    return result.scalars().all()


@router.post("/", response_model=IPRangeResponse)
async def create_range(
    payload: IPRangeCreate,
    site: Site = Depends(require_active_site),
    db: AsyncSession = Depends(get_db),
):
    subnet = (await db.execute(
        select(Subnet).where(Subnet.id == payload.subnet_id, Subnet.site_id == site.id)
    )).scalar_one_or_none()
    if not subnet:
        raise NotFound("Subnet not found in active site")
    check_range(payload.start_addr, payload.end_addr, subnet.prefix, subnet.mask)

    ip_range = IPRange(**payload.model_dump())
    db.add(ip_range)
    await db.flush()
    log_change(db, site.id, "IPRange", ip_range.id, "create", {
        "startAddr": payload.start_addr,
        "endAddr": payload.end_addr,
        "role": payload.role,
    })
    await db.commit()
    await db.refresh(ip_range)
    return ip_range
