"""
Stamping a range scheme onto a subnet.

Each scheme entry holds last-octet bounds; applying the scheme turns them
into IPRange rows under the subnet's /24 base, linked back to the entry.
"""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from subnetly.database import get_db
from subnetly.exceptions import InvalidAddress, NotFound
from subnetly.middleware.site_context import require_active_site
from subnetly.models.range_scheme import IPRangeScheme, IPRangeSchemeEntry
from subnetly.models.site import Site
from subnetly.models.subnet import Subnet, IPRange
from subnetly.schemas.ipam import RangeSchemeApply, RangeSchemeApplyResponse
from subnetly.services.address_math import check_range, int_to_ip, ip_to_int
from subnetly.services.changelog import log_change

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/range-schemes", tags=["Range Schemes"])


def _stamp(base: int, octet: int) -> str:
    if not 0 <= octet <= 255:
        raise InvalidAddress(f"Scheme octet out of range: {octet}")
    return int_to_ip(base | octet)


@router.post("/apply", response_model=RangeSchemeApplyResponse)
async def apply_range_scheme(
    payload: RangeSchemeApply,
    site: Site = Depends(require_active_site),
    db: AsyncSession = Depends(get_db),
):
    subnet = (await db.execute(
        select(Subnet).where(Subnet.id == payload.subnet_id, Subnet.site_id == site.id)
    )).scalar_one_or_none()
    if not subnet:
        raise NotFound("Subnet not found")

    scheme = (await db.execute(
        select(IPRangeScheme).where(IPRangeScheme.id == payload.scheme_id, IPRangeScheme.site_id == site.id)
    )).scalar_one_or_none()
    if not scheme:
        raise NotFound("Scheme not found")

    entries = (await db.execute(
        select(IPRangeSchemeEntry).where(IPRangeSchemeEntry.scheme_id == scheme.id)
        .order_by(IPRangeSchemeEntry.sort_order, IPRangeSchemeEntry.id)
    )).scalars().all()

    # Octets replace the last byte of the subnet base
    base = ip_to_int(subnet.prefix) & 0xFFFFFF00
    stamped = []
    for entry in entries:
        start_addr = _stamp(base, entry.start_octet)
        end_addr = _stamp(base, entry.end_octet)
        check_range(start_addr, end_addr, subnet.prefix, subnet.mask)
        stamped.append(IPRange(
            subnet_id=subnet.id, scheme_entry_id=entry.id, start_addr=start_addr, end_addr=end_addr,
            role=entry.role, description=entry.description, status="active",
        ))

    if payload.replace_existing:
        await db.execute(
            delete(IPRange).where(IPRange.subnet_id == subnet.id)
            .execution_options(synchronize_session=False)
        )
    db.add_all(stamped)
    log_change(db, site.id, "IPRangeScheme", scheme.id, "create", {
        "type": "apply",
        "subnetId": subnet.id,
        "replaceExisting": payload.replace_existing,
        "entries": len(stamped),
    })
    await db.commit()
    logger.info("Applied scheme %s to subnet %s/%s (%d ranges)",
                scheme.slug, subnet.prefix, subnet.mask, len(stamped))
    return {"success": True, "applied": len(stamped)}
