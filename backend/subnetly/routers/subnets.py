import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from typing import List
from subnetly.database import get_db
from subnetly.exceptions import NotFound
from subnetly.middleware.site_context import require_active_site
from subnetly.models.site import Site
from subnetly.models.subnet import Subnet
from subnetly.models.vlan import VLAN
from subnetly.models.wifi import WifiNetwork
from subnetly.schemas.ipam import SubnetCreate, SubnetResponse
from subnetly.services.address_math import ip_to_int, network_address
from subnetly.services.changelog import log_change
from subnetly.services.reconciliation import on_subnet_deleted

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/subnets", tags=["Subnets"])


@router.get("/", response_model=List[SubnetResponse])
async def list_subnets(
    site: Site = Depends(require_active_site),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Subnet).where(Subnet.site_id == site.id).order_by(Subnet.id)
    )
    return result.scalars().all()


@router.post("/", response_model=SubnetResponse)
async def create_subnet(
    payload: SubnetCreate,
    site: Site = Depends(require_active_site),
    db: AsyncSession = Depends(get_db),
):
    # Store the network base, so 10.0.10.7/24 is kept as 10.0.10.0/24
    prefix = network_address(payload.prefix, payload.mask)
    if payload.gateway:
        ip_to_int(payload.gateway)

    if payload.vlan_id is not None:
        vlan = (await db.execute(
            select(VLAN).where(VLAN.id == payload.vlan_id, VLAN.site_id == site.id)
        )).scalar_one_or_none()
        if not vlan:
            raise NotFound("VLAN not found in active site")

    subnet = Subnet(site_id=site.id, **payload.model_dump(exclude={"prefix"}), prefix=prefix)
    db.add(subnet)
    await db.flush()
    log_change(db, site.id, "Subnet", subnet.id, "create", {"prefix": f"{prefix}/{payload.mask}"})
    await db.commit()
    await db.refresh(subnet)
    return subnet


@router.delete("/{subnet_id}")
async def delete_subnet(
    subnet_id: int,
    site: Site = Depends(require_active_site),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(Subnet).where(Subnet.id == subnet_id, Subnet.site_id == site.id))
    subnet = result.scalar_one_or_none()
    if not subnet:
        raise NotFound("Subnet not found in active site")

    await db.execute(
        update(WifiNetwork).where(WifiNetwork.subnet_id == subnet.id).values(subnet_id=None)
        .execution_options(synchronize_session=False)
    )
    cleared = await on_subnet_deleted(db, site.id, subnet.id)
    await db.delete(subnet)
    log_change(db, site.id, "Subnet", subnet_id, "delete", {"prefix": f"{subnet.prefix}/{subnet.mask}"})
    await db.commit()
    if cleared:
        logger.info("Deleting subnet %s cleared the address of %d device(s)", subnet_id, cleared)
    return {"message": "Subnet deleted", "clearedDevices": cleared}
