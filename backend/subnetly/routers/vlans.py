from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from typing import List
from subnetly.database import get_db
from subnetly.exceptions import Conflict, NotFound
from subnetly.middleware.site_context import require_active_site
from subnetly.models.site import Site
from subnetly.models.subnet import Subnet
from subnetly.models.vlan import VLAN
from subnetly.models.wifi import WifiNetwork
from subnetly.schemas.ipam import VLANCreate, VLANResponse
from subnetly.services.changelog import log_change

router = APIRouter(prefix="/api/vlans", tags=["VLANs"])


@router.get("/", response_model=List[VLANResponse])
async def list_vlans(
    site: Site = Depends(require_active_site),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(VLAN).where(VLAN.site_id == site.id).order_by(VLAN.vid))
    return result.scalars().all()


@router.post("/", response_model=VLANResponse)
async def create_vlan(
    payload: VLANCreate,
    site: Site = Depends(require_active_site),
    db: AsyncSession = Depends(get_db),
):
    existing = await db.execute(select(VLAN.id).where(VLAN.site_id == site.id, VLAN.vid == payload.vid))
    if existing.scalar_one_or_none() is not None:
        raise Conflict(f"VLAN {payload.vid} already exists in this site")

    vlan = VLAN(site_id=site.id, **payload.model_dump())
    db.add(vlan)
    await db.flush()
    log_change(db, site.id, "VLAN", vlan.id, "create", payload.model_dump())
    await db.commit()
    await db.refresh(vlan)
    return vlan


@router.delete("/{vlan_id}")
async def delete_vlan(
    vlan_id: int,
    site: Site = Depends(require_active_site),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(VLAN).where(VLAN.id == vlan_id, VLAN.site_id == site.id))
    vlan = result.scalar_one_or_none()
    if not vlan:
        raise NotFound("VLAN not found in active site")

    # Subnets and WiFi networks outlive their VLAN
    for model in (Subnet, WifiNetwork):
        await db.execute(
            update(model).where(model.vlan_id == vlan.id).values(vlan_id=None)
            .execution_options(synchronize_session=False)
        )
    await db.delete(vlan)
    log_change(db, site.id, "VLAN", vlan_id, "delete", {"vid": vlan.vid, "name": vlan.name})
    await db.commit()
    return {"message": "VLAN deleted"}
