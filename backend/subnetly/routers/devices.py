from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from typing import List
from subnetly.database import get_db
from subnetly.exceptions import NotFound
from subnetly.middleware.site_context import require_active_site
from subnetly.models.device import Device, Service
from subnetly.models.site import Site
from subnetly.schemas.device import DeviceCreate, DeviceUpdate, DeviceResponse
from subnetly.services.changelog import log_change
from subnetly.services.reconciliation import (
    on_device_created, on_device_updated, on_device_deleted, reconcile_safely,
)

router = APIRouter(prefix="/api/devices", tags=["Devices"])


async def _get_site_device(db: AsyncSession, site_id: int, device_id: int) -> Device:
    result = await db.execute(select(Device).where(Device.id == device_id, Device.site_id == site_id))
    device = result.scalar_one_or_none()
    if not device:
        raise NotFound("Device not found in active site")
    return device


@router.get("/", response_model=List[DeviceResponse])
async def list_devices(
    site: Site = Depends(require_active_site),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Device).where(Device.site_id == site.id).order_by(Device.ip_address, Device.id)
    )
    return result.scalars().all()


@router.post("/", response_model=DeviceResponse)
async def create_device(
    payload: DeviceCreate,
    site: Site = Depends(require_active_site),
    db: AsyncSession = Depends(get_db),
):
    device = Device(site_id=site.id, **payload.model_dump())
    db.add(device)
    await db.flush()
    log_change(db, site.id, "Device", device.id, "create", {
        "name": device.name,
        "ipAddress": device.ip_address,
        "category": device.category,
        "status": device.status,
    })
    await db.commit()
    await db.refresh(device)

    response = DeviceResponse.model_validate(device)
    # The device is committed; linking its address is best effort
    await reconcile_safely(db, on_device_created, device)
    return response


@router.patch("/{device_id}", response_model=DeviceResponse)
async def update_device(
    device_id: int,
    payload: DeviceUpdate,
    site: Site = Depends(require_active_site),
    db: AsyncSession = Depends(get_db),
):
    device = await _get_site_device(db, site.id, device_id)
    old_ip_address, old_name = device.ip_address, device.name

    update_data = payload.model_dump(exclude_unset=True)
    if update_data.get("name") is None:
        update_data.pop("name", None)
    for field in ("mac_address", "ip_address"):
        if field in update_data and update_data[field] is None:
            update_data[field] = ""
    for key, value in update_data.items():
        setattr(device, key, value)
    log_change(db, site.id, "Device", device_id, "update", update_data)
    await db.commit()
    await db.refresh(device)

    response = DeviceResponse.model_validate(device)
    if "ip_address" in update_data:
        await reconcile_safely(db, on_device_updated, device, old_ip_address, device.ip_address,
                               old_name=old_name)
    return response


@router.delete("/{device_id}")
async def delete_device(
    device_id: int,
    site: Site = Depends(require_active_site),
    db: AsyncSession = Depends(get_db),
):
    device = await _get_site_device(db, site.id, device_id)

    await db.execute(
        delete(Service).where(Service.device_id == device.id)
        .execution_options(synchronize_session=False)
    )
    await db.delete(device)
    log_change(db, site.id, "Device", device_id, "delete", {
        "name": device.name,
        "ipAddress": device.ip_address,
    })
    await db.commit()

    await reconcile_safely(db, on_device_deleted, device)
    return {"message": "Device deleted"}
