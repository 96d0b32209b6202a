from collections import Counter, defaultdict
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from subnetly.database import get_db
from subnetly.middleware.site_context import require_active_site
from subnetly.models.device import Device, Service
from subnetly.models.site import Site
from subnetly.models.subnet import Subnet, IPAddress
from subnetly.models.vlan import VLAN
from subnetly.models.wifi import WifiNetwork
from subnetly.services.utilization import subnet_stats

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("")
async def get_dashboard(
    site: Site = Depends(require_active_site),
    db: AsyncSession = Depends(get_db),
):
    """Site summary: entity counts, device breakdowns and per-subnet utilization."""
    devices = (await db.execute(select(Device).where(Device.site_id == site.id))).scalars().all()
    subnets = (await db.execute(
        select(Subnet).where(Subnet.site_id == site.id).order_by(Subnet.id)
    )).scalars().all()
    vlans = {v.id: v for v in (await db.execute(select(VLAN).where(VLAN.site_id == site.id))).scalars().all()}
    ip_addresses = (await db.execute(
        select(IPAddress).where(IPAddress.subnet_id.in_(select(Subnet.id).where(Subnet.site_id == site.id)))
    )).scalars().all()
    service_count = await db.execute(select(func.count(Service.id)).where(Service.site_id == site.id))
    wifi_count = await db.execute(select(func.count(WifiNetwork.id)).where(WifiNetwork.site_id == site.id))

    by_subnet = defaultdict(list)
    for ip in ip_addresses:
        by_subnet[ip.subnet_id].append(ip)

    return {
        "counts": {
            "devices": len(devices),
            "subnets": len(subnets),
            "vlans": len(vlans),
            "ipAddresses": len(ip_addresses),
            "services": service_count.scalar() or 0,
            "wifiNetworks": wifi_count.scalar() or 0,
        },
        "statusBreakdown": dict(Counter(d.status for d in devices)),
        "categoryBreakdown": dict(Counter(d.category for d in devices)),
        "subnetStats": [
            subnet_stats(s, by_subnet[s.id], devices, vlans.get(s.vlan_id))
            for s in subnets
        ],
    }
