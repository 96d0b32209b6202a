from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from subnetly.database import get_db
from subnetly.models.site import Site


async def require_active_site(
    x_site_id: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> Site:
    """Resolve the caller's active site from the X-Site-ID header.

    Session handling lives outside this service; whatever fronts it passes
    the selected site id through on every request.
    """
    if not x_site_id or not x_site_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No active site",
        )
    try:
        site_id = int(x_site_id)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Site not found")

    site = await db.get(Site, site_id)
    if not site:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Site not found")
    return site
