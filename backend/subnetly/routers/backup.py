import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from subnetly.config import settings
from subnetly.database import get_db
from subnetly.exceptions import Conflict, InvalidSnapshot, NotFound, SubnetlyError
from subnetly.extensions import limiter
from subnetly.middleware.site_context import require_active_site
from subnetly.models.site import Site
from subnetly.schemas.backup import ImportResponse
from subnetly.services.backup_export import export_site, backup_filename
from subnetly.services.backup_import import import_site, INVALID_FORMAT_MESSAGE

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/backup", tags=["Backup"])


@router.get("/export")
async def export_backup(
    site: Site = Depends(require_active_site),
    db: AsyncSession = Depends(get_db),
):
    """Download the active site as a snapshot file."""
    document = await export_site(db, site.id)
    filename = backup_filename(site.slug)
    return JSONResponse(
        content=document,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import", response_model=ImportResponse)
@limiter.limit(settings.RATE_LIMIT_BACKUP_IMPORT)
async def import_backup(
    request: Request,
    site: Site = Depends(require_active_site),
    db: AsyncSession = Depends(get_db),
):
    """Replace all data of the active site with an uploaded snapshot."""
    try:
        payload = await request.json()
    except ValueError:
        return JSONResponse(status_code=400, content={"error": INVALID_FORMAT_MESSAGE})

    site_id = site.id
    try:
        result = await import_site(db, site_id, payload)
    except (InvalidSnapshot, Conflict, NotFound) as e:
        return JSONResponse(status_code=e.status_code, content={"error": e.message})
    except SubnetlyError as e:
        return JSONResponse(status_code=e.status_code,
                            content={"error": f"Failed to import backup: {e.message}"})
    except Exception as e:
        logger.exception("Unexpected error importing backup into site %s", site_id)
        return JSONResponse(status_code=500, content={"error": f"Failed to import backup: {e}"})

    return ImportResponse(counts=result.counts, skipped=result.skipped)
