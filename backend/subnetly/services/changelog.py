import json
from datetime import datetime
from typing import Any, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from subnetly.models.changelog import ChangeLog


def log_change(
    db: AsyncSession,
    site_id: int,
    object_type: str,
    object_id: Union[int, str],
    action: str,
    changes: Optional[Any] = None,
    timestamp: Optional[datetime] = None,
) -> ChangeLog:
    """Stage a change-log row in the caller's transaction.

    Nothing is committed here so the entry lands atomically with the change
    it describes.
    """
    if changes is not None and not isinstance(changes, str):
        changes = json.dumps(changes, default=str)
    entry = ChangeLog(
        site_id=site_id,
        object_type=object_type,
        object_id=str(object_id),
        action=action,
        changes=changes,
    )
    if timestamp is not None:
        entry.timestamp = timestamp
    db.add(entry)
    return entry
