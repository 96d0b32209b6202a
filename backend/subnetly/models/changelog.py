from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text
from sqlalchemy.sql import func
from subnetly.database import Base


class ChangeLog(Base):
    """
    Append-only audit trail of inventory changes within a site.

    object_id is a plain string: entries restored from a backup keep the ids
    of the exporting installation, which may no longer exist.
    """
    __tablename__ = "change_logs"

    id          = Column(Integer, primary_key=True, index=True)
    site_id     = Column(Integer, ForeignKey("sites.id"), nullable=False, index=True)
    object_type = Column(String(50), nullable=False)    # Device, Subnet, IPAddress, System …
    object_id   = Column(String(100), nullable=False)
    action      = Column(String(20), nullable=False)    # create, update, delete
    changes     = Column(Text, nullable=True)           # JSON document
    timestamp   = Column(DateTime(timezone=True), server_default=func.now(), index=True)
