"""VLAN model."""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.sql import func
from subnetly.database import Base


class VLAN(Base):
    __tablename__ = "vlans"

    id = Column(Integer, primary_key=True, index=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False, index=True)
    vid = Column(Integer, nullable=False)          # 1-4094
    name = Column(String(100), nullable=False)
    status = Column(String(20), default="active")  # active, reserved, deprecated
    role = Column(String(50))
    description = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("site_id", "vid", name="uq_vlan_site_vid"),
    )
