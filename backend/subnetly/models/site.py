from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.sql import func
from subnetly.database import Base


class Site(Base):
    """Tenant boundary: every inventory row belongs to exactly one site."""
    __tablename__ = "sites"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text)
    address = Column(String(255))
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class SiteSettings(Base):
    __tablename__ = "site_settings"

    id = Column(Integer, primary_key=True, index=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False, unique=True)
    health_check_enabled = Column(Boolean, default=False)
    health_check_interval = Column(Integer, default=300)  # seconds
    health_check_timeout = Column(Integer, default=10)    # seconds
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class CustomCategory(Base):
    __tablename__ = "custom_categories"

    id = Column(Integer, primary_key=True, index=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False, index=True)
    type = Column(String(20), nullable=False, default="device")  # device, service
    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False)
    icon = Column(String(50), default="server")
    color = Column(String(20), default="#5e6670")
    sort_order = Column(Integer, default=0)

    __table_args__ = (
        UniqueConstraint("site_id", "type", "slug", name="uq_category_site_type_slug"),
    )
