"""Reusable subnet templates and IP range schemes."""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from subnetly.database import Base


class SubnetTemplate(Base):
    __tablename__ = "subnet_templates"

    id = Column(Integer, primary_key=True, index=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False)
    prefix = Column(String(50), nullable=False)
    mask = Column(Integer, default=24)
    gateway = Column(String(50))
    role = Column(String(50))
    description = Column(Text)
    sort_order = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("site_id", "slug", name="uq_subnet_template_site_slug"),
    )


class IPRangeScheme(Base):
    """Named set of sub-range templates (e.g. "DHCP pool") stamped onto subnets."""
    __tablename__ = "ip_range_schemes"

    id = Column(Integer, primary_key=True, index=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False)
    description = Column(Text)
    sort_order = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    entries = relationship(
        "IPRangeSchemeEntry",
        order_by=lambda: [IPRangeSchemeEntry.sort_order, IPRangeSchemeEntry.id],
        viewonly=True,
    )

    __table_args__ = (
        UniqueConstraint("site_id", "slug", name="uq_range_scheme_site_slug"),
    )


class IPRangeSchemeEntry(Base):
    __tablename__ = "ip_range_scheme_entries"

    id = Column(Integer, primary_key=True, index=True)
    scheme_id = Column(Integer, ForeignKey("ip_range_schemes.id"), nullable=False, index=True)
    start_octet = Column(Integer, nullable=False, default=1)  # 1-254, last octet
    end_octet = Column(Integer, nullable=False, default=1)
    role = Column(String(50), default="general")
    description = Column(Text)
    sort_order = Column(Integer, default=0)
