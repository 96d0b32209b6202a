from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from subnetly.database import Base


class Subnet(Base):
    __tablename__ = "subnets"

    id = Column(Integer, primary_key=True, index=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False, index=True)
    vlan_id = Column(Integer, ForeignKey("vlans.id"), nullable=True, index=True)
    prefix = Column(String(50), nullable=False)   # network base, e.g. "10.0.10.0"
    mask = Column(Integer, nullable=False)        # prefix length 0-32
    gateway = Column(String(50))
    description = Column(Text)
    status = Column(String(20), default="active")
    role = Column(String(50))
    is_pool = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    vlan = relationship("VLAN")


class IPAddress(Base):
    __tablename__ = "ip_addresses"

    id = Column(Integer, primary_key=True, index=True)
    subnet_id = Column(Integer, ForeignKey("subnets.id"), nullable=False, index=True)
    address = Column(String(50), nullable=False, index=True)
    mask = Column(Integer, default=24)
    status = Column(String(20), default="active")  # active, reserved, dhcp, deprecated
    dns_name = Column(String(255))
    description = Column(Text)
    assigned_to = Column(String(255), nullable=True)  # device name, not an id
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    subnet = relationship("Subnet")

    __table_args__ = (
        UniqueConstraint("address", "subnet_id", name="uq_ip_address_subnet"),
    )


class IPRange(Base):
    __tablename__ = "ip_ranges"

    id = Column(Integer, primary_key=True, index=True)
    subnet_id = Column(Integer, ForeignKey("subnets.id"), nullable=False, index=True)
    scheme_entry_id = Column(Integer, ForeignKey("ip_range_scheme_entries.id"), nullable=True)
    start_addr = Column(String(50), nullable=False)
    end_addr = Column(String(50), nullable=False)
    role = Column(String(50), default="general")  # dhcp, static, reserved, general
    description = Column(Text)
    status = Column(String(20), default="active")
