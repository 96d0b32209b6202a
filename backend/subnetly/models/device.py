from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Float, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from subnetly.database import Base


class Device(Base):
    __tablename__ = "devices"

    id = Column(Integer, primary_key=True, index=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    mac_address = Column(String(50), nullable=False, default="")
    # Free text, "" when unset. Kept in step with IPAddress.assigned_to by
    # services.reconciliation rather than by a foreign key.
    ip_address = Column(String(50), nullable=False, default="", index=True)
    category = Column(String(100), default="Server")
    status = Column(String(20), default="active")  # active, planned, offline, decommissioned
    serial = Column(String(100))
    asset_tag = Column(String(100))
    platform = Column(String(100))
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False, index=True)
    device_id = Column(Integer, ForeignKey("devices.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    protocol = Column(String(10), default="tcp")
    ports = Column(String(255), default="")
    description = Column(Text)
    url = Column(String(500))
    environment = Column(String(50), default="production")
    is_docker = Column(Boolean, default=False)
    docker_image = Column(String(255))
    docker_compose = Column(Boolean, default=False)
    stack_name = Column(String(100))
    version = Column(String(100))
    dependencies = Column(Text)  # JSON array of service names
    tags = Column(Text)          # JSON array of tags

    # Health fields are written by the external health checker
    health_check_enabled = Column(Boolean, default=False)
    health_status = Column(String(20), default="unknown")  # healthy, degraded, down, unknown
    last_response_time = Column(Float, nullable=True)      # ms
    uptime_percent = Column(Float, nullable=True)
    last_checked_at = Column(DateTime(timezone=True), nullable=True)

    device = relationship("Device")
