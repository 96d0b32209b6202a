from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import datetime


class DeviceCreate(BaseModel):
    name: str
    mac_address: str = ""
    ip_address: str = ""
    category: str = "Server"
    status: str = "active"
    serial: Optional[str] = None
    asset_tag: Optional[str] = None
    platform: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("name", "mac_address", "ip_address", mode="before")
    @classmethod
    def strip_text(cls, v):
        # ip_address is free text; reconciliation decides whether it parses
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v


class DeviceUpdate(BaseModel):
    name: Optional[str] = None
    mac_address: Optional[str] = None
    ip_address: Optional[str] = None
    category: Optional[str] = None
    status: Optional[str] = None
    serial: Optional[str] = None
    asset_tag: Optional[str] = None
    platform: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("name", "mac_address", "ip_address")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v


class DeviceResponse(BaseModel):
    id: int
    site_id: int
    name: str
    mac_address: str
    ip_address: str
    category: Optional[str] = None
    status: Optional[str] = None
    serial: Optional[str] = None
    asset_tag: Optional[str] = None
    platform: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
