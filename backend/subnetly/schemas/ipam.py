from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime


class VLANCreate(BaseModel):
    vid: int = Field(ge=1, le=4094)
    name: str
    status: str = "active"
    role: Optional[str] = None
    description: Optional[str] = None


class VLANResponse(BaseModel):
    id: int
    site_id: int
    vid: int
    name: str
    status: Optional[str] = None
    role: Optional[str] = None
    description: Optional[str] = None

    model_config = {"from_attributes": True}


class SubnetCreate(BaseModel):
    prefix: str
    mask: int = Field(ge=0, le=32)
    gateway: Optional[str] = None
    description: Optional[str] = None
    status: str = "active"
    role: Optional[str] = None
    is_pool: bool = False
    vlan_id: Optional[int] = None

    @field_validator("prefix")
    @classmethod
    def strip_prefix(cls, v: str) -> str:
        return v.strip()


class SubnetResponse(BaseModel):
    id: int
    site_id: int
    vlan_id: Optional[int] = None
    prefix: str
    mask: int
    gateway: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    role: Optional[str] = None
    is_pool: Optional[bool] = None

    model_config = {"from_attributes": True}


class IPAddressCreate(BaseModel):
    address: str
    subnet_id: int
    mask: Optional[int] = Field(default=None, ge=0, le=32)  # defaults to the subnet's
    status: str = "active"
    dns_name: Optional[str] = None
    description: Optional[str] = None
    assigned_to: Optional[str] = None

    @field_validator("address")
    @classmethod
    def strip_address(cls, v: str) -> str:
        return v.strip()


class IPAddressResponse(BaseModel):
    id: int
    subnet_id: int
    address: str
    mask: Optional[int] = None
    status: Optional[str] = None
    dns_name: Optional[str] = None
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class IPRangeCreate(BaseModel):
    subnet_id: int
    start_addr: str
    end_addr: str
    role: str = "dhcp"
    description: Optional[str] = None
    status: str = "active"

    @field_validator("start_addr", "end_addr")
    @classmethod
    def strip_addr(cls, v: str) -> str:
        return v.strip()


class IPRangeResponse(BaseModel):
    id: int
    subnet_id: int
    scheme_entry_id: Optional[int] = None
    start_addr: str
    end_addr: str
    role: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None

    model_config = {"from_attributes": True}


class RangeSchemeApply(BaseModel):
    subnet_id: int
    scheme_id: int
    replace_existing: bool = False


class RangeSchemeApplyResponse(BaseModel):
    success: bool
    applied: int
