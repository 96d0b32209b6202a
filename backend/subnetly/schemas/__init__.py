from subnetly.schemas.device import DeviceCreate, DeviceUpdate, DeviceResponse
from subnetly.schemas.ipam import (
    VLANCreate, VLANResponse, SubnetCreate, SubnetResponse, IPAddressCreate, IPAddressResponse,
    IPRangeCreate, IPRangeResponse, RangeSchemeApply, RangeSchemeApplyResponse,
)
from subnetly.schemas.backup import Snapshot, ImportResponse

__all__ = [
    "DeviceCreate", "DeviceUpdate", "DeviceResponse",
    "VLANCreate", "VLANResponse", "SubnetCreate", "SubnetResponse",
    "IPAddressCreate", "IPAddressResponse",
    "IPRangeCreate", "IPRangeResponse", "RangeSchemeApply", "RangeSchemeApplyResponse",
    "Snapshot", "ImportResponse",
]
