from subnetly.models.site import Site, SiteSettings, CustomCategory
from subnetly.models.vlan import VLAN
from subnetly.models.subnet import Subnet, IPAddress, IPRange
from subnetly.models.range_scheme import SubnetTemplate, IPRangeScheme, IPRangeSchemeEntry
from subnetly.models.device import Device, Service
from subnetly.models.wifi import WifiNetwork
from subnetly.models.changelog import ChangeLog

__all__ = [
    "Site", "SiteSettings", "CustomCategory",
    "VLAN",
    "Subnet", "IPAddress", "IPRange",
    "SubnetTemplate", "IPRangeScheme", "IPRangeSchemeEntry",
    "Device", "Service",
    "WifiNetwork",
    "ChangeLog",
]
