"""
Site snapshot document.

One set of models describes the backup format for both directions: the
exporter builds them from ORM rows and dumps them by alias, the importer
validates uploaded documents against them. Keys are camelCase on the wire;
cross-references use synthetic export ids (``_exportId`` and friends) that
stay meaningful after the exporting database is gone.
"""
import json
from datetime import datetime
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def _coerce_export_id(v: Any) -> Optional[str]:
    if v is None or v == "":
        return None
    return str(v)


# Storage ids are integers here but arbitrary strings in other installations
ExportId = Annotated[Optional[str], BeforeValidator(_coerce_export_id)]


class SnapshotModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        # Explicit nulls fall back to the field default, as a missing key does
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class SnapshotSite(SnapshotModel):
    name: str
    slug: str
    description: Optional[str] = None
    address: Optional[str] = None


class SnapshotSiteSettings(SnapshotModel):
    health_check_enabled: bool = False
    health_check_interval: int = 300
    health_check_timeout: int = 10


class SnapshotCategory(SnapshotModel):
    type: str = "device"
    name: str
    slug: str
    icon: str = "server"
    color: str = "#5e6670"
    sort_order: int = 0


class SnapshotVlan(SnapshotModel):
    vid: int = Field(ge=1, le=4094)
    name: str
    status: str = "active"
    role: Optional[str] = None
    description: Optional[str] = None
    export_id: ExportId = Field(default=None, alias="_exportId")


class SnapshotSubnet(SnapshotModel):
    prefix: str
    mask: int = Field(ge=0, le=32)
    description: Optional[str] = None
    gateway: Optional[str] = None
    status: str = "active"
    role: Optional[str] = None
    is_pool: bool = False
    export_id: ExportId = Field(default=None, alias="_exportId")
    vlan_export_id: ExportId = Field(default=None, alias="_vlanExportId")


class SnapshotDevice(SnapshotModel):
    name: str
    mac_address: str = ""
    ip_address: str = ""
    category: str = "Server"
    status: str = "active"
    serial: Optional[str] = None
    asset_tag: Optional[str] = None
    notes: Optional[str] = None
    platform: Optional[str] = None
    export_id: ExportId = Field(default=None, alias="_exportId")


class SnapshotIPAddress(SnapshotModel):
    address: str
    mask: int = 24
    status: str = "active"
    dns_name: Optional[str] = None
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    subnet_export_id: ExportId = Field(default=None, alias="_subnetExportId")


class SnapshotIPRange(SnapshotModel):
    start_addr: str
    end_addr: str
    role: str = "general"
    description: Optional[str] = None
    status: str = "active"
    subnet_export_id: ExportId = Field(default=None, alias="_subnetExportId")
    scheme_entry_export_id: ExportId = Field(default=None, alias="_schemeEntryExportId")


class SnapshotSubnetTemplate(SnapshotModel):
    name: str
    slug: Optional[str] = None
    prefix: str
    mask: int = 24
    gateway: Optional[str] = None
    role: Optional[str] = None
    description: Optional[str] = None
    sort_order: int = 0


class SnapshotSchemeEntry(SnapshotModel):
    start_octet: int = 1
    end_octet: int = 1
    role: str = "general"
    description: Optional[str] = None
    sort_order: Optional[int] = None  # defaults to position within the scheme
    export_id: ExportId = Field(default=None, alias="_exportId")


class SnapshotRangeScheme(SnapshotModel):
    name: str
    slug: Optional[str] = None
    description: Optional[str] = None
    sort_order: int = 0
    entries: List[SnapshotSchemeEntry] = []


class SnapshotService(SnapshotModel):
    name: str
    protocol: str = "tcp"
    ports: str = ""
    description: Optional[str] = None
    url: Optional[str] = None
    environment: str = "production"
    is_docker: bool = False
    docker_image: Optional[str] = None
    docker_compose: bool = False
    stack_name: Optional[str] = None
    health_status: str = "unknown"
    version: Optional[str] = None
    dependencies: Optional[str] = None
    tags: Optional[str] = None
    health_check_enabled: bool = False
    device_export_id: ExportId = Field(default=None, alias="_deviceExportId")


class SnapshotWifiNetwork(SnapshotModel):
    ssid: str
    security: str = "wpa2-personal"
    passphrase: Optional[str] = None  # plaintext inside the snapshot
    band: str = "both"
    hidden: bool = False
    enabled: bool = True
    guest_network: bool = False
    client_isolation: bool = False
    band_steering: bool = True
    pmf: str = "optional"
    tx_power: str = "auto"
    min_rate: Optional[int] = None
    description: Optional[str] = None
    vlan_export_id: ExportId = Field(default=None, alias="_vlanExportId")
    subnet_export_id: ExportId = Field(default=None, alias="_subnetExportId")


class SnapshotChangeLog(SnapshotModel):
    object_type: str
    object_id: str
    action: str
    changes: Optional[str] = None
    timestamp: Optional[datetime] = None

    @field_validator("object_id", mode="before")
    @classmethod
    def stringify_object_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator("changes", mode="before")
    @classmethod
    def encode_changes(cls, v: Any) -> Any:
        if isinstance(v, (dict, list)):
            return json.dumps(v)
        return v


class Snapshot(SnapshotModel):
    version: str
    exported_at: Optional[str] = None
    site: SnapshotSite
    categories: List[SnapshotCategory] = []
    vlans: List[SnapshotVlan] = []
    subnets: List[SnapshotSubnet] = []
    devices: List[SnapshotDevice] = []
    ip_addresses: List[SnapshotIPAddress] = []
    ip_ranges: List[SnapshotIPRange] = []
    subnet_templates: List[SnapshotSubnetTemplate] = []
    range_schemes: List[SnapshotRangeScheme] = []
    services: List[SnapshotService] = []
    wifi_networks: List[SnapshotWifiNetwork] = []
    site_settings: Optional[SnapshotSiteSettings] = None
    change_logs: List[SnapshotChangeLog] = []

    @field_validator("version", mode="before")
    @classmethod
    def stringify_version(cls, v: Any) -> Any:
        return str(v) if isinstance(v, (int, float)) else v


class ImportResponse(BaseModel):
    success: bool = True
    message: str = "Backup imported successfully"
    counts: Dict[str, int]
    skipped: Dict[str, int]
