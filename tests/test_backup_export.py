"""
Tests for services/backup_export.py.
"""
from datetime import datetime

import pytest

from subnetly.exceptions import NotFound
from subnetly.services.backup_export import backup_filename, export_site


class TestExportSite:
    async def test_document_shape(self, db, populated_site_id) -> None:
        doc = await export_site(db, populated_site_id)

        assert doc["version"] == "1.0"
        assert doc["exportedAt"]
        assert doc["site"]["name"] == "Home Lab"
        assert doc["site"]["slug"] == "home-lab"
        assert {k: len(doc[k]) for k in (
            "categories", "vlans", "subnets", "devices", "ipAddresses", "ipRanges",
            "subnetTemplates", "rangeSchemes", "services", "wifiNetworks", "changeLogs",
        )} == {
            "categories": 1, "vlans": 1, "subnets": 2, "devices": 3, "ipAddresses": 2, "ipRanges": 1,
            "subnetTemplates": 1, "rangeSchemes": 1, "services": 1, "wifiNetworks": 1, "changeLogs": 1,
        }
        assert doc["siteSettings"]["healthCheckEnabled"] is True
        assert doc["siteSettings"]["healthCheckInterval"] == 120

    async def test_references_use_export_ids(self, db, populated_site_id) -> None:
        doc = await export_site(db, populated_site_id)

        vlan_id = doc["vlans"][0]["_exportId"]
        assert isinstance(vlan_id, str)
        servers = next(s for s in doc["subnets"] if s["prefix"] == "10.0.10.0")
        home = next(s for s in doc["subnets"] if s["prefix"] == "192.168.1.0")
        assert servers["_vlanExportId"] == vlan_id
        assert home["_vlanExportId"] is None

        nas_ip = next(ip for ip in doc["ipAddresses"] if ip["address"] == "10.0.10.5")
        assert nas_ip["_subnetExportId"] == servers["_exportId"]
        assert nas_ip["assignedTo"] == "nas"

        entry = doc["rangeSchemes"][0]["entries"][0]
        assert doc["ipRanges"][0]["_schemeEntryExportId"] == entry["_exportId"]
        assert doc["ipRanges"][0]["_subnetExportId"] == servers["_exportId"]

        nas = next(d for d in doc["devices"] if d["name"] == "nas")
        assert doc["services"][0]["_deviceExportId"] == nas["_exportId"]

        wifi = doc["wifiNetworks"][0]
        assert wifi["_vlanExportId"] == vlan_id
        assert wifi["_subnetExportId"] == servers["_exportId"]

    async def test_passphrase_exported_in_clear(self, db, populated_site_id) -> None:
        doc = await export_site(db, populated_site_id)
        assert doc["wifiNetworks"][0]["passphrase"] == "correct horse battery staple"

    async def test_camel_case_keys(self, db, populated_site_id) -> None:
        doc = await export_site(db, populated_site_id)
        device = doc["devices"][0]
        assert {"macAddress", "ipAddress", "assetTag", "_exportId"} <= set(device)
        assert "ip_address" not in device
        assert {"objectType", "objectId", "action", "changes", "timestamp"} <= set(doc["changeLogs"][0])

    async def test_deterministic(self, db, populated_site_id) -> None:
        first = await export_site(db, populated_site_id)
        second = await export_site(db, populated_site_id)
        first.pop("exportedAt")
        second.pop("exportedAt")
        assert first == second

    async def test_devices_ordered_by_name(self, db, populated_site_id) -> None:
        doc = await export_site(db, populated_site_id)
        assert [d["name"] for d in doc["devices"]] == ["laptop", "nas", "printer"]

    async def test_empty_site(self, db, empty_site_id) -> None:
        doc = await export_site(db, empty_site_id)
        assert doc["vlans"] == []
        assert doc["siteSettings"] is None

    async def test_unknown_site(self, db) -> None:
        with pytest.raises(NotFound):
            await export_site(db, 9999)


def test_backup_filename() -> None:
    assert backup_filename("home-lab", datetime(2024, 5, 1, 23, 59)) == "subnetly-backup-home-lab-2024-05-01.json"
