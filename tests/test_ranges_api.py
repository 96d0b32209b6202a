"""
Tests for IP range creation and range-scheme stamping.
"""
import json

import pytest
from sqlalchemy import select

from subnetly.models import ChangeLog, IPRangeScheme, IPRangeSchemeEntry


def _site(site_id: int) -> dict:
    return {"X-Site-ID": str(site_id)}


async def _subnet_id(client, site_id, prefix):
    subnets = (await client.get("/api/subnets/", headers=_site(site_id))).json()
    return next(s["id"] for s in subnets if s["prefix"] == prefix)


async def _ranges(client, site_id, subnet_id):
    rows = (await client.get("/api/ranges/", headers=_site(site_id))).json()
    return [r for r in rows if r["subnet_id"] == subnet_id]


class TestCreateRange:
    async def test_create(self, client, populated_site_id) -> None:
        subnet_id = await _subnet_id(client, populated_site_id, "192.168.1.0")
        resp = await client.post("/api/ranges/", headers=_site(populated_site_id), json={
            "subnet_id": subnet_id, "start_addr": " 192.168.1.20 ", "end_addr": "192.168.1.29",
        })
        assert resp.status_code == 200
        body = resp.json()
        assert body["start_addr"] == "192.168.1.20"
        assert body["role"] == "dhcp"
        assert body["scheme_entry_id"] is None
        assert len(await _ranges(client, populated_site_id, subnet_id)) == 1

    @pytest.mark.parametrize("start,end", [
        ("192.168.1.50", "192.168.1.40"),   # reversed
        ("192.168.1.250", "192.168.2.10"),  # runs past the subnet
        ("10.0.10.1", "10.0.10.9"),         # another subnet
        ("192.168.1", "192.168.1.9"),       # malformed
    ])
    async def test_rejected(self, client, populated_site_id, start, end) -> None:
        subnet_id = await _subnet_id(client, populated_site_id, "192.168.1.0")
        resp = await client.post("/api/ranges/", headers=_site(populated_site_id), json={
            "subnet_id": subnet_id, "start_addr": start, "end_addr": end,
        })
        assert resp.status_code == 400
        assert "error" in resp.json()
        assert await _ranges(client, populated_site_id, subnet_id) == []

    async def test_single_address_range(self, client, populated_site_id) -> None:
        subnet_id = await _subnet_id(client, populated_site_id, "192.168.1.0")
        resp = await client.post("/api/ranges/", headers=_site(populated_site_id), json={
            "subnet_id": subnet_id, "start_addr": "192.168.1.7", "end_addr": "192.168.1.7",
        })
        assert resp.status_code == 200

    async def test_subnet_of_other_site(self, client, populated_site_id, empty_site_id) -> None:
        subnet_id = await _subnet_id(client, populated_site_id, "192.168.1.0")
        resp = await client.post("/api/ranges/", headers=_site(empty_site_id), json={
            "subnet_id": subnet_id, "start_addr": "192.168.1.20", "end_addr": "192.168.1.29",
        })
        assert resp.status_code == 404


class TestApplyScheme:
    async def _scheme_id(self, db) -> int:
        return await db.scalar(select(IPRangeScheme.id))

    async def test_stamps_entries(self, client, db, populated_site_id) -> None:
        subnet_id = await _subnet_id(client, populated_site_id, "192.168.1.0")
        scheme_id = await self._scheme_id(db)
        entry_id = await db.scalar(select(IPRangeSchemeEntry.id))

        resp = await client.post("/api/range-schemes/apply", headers=_site(populated_site_id),
                                 json={"subnet_id": subnet_id, "scheme_id": scheme_id})
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "applied": 1}

        (stamped,) = await _ranges(client, populated_site_id, subnet_id)
        assert stamped["start_addr"] == "192.168.1.100"
        assert stamped["end_addr"] == "192.168.1.199"
        assert stamped["role"] == "dhcp"
        assert stamped["scheme_entry_id"] == entry_id

        log = (await db.execute(
            select(ChangeLog).where(ChangeLog.object_type == "IPRangeScheme")
        )).scalar_one()
        assert json.loads(log.changes) == {
            "type": "apply", "subnetId": subnet_id, "replaceExisting": False, "entries": 1,
        }

    async def test_appends_by_default(self, client, db, populated_site_id) -> None:
        subnet_id = await _subnet_id(client, populated_site_id, "10.0.10.0")
        resp = await client.post("/api/range-schemes/apply", headers=_site(populated_site_id),
                                 json={"subnet_id": subnet_id, "scheme_id": await self._scheme_id(db)})
        assert resp.status_code == 200
        assert len(await _ranges(client, populated_site_id, subnet_id)) == 2

    async def test_replace_existing(self, client, db, populated_site_id) -> None:
        subnet_id = await _subnet_id(client, populated_site_id, "10.0.10.0")
        await client.post("/api/ranges/", headers=_site(populated_site_id), json={
            "subnet_id": subnet_id, "start_addr": "10.0.10.20", "end_addr": "10.0.10.29", "role": "static",
        })
        resp = await client.post("/api/range-schemes/apply", headers=_site(populated_site_id), json={
            "subnet_id": subnet_id, "scheme_id": await self._scheme_id(db), "replace_existing": True,
        })
        assert resp.status_code == 200

        rows = await _ranges(client, populated_site_id, subnet_id)
        assert [(r["start_addr"], r["role"]) for r in rows] == [("10.0.10.100", "dhcp")]

    async def test_entry_outside_subnet_writes_nothing(self, client, db, populated_site_id) -> None:
        small = (await client.post("/api/subnets/", headers=_site(populated_site_id),
                                   json={"prefix": "10.7.0.0", "mask": 25})).json()
        await client.post("/api/ranges/", headers=_site(populated_site_id), json={
            "subnet_id": small["id"], "start_addr": "10.7.0.10", "end_addr": "10.7.0.20",
        })
        # The scheme's 100-199 entry ends past 10.7.0.127
        resp = await client.post("/api/range-schemes/apply", headers=_site(populated_site_id), json={
            "subnet_id": small["id"], "scheme_id": await self._scheme_id(db), "replace_existing": True,
        })
        assert resp.status_code == 400

        rows = await _ranges(client, populated_site_id, small["id"])
        assert [r["start_addr"] for r in rows] == ["10.7.0.10"]

    async def test_unknown_scheme(self, client, populated_site_id) -> None:
        subnet_id = await _subnet_id(client, populated_site_id, "10.0.10.0")
        resp = await client.post("/api/range-schemes/apply", headers=_site(populated_site_id),
                                 json={"subnet_id": subnet_id, "scheme_id": 9999})
        assert resp.status_code == 404
        assert resp.json() == {"error": "Scheme not found"}

    async def test_scheme_of_other_site(self, client, db, populated_site_id, empty_site_id) -> None:
        subnet = (await client.post("/api/subnets/", headers=_site(empty_site_id),
                                    json={"prefix": "10.8.0.0", "mask": 24})).json()
        resp = await client.post("/api/range-schemes/apply", headers=_site(empty_site_id),
                                 json={"subnet_id": subnet["id"], "scheme_id": await self._scheme_id(db)})
        assert resp.status_code == 404
