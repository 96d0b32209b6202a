"""
Tests for the small support modules: exceptions, crypto and the change log writer.
"""
import json

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from subnetly.crypto import decrypt_passphrase, encrypt_passphrase
from subnetly.exceptions import (
    Conflict,
    InvalidAddress,
    InvalidSnapshot,
    NotFound,
    StorageFailure,
    StorageTimeout,
    SubnetlyError,
    translate_db_error,
)
from subnetly.models import ChangeLog
from subnetly.services.changelog import log_change


class TestErrors:
    def test_status_codes(self) -> None:
        assert SubnetlyError("x").status_code == 400
        assert InvalidAddress("x").status_code == 400
        assert InvalidSnapshot("x").status_code == 400
        assert NotFound("x").status_code == 404
        assert Conflict("x").status_code == 409
        assert StorageFailure("x").status_code == 500
        assert StorageTimeout("x").status_code == 503
        assert issubclass(StorageTimeout, StorageFailure)

    def test_attributes(self) -> None:
        exc = InvalidSnapshot("bad file", details=[{"loc": ["vlans", 0]}], status_code=422)
        assert exc.message == "bad file"
        assert str(exc) == "bad file"
        assert exc.details == [{"loc": ["vlans", 0]}]
        assert exc.status_code == 422
        assert exc.error_code == "invalid_snapshot"

    def test_translate_integrity_error(self) -> None:
        err = translate_db_error(IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed")))
        assert isinstance(err, Conflict)

    def test_translate_pool_timeout(self) -> None:
        assert isinstance(translate_db_error(PoolTimeoutError("pool exhausted")), StorageTimeout)

    def test_translate_statement_timeout(self) -> None:
        exc = OperationalError("SELECT", {}, Exception("canceling statement due to statement timeout"))
        assert isinstance(translate_db_error(exc), StorageTimeout)

    def test_translate_other(self) -> None:
        exc = OperationalError("SELECT", {}, Exception("disk I/O error"))
        err = translate_db_error(exc)
        assert type(err) is StorageFailure
        assert err.message == "Database error"


class TestCrypto:
    def test_round_trip(self) -> None:
        token = encrypt_passphrase("hunter2")
        assert token != "hunter2"
        assert decrypt_passphrase(token) == "hunter2"

    def test_empty_values_pass_through(self) -> None:
        assert encrypt_passphrase(None) is None
        assert encrypt_passphrase("") == ""
        assert decrypt_passphrase(None) is None

    def test_legacy_plaintext(self) -> None:
        assert decrypt_passphrase("stored-before-encryption") == "stored-before-encryption"


class TestChangeLog:
    async def test_dict_changes_encoded(self, db, site_id) -> None:
        log_change(db, site_id, "Device", 7, "update", {"name": "nas"})
        await db.commit()

        entry = (await db.execute(select(ChangeLog))).scalar_one()
        assert entry.object_id == "7"
        assert json.loads(entry.changes) == {"name": "nas"}
        assert await db.scalar(select(ChangeLog.timestamp)) is not None

    async def test_not_committed(self, db, site_id) -> None:
        log_change(db, site_id, "Device", 7, "delete")
        await db.rollback()
        assert (await db.execute(select(ChangeLog))).scalar_one_or_none() is None
