"""Tests for ``drape.scan`` - ready-made row scanners."""

from __future__ import annotations

import pytest
from pydantic import BaseModel, ValidationError

from drape import NoRowsError, Row, ScanError, ScanMany, ScanOne, new_context
from drape.scan import (
    DictListScanner,
    DictScanner,
    ModelListScanner,
    ModelScanner,
    RowCallbackScanner,
    ScalarListScanner,
    ScalarScanner,
)


class User(BaseModel):
    id: int
    name: str
    age: int | None = None


class TestProtocols:
    @pytest.mark.parametrize("scanner", [ScalarScanner(), DictScanner(), ModelScanner(User)])
    def test_single_row_scanners(self, scanner):
        assert isinstance(scanner, ScanOne)

    @pytest.mark.parametrize(
        "scanner",
        [ScalarListScanner(), DictListScanner(), ModelListScanner(User), RowCallbackScanner(print)],
    )
    def test_many_row_scanners(self, scanner):
        assert isinstance(scanner, ScanMany)


class TestScalarScanners:
    def test_scalar(self, seeded_db):
        count = ScalarScanner()
        seeded_db.fetch_one(new_context(), count, "SELECT count(*) FROM users")
        assert count.value == 3

    def test_scalar_list(self, seeded_db):
        names = ScalarListScanner()
        seeded_db.fetch_many(new_context(), names, "SELECT name FROM users ORDER BY id")
        assert names.values == ["ada", "grace", "linus"]

    def test_row_without_columns(self):
        with pytest.raises(ScanError, match="no columns"):
            ScalarScanner().scan_row(Row((), ()))


class TestDictScanners:
    def test_dict(self, seeded_db):
        user = DictScanner()
        seeded_db.fetch_one(None, user, "SELECT id, name FROM users WHERE id = ?", 2)
        assert user.value == {"id": 2, "name": "grace"}

    def test_dict_list(self, seeded_db):
        users = DictListScanner()
        seeded_db.fetch_many(None, users, "SELECT name, age FROM users WHERE age > ? ORDER BY id", 30)
        assert len(users) == 2
        assert users.items[1] == {"name": "grace", "age": 45}

    def test_dict_untouched_on_no_rows(self, db):
        user = DictScanner()
        with pytest.raises(NoRowsError):
            db.fetch_one(None, user, "SELECT * FROM users")
        assert user.value is None


class TestModelScanners:
    def test_model(self, seeded_db):
        user = ModelScanner(User)
        seeded_db.fetch_one(None, user, "SELECT id, name, age FROM users WHERE name = ?", "ada")
        assert user.value == User(id=1, name="ada", age=36)

    def test_model_list(self, seeded_db):
        users = ModelListScanner(User)
        seeded_db.fetch_many(None, users, "SELECT id, name FROM users ORDER BY id")
        assert [u.name for u in users.items] == ["ada", "grace", "linus"]
        assert users.items[0].age is None
        assert len(users) == 3

    def test_validation_failure_is_scan_error(self, seeded_db, recorder):
        seeded_db.register_hook(recorder)
        users = ModelListScanner(User)

        with pytest.raises(ScanError, match="does not match User") as exc_info:
            seeded_db.fetch_many(None, users, "SELECT id FROM users ORDER BY id")

        assert isinstance(exc_info.value.__cause__, ValidationError)
        assert users.items == []
        assert recorder.last.error is exc_info.value


class TestRowCallbackScanner:
    def test_streams_rows(self, seeded_db):
        seen = []
        scanner = RowCallbackScanner(lambda row: seen.append(row["name"]))
        seeded_db.fetch_many(None, scanner, "SELECT name FROM users ORDER BY id")
        assert seen == ["ada", "grace", "linus"]
        assert scanner.count == 3

    def test_callback_error_stops_iteration(self, seeded_db):
        def explode(row):
            if row["name"] == "grace":
                raise LookupError("grace is special")

        scanner = RowCallbackScanner(explode)
        with pytest.raises(LookupError, match="grace is special"):
            seeded_db.fetch_many(None, scanner, "SELECT name FROM users ORDER BY id")
        assert scanner.count == 1
