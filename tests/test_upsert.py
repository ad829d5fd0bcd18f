"""Unit tests for the Upsert builder."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from querycraft import QueryCraft
from querycraft.errors import UnsupportedValueError


@dataclass
class Visit:
    email: str = field(metadata={"db": "email"})
    name: str = field(metadata={"db": "name"})
    visits: int = field(default=1, metadata={"db": "visits"})


ROW = {"email": "a@x.com", "name": "A", "visits": 1}


def test_default_updates_all_non_conflict_columns(my: QueryCraft, pg: QueryCraft):
    sql, args = my.upsert("users").values(ROW).on_conflict("email").to_sql()
    assert sql == (
        "INSERT INTO `users` (`email`, `name`, `visits`) VALUES (?, ?, ?) "
        "ON DUPLICATE KEY UPDATE `name` = VALUES(`name`), `visits` = VALUES(`visits`)"
    )
    assert args == ["a@x.com", "A", 1]

    sql, _ = pg.upsert("users").values(ROW).on_conflict("email").to_sql()
    assert sql == (
        'INSERT INTO "users" ("email", "name", "visits") VALUES ($1, $2, $3) '
        'ON CONFLICT ("email") DO UPDATE SET "name" = EXCLUDED."name", '
        '"visits" = EXCLUDED."visits"'
    )


def test_do_update_selects_columns(sq: QueryCraft):
    sql, _ = sq.upsert("users").values(ROW).on_conflict("email").do_update("name").to_sql()
    assert sql.endswith('ON CONFLICT ("email") DO UPDATE SET "name" = excluded."name"')


def test_do_update_except(my: QueryCraft):
    sql, _ = my.upsert("users").values(ROW).on_conflict("email").do_update_except("visits").to_sql()
    assert sql.endswith("ON DUPLICATE KEY UPDATE `name` = VALUES(`name`)")


def test_do_nothing(my: QueryCraft, pg: QueryCraft, sq: QueryCraft):
    assert my.upsert("users").values(ROW).do_nothing().to_sql()[0].startswith("INSERT IGNORE INTO")
    assert sq.upsert("users").values(ROW).do_nothing().to_sql()[0].startswith(
        "INSERT OR IGNORE INTO"
    )
    assert pg.upsert("users").values(ROW).on_conflict("email").do_nothing().to_sql()[0].endswith(
        'ON CONFLICT ("email") DO NOTHING'
    )


def test_records_and_lists(my: QueryCraft):
    sql, args = (
        my.upsert("users")
        .values([Visit("a@x.com", "A"), Visit("b@x.com", "B", 3)])
        .on_conflict("email")
        .do_update("visits")
        .to_sql()
    )
    assert sql == (
        "INSERT INTO `users` (`email`, `name`, `visits`) VALUES (?, ?, ?), (?, ?, ?) "
        "ON DUPLICATE KEY UPDATE `visits` = VALUES(`visits`)"
    )
    assert args == ["a@x.com", "A", 1, "b@x.com", "B", 3]


@pytest.mark.parametrize("bad", [1, "text", [1, 2], object()])
def test_unsupported_values_raise(my: QueryCraft, bad):
    with pytest.raises(UnsupportedValueError):
        my.upsert("users").values(bad)


def test_exec_return_id(my: QueryCraft, recorder):
    assert my.upsert("users").values(ROW).on_conflict("email").exec_return_id() == 1
    assert recorder.calls[-1][0] == "execute"
