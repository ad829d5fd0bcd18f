"""Integration tests: builders executed against an in-memory SQLite database.

The ``db`` fixture seeds 50 users (ids 1..50, ages 20..59, statuses cycling
active / inactive / banned) and three orders.
"""
from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from querycraft import QueryCraft
from querycraft.errors import NoRowsError


@dataclass
class User:
    id: int = field(metadata={"db": "id"})
    name: str = field(metadata={"db": "name"})
    email: str = field(metadata={"db": "email"})
    age: int | None = field(default=None, metadata={"db": "age"})


@dataclass
class NewUser:
    name: str = field(metadata={"db": "name"})
    email: str = field(metadata={"db": "email"})
    age: int = field(default=30, metadata={"db": "age"})
    note: str = ""


# ---------------------------------------------------------------------------
# SELECT
# ---------------------------------------------------------------------------


def test_rows_with_filters(db: QueryCraft):
    rows = (
        db.select("id", "name")
        .from_("users")
        .where_in("status", "active", "banned")
        .where_between("age", 20, 25)
        .order_by_desc("id")
        .rows()
    )
    assert [r["id"] for r in rows] == [6, 4, 3, 1]


def test_one_into_dataclass(db: QueryCraft):
    user = db.select("*").from_("users").where_eq("id", 3).one(User)
    assert user == User(id=3, name="user3", email="user3@example.com", age=22)


def test_one_without_rows_raises(db: QueryCraft):
    with pytest.raises(NoRowsError):
        db.select("*").from_("users").where_eq("id", 999).one()


def test_join_and_group_by(db: QueryCraft):
    rows = (
        db.select("u.name", "COUNT(o.id) AS orders")
        .from_("users u")
        .join("orders o", "o.user_id = u.id")
        .group_by("u.name")
        .order_by("u.name")
        .rows()
    )
    assert rows == [{"name": "user1", "orders": 2}, {"name": "user2", "orders": 1}]


def test_aggregates(db: QueryCraft):
    users = db.select().from_("users")
    assert users.count() == 50
    assert users.max("age") == 59
    assert users.min("age") == 20
    assert db.select().from_("orders").sum("total") == pytest.approx(35.75)
    assert db.select().from_("users").where_eq("status", "active").count() == 17


def test_sum_without_matches_is_zero(db: QueryCraft):
    assert db.select().from_("users").where_eq("id", 999).sum("age") == 0.0


def test_exists(db: QueryCraft):
    assert db.select().from_("users").where_eq("email", "user7@example.com").exists()
    assert not db.select().from_("users").where_eq("email", "nobody@example.com").exists()


def test_pluck_and_field(db: QueryCraft):
    ids = db.select().from_("users").where("id", "<=", 3).order_by("id").pluck("id")
    assert ids == [1, 2, 3]
    assert db.select().from_("users").where_eq("id", 2).field("name") == "user2"


def test_rows_map_key(db: QueryCraft):
    by_id = db.select("id", "name").from_("users").where_in("id", 1, 2).rows_map_key("id")
    assert by_id[2]["name"] == "user2"
    assert set(by_id) == {1, 2}


def test_where_exists_subquery(db: QueryCraft):
    buyers = (
        db.select("id")
        .from_("users u")
        .where_exists(db.select("1").from_("orders o").where_raw("o.user_id = u.id"))
        .order_by("id")
        .pluck("id")
    )
    assert buyers == [1, 2]


def test_offset_without_limit(db: QueryCraft):
    rows = db.select("id").from_("users").order_by("id").offset(48).rows()
    assert [r["id"] for r in rows] == [49, 50]


def test_explain(db: QueryCraft):
    plan = db.select("*").from_("users").where_eq("id", 1).explain()
    assert plan
    assert "detail" in plan[0]


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


def test_paginate_second_page(db: QueryCraft):
    result = db.select("id").from_("users").order_by("id").paginate(2, 10)
    assert result.total == 50
    assert result.last_page == 5
    assert result.current_page == 2
    assert (result.from_, result.to) == (11, 20)
    assert [r["id"] for r in result.data] == list(range(11, 21))


def test_paginate_past_the_end(db: QueryCraft):
    result = db.select("id").from_("users").order_by("id").paginate(9, 10)
    assert result.data == []
    assert (result.from_, result.to) == (0, 0)


def test_paginate_grouped_query_counts_groups(db: QueryCraft):
    result = (
        db.select("status", "COUNT(*) AS n")
        .from_("users")
        .group_by("status")
        .order_by("status")
        .paginate(1, 2)
    )
    assert result.total == 3
    assert result.last_page == 2
    assert (result.from_, result.to) == (1, 2)
    assert result.data == [{"status": "active", "n": 17}, {"status": "banned", "n": 16}]


def test_keyset_paginate_walks_forward(db: QueryCraft):
    query = db.select("id", "name").from_("users")
    first = query.keyset_paginate("id", None, 10, "asc")
    assert len(first.data) == 10
    assert first.has_more
    assert first.next_cursor == 10
    assert first.prev_cursor == 1

    second = query.keyset_paginate("id", first.next_cursor, 10, "asc")
    assert second.data[0]["id"] == 11

    tail = query.keyset_paginate("id", 45, 10, "asc")
    assert [r["id"] for r in tail.data] == [46, 47, 48, 49, 50]
    assert not tail.has_more
    assert tail.next_cursor is None


def test_keyset_paginate_descending_into_model(db: QueryCraft):
    page = db.select("*").from_("users").keyset_paginate("id", 5, 2, "desc", model=User)
    assert [u.id for u in page.data] == [4, 3]
    assert page.has_more


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def test_insert_returns_id(db: QueryCraft):
    new_id = (
        db.insert("users").columns("name", "email").values("new", "new@example.com").exec_return_id()
    )
    assert new_id == 51
    assert db.select().from_("users").where_eq("id", 51).field("status") == "active"


def test_insert_records_and_mappings(db: QueryCraft):
    res = db.insert("users").values(
        [NewUser("a", "a@example.com"), NewUser("b", "b@example.com", age=41)]
    ).exec()
    assert res.rows_affected == 2
    assert db.select().from_("users").where_eq("email", "b@example.com").field("age") == 41


def test_insert_ignore_skips_duplicates(db: QueryCraft):
    res = (
        db.insert("users")
        .values({"name": "dup", "email": "user1@example.com"})
        .ignore()
        .exec()
    )
    assert res.rows_affected == 0
    assert db.select().from_("users").where_eq("id", 1).field("name") == "user1"


def test_insert_replace_swaps_conflicting_row(db: QueryCraft):
    res = (
        db.insert("users")
        .values({"name": "swapped", "email": "user1@example.com"})
        .replace()
        .exec()
    )
    assert res.rows_affected >= 1
    assert db.select().from_("users").where_eq("id", 1).exists() is False
    by_email = db.select().from_("users").where_eq("email", "user1@example.com")
    assert by_email.field("name") == "swapped"
    assert db.select().from_("users").count() == 50


def test_insert_from_select(db: QueryCraft):
    banned = db.select("id", "name").from_("users").where_eq("status", "banned")
    res = db.insert("archived_users").columns("id", "name").from_select(banned).exec()
    assert res.rows_affected == 16
    assert db.select().from_("archived_users").count() == 16


def test_upsert_updates_selected_columns(db: QueryCraft):
    (
        db.upsert("users")
        .values({"name": "renamed", "email": "user1@example.com", "age": 99})
        .on_conflict("email")
        .do_update("name")
        .exec()
    )
    row = db.select("name", "age").from_("users").where_eq("id", 1).row()
    assert row == {"name": "renamed", "age": 20}
    assert db.select().from_("users").count() == 50


def test_upsert_do_nothing(db: QueryCraft):
    res = (
        db.upsert("users")
        .values({"name": "x", "email": "user2@example.com"})
        .on_conflict("email")
        .do_nothing()
        .exec()
    )
    assert res.rows_affected == 0


def test_update_increment_and_set(db: QueryCraft):
    res = (
        db.update("users")
        .increment("login_count", 2)
        .set("status", "inactive")
        .where_eq("id", 1)
        .exec()
    )
    assert res.rows_affected == 1
    row = db.select("login_count", "status").from_("users").where_eq("id", 1).row()
    assert row == {"login_count": 2, "status": "inactive"}


def test_delete(db: QueryCraft):
    res = db.delete("orders").where_eq("user_id", 1).exec()
    assert res.rows_affected == 2
    assert db.select().from_("orders").count() == 1


def test_blob_stays_bytes(db: QueryCraft):
    avatar = b"\xff\x00\x01"
    db.insert("users").values(
        {"name": "pic", "email": "pic@example.com", "avatar": avatar}
    ).exec()
    assert db.select().from_("users").where_eq("email", "pic@example.com").field("avatar") == avatar


def test_raw_query(db: QueryCraft):
    row = db.raw("SELECT COUNT(*) AS n FROM users WHERE age > ?", 50).row()
    assert row == {"n": 9}
