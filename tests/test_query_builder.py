"""Tests for SQL text generation."""

import re

import pytest

from db.errors import BuildError
from db.query_builder import (
    build_delete_by_id,
    build_insert,
    build_select_by_id,
    build_update_by_id,
    count_placeholders,
    placeholders,
    quote_identifier,
)


def _numbers(sql):
    return [int(n) for n in re.findall(r"\$(\d+)", sql)]


@pytest.mark.parametrize("n", range(1, 25))
def test_insert_has_contiguous_placeholders(n):
    sql = build_insert("events", n)
    assert _numbers(sql) == list(range(1, n + 1))
    assert count_placeholders(sql) == n


def test_insert_text():
    assert build_insert("events", 3) == 'INSERT INTO "events" VALUES ($1, $2, $3)'


def test_insert_with_columns():
    sql = build_insert("events", 3, ["id", "name", "payload"])
    assert sql == 'INSERT INTO "events" ("id", "name", "payload") VALUES ($1, $2, $3)'


def test_insert_rejects_zero_values():
    with pytest.raises(BuildError):
        build_insert("events", 0)


def test_insert_rejects_column_count_mismatch():
    with pytest.raises(BuildError):
        build_insert("events", 2, ["id", "name", "payload"])


def test_select_by_id():
    assert build_select_by_id("events") == 'SELECT * FROM "events" WHERE "id" = $1'
    assert build_select_by_id("events", ["id", "name"]) == (
        'SELECT "id", "name" FROM "events" WHERE "id" = $1'
    )
    assert count_placeholders(build_select_by_id("events")) == 1


@pytest.mark.parametrize("n", range(2, 20))
def test_update_places_id_last(n):
    columns = [f"c{i}" for i in range(1, n)]
    sql = build_update_by_id("t", columns)
    set_clause, where_clause = sql.split(" WHERE ")
    assert _numbers(set_clause) == list(range(1, n))
    assert _numbers(where_clause) == [n]
    assert count_placeholders(sql) == n


def test_update_text():
    assert build_update_by_id("events", ["name", "payload"]) == (
        'UPDATE "events" SET "name" = $1, "payload" = $2 WHERE "id" = $3'
    )


def test_update_without_columns_fails():
    with pytest.raises(BuildError):
        build_update_by_id("events", [])


def test_delete_by_id():
    assert build_delete_by_id("events") == 'DELETE FROM "events" WHERE "id" = $1'


def test_placeholders_offset():
    assert placeholders(3, start=4) == "$4, $5, $6"
    assert placeholders(0) == ""


@pytest.mark.parametrize(
    "name",
    ["events; DROP TABLE users", 'ev"ents', "1events", "", "a" * 64, "ev ents", None],
)
def test_quote_identifier_rejects_unsafe_names(name):
    with pytest.raises(BuildError):
        quote_identifier(name)


def test_table_name_is_validated_by_every_builder():
    bad = "events--"
    for build in (
        lambda: build_insert(bad, 1),
        lambda: build_select_by_id(bad),
        lambda: build_update_by_id(bad, ["name"]),
        lambda: build_delete_by_id(bad),
    ):
        with pytest.raises(BuildError):
            build()


def test_count_placeholders_rejects_gaps():
    with pytest.raises(BuildError):
        count_placeholders("SELECT $1, $3")
    assert count_placeholders("SELECT 1") == 0
    assert count_placeholders("SELECT $2, $1, $1") == 2
