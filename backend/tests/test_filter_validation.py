import logging

import pytest

from app.services.filters import (
    MAX_FILTER_ID,
    coerce_filter_id,
    dedupe_and_sort,
    name_sort_key,
    validate_filter_ids,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (1, 1),
        (42, 42),
        (2.0, 2),
        ("7", 7),
        (" 8 ", 8),
        (0, None),
        (-1, None),
        (1.5, None),
        (float("nan"), None),
        (float("inf"), None),
        (True, None),
        ("", None),
        ("abc", None),
        ("-3", None),
        ("1.5", None),
        ("0", None),
        (None, None),
        ([1], None),
    ],
)
def test_coerce_filter_id(value, expected):
    assert coerce_filter_id(value) == expected


def test_validate_filter_ids_keeps_order_and_drops_duplicates(caplog):
    with caplog.at_level(logging.WARNING):
        result = validate_filter_ids([3, 1, 3, "2"], field="project_ids")

    assert result.valid == (3, 1, 2)
    assert result.invalid == ()
    assert caplog.records == []


def test_validate_filter_ids_logs_valid_and_invalid_subsets(caplog):
    with caplog.at_level(logging.WARNING):
        result = validate_filter_ids([1, -1, 0, 1.5, 2], field="project_ids", user_id="u-1")

    assert result.valid == (1, 2)
    assert result.invalid == (-1, 0, 1.5)

    [record] = caplog.records
    assert record.levelno == logging.WARNING
    assert record.extra_fields["field"] == "project_ids"
    assert record.extra_fields["user_id"] == "u-1"
    assert record.extra_fields["valid"] == [1, 2]
    assert record.extra_fields["invalid"] == ["-1", "0", "1.5"]


def test_validate_filter_ids_uses_injected_logger(caplog):
    custom = logging.getLogger("tests.filters.custom")

    with caplog.at_level(logging.WARNING, logger="tests.filters.custom"):
        validate_filter_ids(["x"], field="department_ids", log=custom)

    assert [record.name for record in caplog.records] == ["tests.filters.custom"]


def test_name_sort_is_case_insensitive():
    names = ["zebra", "Apple", "banana"]

    assert sorted(names, key=name_sort_key) == ["Apple", "banana", "zebra"]


def test_name_sort_ignores_accents():
    names = ["Zulu", "éclair", "Echo", "delta"]

    assert sorted(names, key=name_sort_key) == ["delta", "Echo", "éclair", "Zulu"]


class Row:
    def __init__(self, id, name):
        self.id = id
        self.name = name


def test_dedupe_and_sort_keeps_one_row_per_id():
    rows = [Row(2, "beta"), Row(1, "Alpha"), Row(2, "beta"), Row(3, "alpha")]

    result = dedupe_and_sort(rows)

    assert [row.id for row in result] == [1, 3, 2]


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (MAX_FILTER_ID, MAX_FILTER_ID),
        (str(MAX_FILTER_ID), MAX_FILTER_ID),
        (MAX_FILTER_ID + 1, None),
        ("99999999999999999999", None),
        (1e30, None),
    ],
)
def test_coerce_filter_id_rejects_values_beyond_bigint(value, expected):
    assert coerce_filter_id(value) == expected
