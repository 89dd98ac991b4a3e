import datetime
import uuid
from decimal import Decimal

import pytest

from vind.database.models import ColumnInfo, Filter, ResultSet
from vind.database.values import ValueKind, classify_value, normalize_value, to_json_value


def test_filter_parse_wire_form():
    assert Filter.parse("age:>=:30") == Filter("age", ">=", "30")
    assert Filter.parse("url:=:http://example.com") == Filter("url", "=", "http://example.com")
    assert Filter.parse("broken") is None


def test_result_set_rejects_ragged_rows():
    with pytest.raises(ValueError):
        ResultSet(columns=("a", "b"), rows=((1, 2), (3,)))


def test_result_set_is_immutable_tuples():
    result = ResultSet.from_rows(["a"], [[1], [None]])

    assert result.rows == ((1,), (None,))
    assert result.row_count == 2
    with pytest.raises(AttributeError):
        result.columns = ("b",)


def test_result_set_to_dict_keeps_null_distinct():
    result = ResultSet.from_rows(["id", "note"], [(1, None), (2, "")])
    assert result.to_dict() == {"columns": ["id", "note"], "rows": [[1, None], [2, ""]]}


def test_column_info_default_none_vs_empty():
    assert ColumnInfo("a", "text", True).to_dict()["default"] is None
    assert ColumnInfo("b", "text", True, default="''::text").to_dict()["default"] == "''::text"


@pytest.mark.parametrize("value,kind", [
    (None, ValueKind.NULL),
    (True, ValueKind.BOOLEAN),
    (0, ValueKind.INTEGER),
    (1.5, ValueKind.FLOAT),
    ("", ValueKind.TEXT),
    (b"\x00", ValueKind.BINARY),
    (Decimal("1.10"), ValueKind.OTHER),
    (datetime.date(2024, 1, 2), ValueKind.OTHER),
])
def test_classify_value(value, kind):
    assert classify_value(value) is kind


def test_normalize_memoryview_to_bytes():
    assert normalize_value(memoryview(b"x")) == b"x"
    assert normalize_value(None) is None
    assert normalize_value(0) == 0


def test_to_json_value_renders_driver_types():
    ident = uuid.UUID("12345678-1234-5678-1234-567812345678")

    assert to_json_value(b"hi") == "aGk="
    assert to_json_value(Decimal("1.10")) == "1.10"
    assert to_json_value(datetime.datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02T03:04:05"
    assert to_json_value(ident) == str(ident)
    assert to_json_value({"k": [Decimal("2")]}) == {"k": ["2"]}
    assert to_json_value(None) is None


def test_to_json_value_non_finite_floats():
    assert to_json_value(float("nan")) == "NaN"
    assert to_json_value(float("inf")) == "Infinity"
    assert to_json_value(float("-inf")) == "-Infinity"
    assert to_json_value(1.5) == 1.5
    assert classify_value(float("nan")) is ValueKind.FLOAT
