"""Tests for required-field normalization and canonical projection."""

from __future__ import annotations

from datetime import datetime, timezone

import pyarrow as pa
import pytest

from nhl_etl.normalize import (
    RAW_SPECS,
    TABLE_SPECS,
    FieldSpec,
    TableSpec,
    _cast_value,
    empty_table,
    normalize_batch,
    normalize_records,
    schema_for,
)


class TestNormalizeBatchPresence:
    @pytest.mark.parametrize("kind", ["games", "draft_picks"])
    def test_every_field_present_on_every_record(self, kind):
        spec = RAW_SPECS[kind]
        records = [{"unrelated": 1}, {}, {spec.fields[0].name: "x"}]
        out = normalize_batch(records, spec)
        assert len(out) == 3
        for rec in out:
            for name in spec.column_names:
                assert name in rec

    def test_absent_column_gets_declared_default(self):
        spec = TableSpec("t", (FieldSpec("a", pa.int64(), default=7), FieldSpec("b", pa.string(), default="n/a")))
        out = normalize_batch([{"a": 1}, {"a": 2}], spec)
        assert [r["b"] for r in out] == ["n/a", "n/a"]

    def test_partially_present_column_is_null_not_default(self):
        spec = TableSpec("t", (FieldSpec("a", pa.int64(), default=7),))
        out = normalize_batch([{"a": 1}, {"other": True}], spec)
        assert [r["a"] for r in out] == [1, None]

    def test_empty_batch(self):
        assert normalize_batch([], RAW_SPECS["games"]) == []

    def test_input_not_mutated(self):
        records = [{"gamePk": "2019020001"}]
        normalize_batch(records, RAW_SPECS["games"])
        assert records == [{"gamePk": "2019020001"}]

    def test_values_cast_to_declared_type(self):
        out = normalize_batch(
            [{"gamePk": "2019020001", "linescore.hasShootout": "true", "linescore.currentPeriod": "bogus"}],
            RAW_SPECS["games"],
        )
        assert out[0]["gamePk"] == 2019020001
        assert out[0]["linescore.hasShootout"] is True
        assert out[0]["linescore.currentPeriod"] is None

    def test_extra_fields_are_kept(self):
        out = normalize_batch([{"link": "/api/v1/game/1"}], RAW_SPECS["games"])
        assert out[0]["link"] == "/api/v1/game/1"


class TestNormalizeRecords:
    def test_column_order_follows_spec(self):
        rows = [{"game_shootout": False, "season_id": "20192020", "game_id": 2019020001}]
        table = normalize_records("schedule", rows, tz="UTC")
        assert table.column_names == TABLE_SPECS["schedule"].column_names
        assert table.column("game_id").to_pylist() == [2019020001]
        assert table.column("away_score").to_pylist() == [None]

    def test_timestamp_column_carries_timezone(self):
        rows = [{"game_datetime": datetime(2019, 10, 2, 23, 0, tzinfo=timezone.utc)}]
        table = normalize_records("schedule", rows, tz="America/Toronto")
        typ = table.schema.field("game_datetime").type
        assert pa.types.is_timestamp(typ)
        assert typ.tz == "America/Toronto"

    def test_empty_rows_give_typed_empty_table(self):
        table = normalize_records("draft", [])
        assert table.num_rows == 0
        assert table.schema == schema_for("draft")

    def test_unknown_table_rejected(self):
        with pytest.raises(KeyError):
            normalize_records("scratch", [{"x": 1, "y": "hello"}])

    def test_empty_table_helper(self):
        table = empty_table("schedule", tz="UTC")
        assert table.column_names == TABLE_SPECS["schedule"].column_names


class TestCastValueEdgeCases:
    def test_bool_strings(self):
        assert _cast_value("true", pa.bool_()) is True
        assert _cast_value("yes", pa.bool_()) is True
        assert _cast_value("1", pa.bool_()) is True
        assert _cast_value("false", pa.bool_()) is False
        assert _cast_value("no", pa.bool_()) is False

    def test_none_for_all_types(self):
        for typ in (pa.int64(), pa.string(), pa.bool_(), pa.timestamp("s", tz="UTC")):
            assert _cast_value(None, typ) is None

    def test_int_from_strings(self):
        assert _cast_value("42", pa.int64()) == 42
        assert _cast_value("3.14", pa.int64()) is None
        assert _cast_value("not_a_number", pa.int64()) is None

    def test_bool_is_not_an_int(self):
        assert _cast_value(True, pa.int64()) is None

    def test_timestamp(self):
        result = _cast_value("2019-10-02T23:00:00Z", pa.timestamp("s", tz="UTC"))
        assert result == datetime(2019, 10, 2, 23, 0, tzinfo=timezone.utc)
        assert _cast_value("not-a-date", pa.timestamp("s", tz="UTC")) is None

    def test_timestamp_drops_subseconds(self):
        result = _cast_value("2019-10-02T23:00:00.250Z", pa.timestamp("s", tz="UTC"))
        assert result.microsecond == 0

    def test_string_passthrough(self):
        assert _cast_value(42, pa.string()) == "42"
        assert _cast_value(True, pa.string()) == "True"
        assert _cast_value({"nested": 1}, pa.string()) is None

