"""Required-field schemas and typed projection of records onto them.

Two kinds of spec live here: ``RAW_SPECS`` describe the flattened API fields a
batch must carry before derivation, ``TABLE_SPECS`` describe the canonical
output tables. Casting never raises; anything that does not fit its declared
type becomes null.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import pyarrow as pa


@dataclass(frozen=True)
class FieldSpec:
    name: str
    type: pa.DataType
    default: Any = None


@dataclass(frozen=True)
class TableSpec:
    name: str
    fields: Tuple[FieldSpec, ...]

    @property
    def column_names(self) -> List[str]:
        return [f.name for f in self.fields]


RAW_SPECS: Dict[str, TableSpec] = {
    "games": TableSpec(
        name="games",
        fields=(
            FieldSpec("season", pa.string()),
            FieldSpec("gamePk", pa.int64()),
            FieldSpec("gameType", pa.string()),
            FieldSpec("gameDate", pa.string()),
            FieldSpec("status.detailedState", pa.string()),
            FieldSpec("venue.name", pa.string()),
            FieldSpec("teams.away.team.id", pa.int64()),
            FieldSpec("teams.home.team.id", pa.int64()),
            FieldSpec("linescore.teams.away.goals", pa.int64()),
            FieldSpec("linescore.teams.home.goals", pa.int64()),
            FieldSpec("linescore.currentPeriod", pa.int64()),
            FieldSpec("linescore.hasShootout", pa.bool_()),
        ),
    ),
    "draft_picks": TableSpec(
        name="draft_picks",
        fields=(
            FieldSpec("year", pa.int64()),
            FieldSpec("round", pa.string()),
            FieldSpec("pickInRound", pa.int64()),
            FieldSpec("pickOverall", pa.int64()),
            FieldSpec("team.id", pa.int64()),
            FieldSpec("prospect.id", pa.int64()),
            FieldSpec("prospect.fullName", pa.string()),
        ),
    ),
}

TABLE_SPECS: Dict[str, TableSpec] = {
    "schedule": TableSpec(
        name="schedule",
        fields=(
            FieldSpec("season_id", pa.string()),
            FieldSpec("season_years", pa.string()),
            FieldSpec("season_type", pa.string()),
            FieldSpec("game_id", pa.int64()),
            FieldSpec("game_datetime", pa.timestamp("s", tz="UTC")),
            FieldSpec("game_status", pa.string()),
            FieldSpec("venue_name", pa.string()),
            FieldSpec("away_id", pa.int64()),
            FieldSpec("away_team", pa.string()),
            FieldSpec("away_score", pa.int64()),
            FieldSpec("home_score", pa.int64()),
            FieldSpec("home_team", pa.string()),
            FieldSpec("home_id", pa.int64()),
            FieldSpec("game_nbot", pa.int64()),
            FieldSpec("game_shootout", pa.bool_()),
        ),
    ),
    "draft": TableSpec(
        name="draft",
        fields=(
            FieldSpec("draft_year", pa.int64()),
            FieldSpec("draft_round", pa.int64()),
            FieldSpec("draft_pick", pa.int64()),
            FieldSpec("draft_overall", pa.int64()),
            FieldSpec("team_id", pa.int64()),
            FieldSpec("team_abbreviation", pa.string()),
            FieldSpec("prospect_id", pa.int64()),
            FieldSpec("prospect_fullname", pa.string()),
            FieldSpec("player_id", pa.int64()),
        ),
    ),
}


def normalize_batch(records: Sequence[Dict[str, Any]], spec: TableSpec) -> List[Dict[str, Any]]:
    """Guarantee every field of ``spec`` on every record of one fetched batch.

    A field that no record carries is added to the whole batch with its
    declared default. A field that some records carry is left null on the
    records that lack it. Input records are not modified.
    """
    present = set()
    for rec in records:
        present.update(rec.keys())
    out: List[Dict[str, Any]] = []
    for rec in records:
        row = dict(rec)
        for f in spec.fields:
            if f.name not in present:
                value = f.default
            else:
                value = rec.get(f.name)
            row[f.name] = _cast_value(value, f.type)
        out.append(row)
    return out


def schema_for(table_name: str, tz: Optional[str] = None) -> pa.Schema:
    spec = TABLE_SPECS[table_name]
    fields = []
    for f in spec.fields:
        typ = f.type
        if tz and pa.types.is_timestamp(typ):
            typ = pa.timestamp(typ.unit, tz=tz)
        fields.append(pa.field(f.name, typ))
    return pa.schema(fields)


def empty_table(table_name: str, tz: Optional[str] = None) -> pa.Table:
    return schema_for(table_name, tz).empty_table()


def normalize_records(table_name: str, rows: Iterable[Dict[str, Any]], tz: Optional[str] = None) -> pa.Table:
    """Project rows onto a canonical table schema, in spec column order.

    Raises ``KeyError`` for a table name outside ``TABLE_SPECS``.
    """
    schema = schema_for(table_name, tz)
    rows = list(rows)
    if not rows:
        return schema.empty_table()
    columns = {}
    for fld in schema:
        values = [_cast_value(row.get(fld.name), fld.type) for row in rows]
        columns[fld.name] = pa.array(values, type=fld.type)
    return pa.table(columns, schema=schema)


def _cast_value(value: Any, typ: pa.DataType) -> Any:
    if value is None:
        return None
    if pa.types.is_boolean(typ):
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in ("true", "1", "yes")
        if isinstance(value, (int, float)):
            return bool(value)
        return None
    if pa.types.is_integer(typ):
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value) if value.is_integer() else None
        try:
            return int(str(value).strip())
        except ValueError:
            return None
    if pa.types.is_timestamp(typ):
        parsed = value if isinstance(value, datetime) else parse_timestamp(value)
        if parsed is None:
            return None
        # second resolution columns reject sub-second values
        return parsed.replace(microsecond=0)
    if pa.types.is_string(typ):
        if isinstance(value, (dict, list)):
            return None
        return str(value)
    return value


def parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value.strip():
        return None
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
