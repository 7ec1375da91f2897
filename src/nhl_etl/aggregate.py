"""Merge per-key row-sets into the final schedule and draft tables."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

import pyarrow as pa
import pyarrow.compute as pc

from .normalize import TABLE_SPECS, empty_table

SCHEDULE_COLUMNS = TABLE_SPECS["schedule"].column_names
DRAFT_COLUMNS = TABLE_SPECS["draft"].column_names
ID_SUFFIX = "_id"
DRAFT_SORT_KEYS = [("draft_year", "ascending"), ("draft_overall", "ascending")]


def identifier_columns(names: Iterable[str]) -> List[str]:
    return [name for name in names if name.endswith(ID_SUFFIX)]


def strip_identifiers(table: pa.Table) -> pa.Table:
    return table.drop_columns(identifier_columns(table.column_names))


def _concat(table_name: str, batches: Sequence[pa.Table], tz: Optional[str] = None) -> pa.Table:
    batches = [b for b in batches if b is not None]
    if not batches:
        return empty_table(table_name, tz)
    return pa.concat_tables(batches)


def _finish(table: pa.Table, columns: List[str], keep_identifiers: bool) -> pa.Table:
    table = table.select(columns)
    if not keep_identifiers:
        table = strip_identifiers(table)
    return table


def aggregate_schedule(
    batches: Sequence[pa.Table],
    include_regular: bool = True,
    include_playoffs: bool = True,
    keep_identifiers: bool = False,
    tz: Optional[str] = None,
) -> pa.Table:
    """Concatenate schedule row-sets in key order and apply the output contract.

    Season-type filters drop rows with a null season type whenever either
    filter is active.
    """
    table = _concat("schedule", batches, tz)
    if not include_regular:
        table = table.filter(pc.not_equal(table["season_type"], "regular"))
    if not include_playoffs:
        table = table.filter(pc.not_equal(table["season_type"], "playoffs"))
    return _finish(table, SCHEDULE_COLUMNS, keep_identifiers)


def aggregate_draft(batches: Sequence[pa.Table], keep_identifiers: bool = False) -> pa.Table:
    table = _concat("draft", batches)
    if table.num_rows:
        table = table.sort_by(DRAFT_SORT_KEYS)
    return _finish(table, DRAFT_COLUMNS, keep_identifiers)
