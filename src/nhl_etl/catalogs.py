"""Read-only reference catalogs used for key validation and dimension joins.

Catalogs are loaded once per process from CSV files and handed explicitly to
the pipeline; nothing here is module-level state.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import pyarrow as pa
import pyarrow.csv as pacsv

DATA_DIR = Path(__file__).with_name("data")
FIRST_DRAFT_YEAR = 1963

SEASONS_TYPES = {
    "season_id": pa.string(),
    "season_years": pa.string(),
    "season_regular_start": pa.date32(),
    "season_playoffs_end": pa.date32(),
}
TEAMS_TYPES = {"team_id": pa.int64(), "team_abbreviation": pa.string()}
PROSPECTS_TYPES = {"prospect_id": pa.int64(), "player_id": pa.int64()}


class InvalidKeyError(ValueError):
    def __init__(self, parameter: str, invalid: Sequence[Any]) -> None:
        self.parameter = parameter
        self.invalid = list(invalid)
        values = ", ".join(str(v) for v in self.invalid)
        super().__init__(f"the following values are invalid for parameter '{parameter}': {values}")


@dataclass(frozen=True)
class SeasonInfo:
    season_id: str
    season_years: Optional[str]
    regular_start: date
    playoffs_end: date

    @property
    def end_year(self) -> int:
        return int(self.season_id[4:8])


@dataclass(frozen=True)
class ReferenceCatalogs:
    seasons: Mapping[str, SeasonInfo]
    teams: Mapping[int, str]
    prospects: Mapping[int, int]

    @classmethod
    def build(
        cls,
        seasons: Iterable[SeasonInfo],
        teams: Mapping[int, str],
        prospects: Optional[Mapping[int, int]] = None,
    ) -> "ReferenceCatalogs":
        return cls(
            seasons=MappingProxyType({s.season_id: s for s in seasons}),
            teams=MappingProxyType(dict(teams)),
            prospects=MappingProxyType(dict(prospects or {})),
        )

    @property
    def latest_draft_year(self) -> int:
        if not self.seasons:
            return FIRST_DRAFT_YEAR
        return max(s.end_year for s in self.seasons.values())

    def validate_seasons(self, keys: Union[str, int, Iterable[Union[str, int]]]) -> List[str]:
        season_ids = [str(k) for k in _as_keys(keys)]
        invalid = [k for k in season_ids if k not in self.seasons]
        if invalid:
            raise InvalidKeyError("season_keys", invalid)
        return season_ids

    def validate_draft_years(self, keys: Union[str, int, Iterable[Union[str, int]]]) -> List[int]:
        years: List[int] = []
        invalid: List[Any] = []
        latest = self.latest_draft_year
        for key in _as_keys(keys):
            year = _parse_year(key)
            if year is None or not FIRST_DRAFT_YEAR <= year <= latest:
                invalid.append(key)
            else:
                years.append(year)
        if invalid:
            raise InvalidKeyError("draft_years", invalid)
        return years


def _as_keys(keys: Any) -> List[Any]:
    if isinstance(keys, (str, int)):
        return [keys]
    return list(keys)


def _parse_year(key: Any) -> Optional[int]:
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key
    if isinstance(key, str) and key.strip().isdigit():
        return int(key.strip())
    return None


def _read_csv(path: Path, column_types: Dict[str, pa.DataType]) -> pa.Table:
    table = pacsv.read_csv(
        str(path),
        convert_options=pacsv.ConvertOptions(
            column_types=column_types,
            include_columns=list(column_types),
        ),
    )
    return table


def load_catalogs(directory: Optional[Union[str, Path]] = None) -> ReferenceCatalogs:
    base = Path(directory) if directory else DATA_DIR
    seasons_tbl = _read_csv(base / "seasons.csv", SEASONS_TYPES)
    teams_tbl = _read_csv(base / "teams.csv", TEAMS_TYPES)
    prospects_tbl = _read_csv(base / "prospects.csv", PROSPECTS_TYPES)

    seasons = [
        SeasonInfo(
            season_id=row["season_id"],
            season_years=row["season_years"],
            regular_start=row["season_regular_start"],
            playoffs_end=row["season_playoffs_end"],
        )
        for row in seasons_tbl.to_pylist()
        if row["season_id"]
    ]
    teams = {
        row["team_id"]: row["team_abbreviation"]
        for row in teams_tbl.to_pylist()
        if row["team_id"] is not None
    }
    prospects = {
        row["prospect_id"]: row["player_id"]
        for row in prospects_tbl.to_pylist()
        if row["prospect_id"] is not None
    }
    return ReferenceCatalogs.build(seasons, teams, prospects)
