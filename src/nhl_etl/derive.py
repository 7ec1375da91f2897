"""Derived columns for schedule and draft rows.

Every function here works on one normalized raw record and returns plain
values; none of them raise on malformed input.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Optional

from .normalize import parse_timestamp

TRACKED_GAME_TYPES = ("R", "P")
REGULAR_SEASON_CODE = "02"
REGULATION_PERIODS = 3
FINAL_STATUS = "final"
SCORE_FIELDS = ("away_score", "home_score", "game_nbot", "game_shootout")

_SEASON_ID = re.compile(r"^(\d{4})(\d{4})$")


def is_tracked_game(record: Dict[str, Any]) -> bool:
    return record.get("gameType") in TRACKED_GAME_TYPES


def season_label(season_id: Optional[str]) -> Optional[str]:
    if season_id is None:
        return None
    match = _SEASON_ID.match(str(season_id))
    if not match:
        return None
    start, end = match.groups()
    if int(end) != int(start) + 1:
        return None
    return f"{start}-{end}"


def season_type_from_game_id(game_id: Any) -> Optional[str]:
    if game_id is None:
        return None
    code = str(game_id)[4:6]
    if len(code) < 2:
        return None
    return "regular" if code == REGULAR_SEASON_CODE else "playoffs"


def parse_game_datetime(raw: Any, tz: tzinfo) -> Optional[datetime]:
    parsed = parse_timestamp(raw)
    if parsed is None:
        return None
    return parsed.astimezone(tz)


def overtime_periods(current_period: Optional[int], has_shootout: Optional[bool]) -> Optional[int]:
    if current_period is None or has_shootout is None:
        return None
    return current_period - int(has_shootout) - REGULATION_PERIODS


def suppress_unfinished(row: Dict[str, Any]) -> Dict[str, Any]:
    if row.get("game_status") == FINAL_STATUS:
        return row
    out = dict(row)
    for name in SCORE_FIELDS:
        out[name] = None
    return out


def derive_game(record: Dict[str, Any], tz: tzinfo = timezone.utc) -> Dict[str, Any]:
    status = record.get("status.detailedState")
    shootout = record.get("linescore.hasShootout")
    row = {
        "season_id": record.get("season"),
        "season_years": season_label(record.get("season")),
        "season_type": season_type_from_game_id(record.get("gamePk")),
        "game_id": record.get("gamePk"),
        "game_datetime": parse_game_datetime(record.get("gameDate"), tz),
        "game_status": status.lower() if isinstance(status, str) else None,
        "venue_name": record.get("venue.name"),
        "away_id": record.get("teams.away.team.id"),
        "home_id": record.get("teams.home.team.id"),
        "away_score": record.get("linescore.teams.away.goals"),
        "home_score": record.get("linescore.teams.home.goals"),
        "game_nbot": overtime_periods(record.get("linescore.currentPeriod"), shootout),
        "game_shootout": shootout,
    }
    return suppress_unfinished(row)


def _to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    raw = str(value).strip()
    if raw.lstrip("-").isdigit():
        return int(raw)
    return None


def derive_draft_pick(record: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "draft_year": record.get("year"),
        "draft_round": _to_int(record.get("round")),
        "draft_pick": record.get("pickInRound"),
        "draft_overall": record.get("pickOverall"),
        "team_id": record.get("team.id"),
        "prospect_id": record.get("prospect.id"),
        "prospect_fullname": record.get("prospect.fullName"),
    }
