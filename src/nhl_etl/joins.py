from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from .catalogs import ReferenceCatalogs


def _lookup(catalog: Mapping[int, Any], key: Any) -> Optional[Any]:
    """Left-join lookup: null and unknown keys resolve to None."""
    if key is None or isinstance(key, bool):
        return None
    try:
        return catalog.get(int(key))
    except (TypeError, ValueError):
        return None


def resolve_games(rows: Sequence[Dict[str, Any]], catalogs: ReferenceCatalogs) -> List[Dict[str, Any]]:
    out = []
    for row in rows:
        item = dict(row)
        item["away_team"] = _lookup(catalogs.teams, row.get("away_id"))
        item["home_team"] = _lookup(catalogs.teams, row.get("home_id"))
        out.append(item)
    return out


def resolve_draft_picks(rows: Sequence[Dict[str, Any]], catalogs: ReferenceCatalogs) -> List[Dict[str, Any]]:
    out = []
    for row in rows:
        item = dict(row)
        item["team_abbreviation"] = _lookup(catalogs.teams, row.get("team_id"))
        item["player_id"] = _lookup(catalogs.prospects, row.get("prospect_id"))
        out.append(item)
    return out
