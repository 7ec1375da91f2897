"""Shared test fixtures for the nhl_etl test suite.

Provides in-memory reference catalogs, a fake fetcher and sample payloads
matching the NHL stats API response shapes.
"""

from __future__ import annotations

import copy
from datetime import date
from typing import Any, Dict, List

import pytest

from nhl_etl.catalogs import ReferenceCatalogs, SeasonInfo
from nhl_etl.config import Config
from nhl_etl.flatten import flatten_record


# ---------------------------------------------------------------------------
# Raw record builders
# ---------------------------------------------------------------------------

def make_game(
    game_pk: int = 2019020001,
    game_type: str = "R",
    status: str = "Final",
    away_goals: int = 3,
    home_goals: int = 2,
    current_period: int = 3,
    has_shootout: bool = False,
    away_id: int = 6,
    home_id: int = 10,
    season: str = "20192020",
    game_date: str = "2019-10-02T23:00:00Z",
) -> Dict[str, Any]:
    """One game object as nested in ``schedule?expand=schedule.linescore``."""
    return {
        "gamePk": game_pk,
        "link": f"/api/v1/game/{game_pk}/feed/live",
        "gameType": game_type,
        "season": season,
        "gameDate": game_date,
        "status": {"abstractGameState": status, "detailedState": status, "statusCode": "7"},
        "teams": {
            "away": {"score": away_goals, "team": {"id": away_id, "name": "Away"}},
            "home": {"score": home_goals, "team": {"id": home_id, "name": "Home"}},
        },
        "linescore": {
            "currentPeriod": current_period,
            "hasShootout": has_shootout,
            "teams": {
                "away": {"goals": away_goals, "shotsOnGoal": 30},
                "home": {"goals": home_goals, "shotsOnGoal": 28},
            },
        },
        "venue": {"id": 5085, "name": "Scotiabank Arena"},
    }


def make_pick(
    year: int = 2020,
    round_: str = "1",
    pick_in_round: int = 1,
    overall: int = 1,
    team_id: int = 8,
    prospect_id: int = 80000,
    full_name: str = "Prospect One",
) -> Dict[str, Any]:
    return {
        "year": year,
        "round": round_,
        "pickInRound": pick_in_round,
        "pickOverall": overall,
        "team": {"id": team_id, "name": "Team", "link": f"/api/v1/teams/{team_id}"},
        "prospect": {"id": prospect_id, "fullName": full_name, "link": f"/api/v1/draft/prospects/{prospect_id}"},
    }


def schedule_payload(games: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Wrap games the way the schedule endpoint groups them by date."""
    by_date: Dict[str, List[Dict[str, Any]]] = {}
    for game in games:
        by_date.setdefault(game.get("gameDate", "")[:10], []).append(game)
    return {
        "totalItems": len(games),
        "dates": [{"date": d, "totalGames": len(g), "games": g} for d, g in by_date.items()],
    }


def draft_payload(picks: List[Dict[str, Any]], year: int = 2020) -> Dict[str, Any]:
    rounds: Dict[str, List[Dict[str, Any]]] = {}
    for pick in picks:
        rounds.setdefault(pick.get("round", "1"), []).append(pick)
    return {
        "drafts": [
            {
                "draftYear": year,
                "rounds": [{"roundNumber": int(r), "round": r, "picks": p} for r, p in rounds.items()],
            }
        ]
    }


# ---------------------------------------------------------------------------
# Fake fetcher
# ---------------------------------------------------------------------------

class FakeFetcher:
    """Stands in for ``Fetcher``; returns canned flattened records per key."""

    def __init__(self, games=None, picks=None, fail_on=None) -> None:
        self.games: Dict[str, List[Dict[str, Any]]] = games or {}
        self.picks: Dict[int, List[Dict[str, Any]]] = picks or {}
        self.fail_on = fail_on
        self.calls: List[Any] = []
        self.closed = False

    async def fetch_schedule(self, season: SeasonInfo) -> List[Dict[str, Any]]:
        self.calls.append(season.season_id)
        if season.season_id == self.fail_on:
            raise RuntimeError(f"transport failure for {season.season_id}")
        return [flatten_record(copy.deepcopy(g)) for g in self.games.get(season.season_id, [])]

    async def fetch_draft(self, year: int) -> List[Dict[str, Any]]:
        self.calls.append(year)
        if year == self.fail_on:
            raise RuntimeError(f"transport failure for {year}")
        return [flatten_record(copy.deepcopy(p)) for p in self.picks.get(year, [])]

    async def close(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def catalogs() -> ReferenceCatalogs:
    seasons = [
        SeasonInfo("20182019", "2018-2019", date(2018, 10, 3), date(2019, 6, 12)),
        SeasonInfo("20192020", "2019-2020", date(2019, 10, 2), date(2020, 9, 28)),
    ]
    teams = {6: "BOS", 8: "MTL", 10: "TOR", 16: "CHI", 19: "STL"}
    prospects = {80000: 8481540, 80001: 8481528}
    return ReferenceCatalogs.build(seasons, teams, prospects)


@pytest.fixture()
def sample_config() -> Config:
    return Config({
        "api": {
            "base_url": "https://statsapi.test/api/v1/",
            "timeout_seconds": 5,
            "max_concurrency": 1,
            "rate_limit_per_sec": 100,
            "retry": {"max_attempts": 1, "base_delay_seconds": 0.001, "max_delay_seconds": 0.01},
        },
        "pacing": {"min_seconds": 0.0, "max_seconds": 0.0},
        "endpoints": {
            "schedule": {
                "path": "schedule",
                "type": "season",
                "start_date_param": "startDate",
                "end_date_param": "endDate",
                "expand": "schedule.linescore",
                "records_path": ["dates", "games"],
            },
            "draft_picks": {
                "path": "draft/{year}",
                "type": "draft_year",
                "records_path": ["drafts", "rounds", "picks"],
            },
        },
        "catalogs": {"dir": None},
        "logging": {"level": "WARNING"},
    })


@pytest.fixture()
def ten_games() -> List[Dict[str, Any]]:
    return [
        make_game(game_pk=2019020001 + i, game_date=f"2019-10-{2 + i:02d}T23:00:00Z")
        for i in range(10)
    ]
