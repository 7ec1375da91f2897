"""Tidy schedule and draft tables assembled from the NHL stats API.

Each requested key is fetched, normalized, derived and joined before the next
one is requested; the per-key row-sets are then merged by the aggregator. Keys
are validated against the reference catalogs before any request is made, and
a failed fetch aborts the whole call.
"""

from __future__ import annotations

import asyncio
import logging
import os
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pyarrow as pa

from .aggregate import aggregate_draft, aggregate_schedule
from .api_client import ApiClient, ApiConfig
from .catalogs import ReferenceCatalogs, load_catalogs
from .config import Config, load_config
from .derive import derive_draft_pick, derive_game, is_tracked_game
from .extractors import build_registry
from .fetch import Fetcher
from .joins import resolve_draft_picks, resolve_games
from .logging_utils import get_logger, log_json
from .normalize import RAW_SPECS, normalize_batch, normalize_records

Keys = Union[str, int, Iterable[Union[str, int]]]


def resolve_timezone(name: Optional[str] = None) -> Tuple[tzinfo, str]:
    """Return the tzinfo used for conversion and the zone string stored in the column type.

    ``None`` means the local IANA zone (see ``local_zone_name``). Only when no
    zone name can be found does it fall back to the current local UTC offset.
    """
    if name is None:
        local_name = local_zone_name()
        if local_name:
            return ZoneInfo(local_name), local_name
        offset = datetime.now().astimezone().utcoffset() or timedelta(0)
        return timezone(offset), _format_offset(offset)
    try:
        return ZoneInfo(name), name
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"unknown time zone: {name!r}") from exc


def local_zone_name(
    localtime: str = "/etc/localtime",
    timezone_file: str = "/etc/timezone",
) -> Optional[str]:
    """Name of the local IANA zone, or ``None`` when it cannot be determined.

    Looked up in order: ``TZ`` (a name, ``:name`` or a zoneinfo file path),
    the target of the ``/etc/localtime`` symlink, then ``/etc/timezone``. A
    ``TZ`` that is set but names no known zone gives ``None`` without
    consulting the files.
    """
    env_value = os.getenv("TZ")
    if env_value:
        return _known_zone(_zone_from_path(env_value.lstrip(":")))
    if os.path.islink(localtime):
        name = _known_zone(_zone_from_path(os.path.realpath(localtime)))
        if name:
            return name
    if os.path.isfile(timezone_file):
        with open(timezone_file, "r", encoding="utf-8") as f:
            return _known_zone(f.read().strip())
    return None


def _zone_from_path(value: str) -> str:
    marker = "zoneinfo/"
    if value.startswith("/") and marker in value:
        value = value.split(marker, 1)[1]
        for prefix in ("posix/", "right/"):
            if value.startswith(prefix):
                value = value[len(prefix):]
    return value


def _known_zone(name: str) -> Optional[str]:
    if not name:
        return None
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return None
    return name


def _format_offset(offset: timedelta) -> str:
    minutes = int(offset.total_seconds() // 60)
    sign = "+" if minutes >= 0 else "-"
    hours, mins = divmod(abs(minutes), 60)
    return f"{sign}{hours:02d}:{mins:02d}"


def build_schedule_batch(
    records: Sequence[Dict[str, Any]],
    catalogs: ReferenceCatalogs,
    tz: tzinfo = timezone.utc,
    tz_name: str = "UTC",
) -> pa.Table:
    normalized = normalize_batch(records, RAW_SPECS["games"])
    rows = [derive_game(rec, tz) for rec in normalized if is_tracked_game(rec)]
    return normalize_records("schedule", resolve_games(rows, catalogs), tz=tz_name)


def build_draft_batch(records: Sequence[Dict[str, Any]], catalogs: ReferenceCatalogs) -> pa.Table:
    normalized = normalize_batch(records, RAW_SPECS["draft_picks"])
    rows = [derive_draft_pick(rec) for rec in normalized]
    return normalize_records("draft", resolve_draft_picks(rows, catalogs))


def build_fetcher(config: Config, logger=None) -> Fetcher:
    api = ApiClient(ApiConfig(**config.api))
    api.set_logger(logger)
    return Fetcher(api, build_registry(config.endpoints), pacing=config.pacing, logger=logger)


class TidyRunner:
    def __init__(
        self,
        config: Optional[Config] = None,
        catalogs: Optional[ReferenceCatalogs] = None,
        fetcher=None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config or load_config()
        self.logger = logger or get_logger("tidy")
        self.catalogs = catalogs or load_catalogs(self.config.catalogs_dir)
        self._fetcher = fetcher
        self._owns_fetcher = fetcher is None

    @property
    def fetcher(self):
        if self._fetcher is None:
            self._fetcher = build_fetcher(self.config, self.logger)
        return self._fetcher

    async def close(self) -> None:
        if self._owns_fetcher and self._fetcher is not None:
            await self._fetcher.close()

    async def _fetch(self, endpoint: str, key: Any, call) -> List[Dict[str, Any]]:
        log_json(self.logger, "fetch_start", endpoint=endpoint, key=key)
        try:
            return await call
        except Exception as exc:
            log_json(self.logger, "fetch_failed", level=logging.ERROR, endpoint=endpoint, key=key, error=str(exc))
            raise

    async def schedule(
        self,
        season_keys: Keys,
        include_regular: bool = True,
        include_playoffs: bool = True,
        timezone: Optional[str] = None,
        keep_identifiers: bool = False,
    ) -> pa.Table:
        season_ids = self.catalogs.validate_seasons(season_keys)
        tz, tz_name = resolve_timezone(timezone)
        batches: List[pa.Table] = []
        for season_id in season_ids:
            season = self.catalogs.seasons[season_id]
            records = await self._fetch("schedule", season_id, self.fetcher.fetch_schedule(season))
            batch = build_schedule_batch(records, self.catalogs, tz, tz_name)
            log_json(self.logger, "batch_built", endpoint="schedule", key=season_id, raw=len(records), rows=batch.num_rows)
            batches.append(batch)
        table = aggregate_schedule(
            batches,
            include_regular=include_regular,
            include_playoffs=include_playoffs,
            keep_identifiers=keep_identifiers,
            tz=tz_name,
        )
        log_json(self.logger, "aggregate_done", endpoint="schedule", keys=len(season_ids), rows=table.num_rows)
        return table

    async def draft(self, draft_years: Keys, keep_identifiers: bool = False) -> pa.Table:
        years = self.catalogs.validate_draft_years(draft_years)
        batches: List[pa.Table] = []
        for year in years:
            records = await self._fetch("draft_picks", year, self.fetcher.fetch_draft(year))
            batch = build_draft_batch(records, self.catalogs)
            log_json(self.logger, "batch_built", endpoint="draft_picks", key=year, raw=len(records), rows=batch.num_rows)
            batches.append(batch)
        table = aggregate_draft(batches, keep_identifiers=keep_identifiers)
        log_json(self.logger, "aggregate_done", endpoint="draft_picks", keys=len(years), rows=table.num_rows)
        return table


def tidy_schedule(
    season_keys: Keys,
    include_regular: bool = True,
    include_playoffs: bool = True,
    timezone: Optional[str] = None,
    keep_identifiers: bool = False,
    *,
    config: Optional[Config] = None,
    catalogs: Optional[ReferenceCatalogs] = None,
    fetcher=None,
) -> pa.Table:
    """Schedule of one or more seasons, one row per regular-season or playoff game.

    Args:
        season_keys: Season id(s) such as ``"20192020"``.
        include_regular: Keep regular-season games.
        include_playoffs: Keep playoff games.
        timezone: IANA zone for ``game_datetime``; ``None`` uses the local zone.
        keep_identifiers: Keep the ``*_id`` columns.

    Returns:
        A ``pyarrow.Table`` with the schedule columns in canonical order.

    Raises:
        InvalidKeyError: if any season id is not in the seasons catalog.
        httpx.HTTPError: if a fetch fails; no partial table is returned.
    """

    async def _run() -> pa.Table:
        runner = TidyRunner(config=config, catalogs=catalogs, fetcher=fetcher)
        try:
            return await runner.schedule(
                season_keys,
                include_regular=include_regular,
                include_playoffs=include_playoffs,
                timezone=timezone,
                keep_identifiers=keep_identifiers,
            )
        finally:
            await runner.close()

    return asyncio.run(_run())


def tidy_draft(
    draft_years: Keys,
    keep_identifiers: bool = False,
    *,
    config: Optional[Config] = None,
    catalogs: Optional[ReferenceCatalogs] = None,
    fetcher=None,
) -> pa.Table:
    """Entry-draft picks of one or more years, ordered by year then overall pick."""

    async def _run() -> pa.Table:
        runner = TidyRunner(config=config, catalogs=catalogs, fetcher=fetcher)
        try:
            return await runner.draft(draft_years, keep_identifiers=keep_identifiers)
        finally:
            await runner.close()

    return asyncio.run(_run())
