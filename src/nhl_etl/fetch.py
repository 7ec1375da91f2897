from __future__ import annotations

import asyncio
import random
from typing import Any, Dict, List, Optional

from .api_client import ApiClient
from .catalogs import SeasonInfo
from .extractors import EndpointSpec
from .flatten import flatten_records
from .logging_utils import log_json


class Fetcher:
    """Fetch one key's worth of raw entity records and flatten them.

    Requests are paced with a random pause before each call so consecutive
    keys never hit the API back to back.
    """

    def __init__(
        self,
        api: ApiClient,
        registry: Dict[str, EndpointSpec],
        pacing: Optional[Dict[str, float]] = None,
        logger=None,
    ) -> None:
        self.api = api
        self.registry = registry
        pacing = pacing or {}
        self.min_delay = float(pacing.get("min_seconds", 1.0))
        self.max_delay = float(pacing.get("max_seconds", 2.0))
        self.logger = logger

    async def close(self) -> None:
        await self.api.close()

    async def _pause(self) -> None:
        if self.max_delay <= 0:
            return
        await asyncio.sleep(random.uniform(self.min_delay, self.max_delay))

    async def _get_records(self, spec: EndpointSpec, path: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        await self._pause()
        payload = await self.api.get_json(path, params=params)
        records = flatten_records(spec.extract(payload))
        if self.logger:
            log_json(self.logger, "fetch_done", endpoint=spec.name, path=path, records=len(records))
        return records

    async def fetch_schedule(self, season: SeasonInfo) -> List[Dict[str, Any]]:
        spec = self.registry["schedule"]
        params: Dict[str, Any] = {}
        if spec.start_date_param:
            params[spec.start_date_param] = season.regular_start.isoformat()
        if spec.end_date_param:
            params[spec.end_date_param] = season.playoffs_end.isoformat()
        if spec.expand:
            params["expand"] = spec.expand
        return await self._get_records(spec, spec.format_path(season_id=season.season_id), params)

    async def fetch_draft(self, year: int) -> List[Dict[str, Any]]:
        spec = self.registry["draft_picks"]
        return await self._get_records(spec, spec.format_path(year=year), {})
