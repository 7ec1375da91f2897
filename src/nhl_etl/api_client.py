from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

from .logging_utils import log_json

RETRY_STATUSES = (429, 500, 502, 503, 504)


@dataclass
class ApiConfig:
    base_url: str
    timeout_seconds: int = 30
    max_concurrency: int = 1
    rate_limit_per_sec: int = 2
    retry: Dict[str, Any] = field(default_factory=dict)


class RateLimiter:
    def __init__(self, rate_per_sec: int) -> None:
        self.rate_per_sec = rate_per_sec
        self._lock = asyncio.Lock()
        self._tokens = rate_per_sec
        self._last = time.monotonic()

    async def acquire(self) -> None:
        while True:
            async with self._lock:
                now = time.monotonic()
                refill = int((now - self._last) * self.rate_per_sec)
                if refill > 0:
                    self._tokens = min(self.rate_per_sec, self._tokens + refill)
                    self._last = now
                if self._tokens > 0:
                    self._tokens -= 1
                    return
            # Sleep outside the lock so other coroutines can proceed
            await asyncio.sleep(max(0.01, 1 / self.rate_per_sec))


class ApiClient:
    """Thin async JSON client for the NHL stats API.

    Retries only what ``cfg.retry`` allows; with ``max_attempts: 1`` the first
    transport error or non-200 status is raised to the caller.
    """

    def __init__(self, cfg: ApiConfig, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.cfg = cfg
        self._semaphore = asyncio.Semaphore(cfg.max_concurrency)
        self._limiter = RateLimiter(cfg.rate_limit_per_sec)
        self._client = httpx.AsyncClient(
            base_url=cfg.base_url,
            timeout=cfg.timeout_seconds,
            headers={"Accept": "application/json"},
            transport=transport,
        )
        self._logger = None

    def set_logger(self, logger) -> None:
        self._logger = logger

    async def close(self) -> None:
        await self._client.aclose()

    def _log(self, event: str, **fields: Any) -> None:
        if self._logger:
            log_json(self._logger, event, **fields)

    def _backoff(self, attempt: int) -> float:
        base_delay = self.cfg.retry.get("base_delay_seconds", 0.5)
        max_delay = self.cfg.retry.get("max_delay_seconds", 8)
        return min(max_delay, base_delay * (2 ** (attempt - 1)))

    async def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        attempt = 0
        max_attempts = self.cfg.retry.get("max_attempts", 1)
        max_delay = self.cfg.retry.get("max_delay_seconds", 8)
        params = params or {}
        while True:
            attempt += 1
            async with self._semaphore:
                await self._limiter.acquire()
                self._log("http_request_start", path=path, attempt=attempt, params=params)
                try:
                    resp = await self._client.get(path, params=params)
                except httpx.TimeoutException:
                    self._log("http_timeout", path=path, attempt=attempt)
                    if attempt >= max_attempts:
                        raise
                    await asyncio.sleep(self._backoff(attempt))
                    continue
                except httpx.RequestError as exc:
                    self._log("http_error", path=path, attempt=attempt, error=str(exc))
                    if attempt >= max_attempts:
                        raise
                    await asyncio.sleep(self._backoff(attempt))
                    continue
            if resp.status_code == 200:
                return resp.json()
            if resp.status_code in RETRY_STATUSES and attempt < max_attempts:
                retry_after = resp.headers.get("Retry-After")
                delay = min(max_delay, float(retry_after)) if retry_after else self._backoff(attempt)
                self._log("http_retry", path=path, status=resp.status_code, attempt=attempt, delay=delay)
                await asyncio.sleep(delay)
                continue
            resp.raise_for_status()
            # 2xx without a JSON body is still a failed fetch
            raise httpx.HTTPStatusError(
                f"unexpected status {resp.status_code} for {path}", request=resp.request, response=resp
            )
