"""Shared HTTP client with per-source limits and stats. Calls are never retried."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any

import aiohttp

import config

logger = logging.getLogger(__name__)


@dataclass
class HttpResult:
    ok: bool
    status: int
    data: Any | None
    error: str = ""
    content_type: str = ""


@dataclass
class HttpSourceStats:
    ok: int = 0
    fail: int = 0
    latency_total_ms: float = 0.0
    latency_max_ms: float = 0.0
    latency_count: int = 0


class SharedHttpClient:
    def __init__(
        self,
        timeout_seconds: float,
        headers: dict[str, str] | None = None,
        source_limits: dict[str, int] | None = None,
        max_body_bytes: int | None = None,
    ) -> None:
        self._timeout = aiohttp.ClientTimeout(total=max(1.0, float(timeout_seconds)))
        self._headers = dict(headers or {})
        self._source_limits = dict(source_limits or {})
        self._max_body_bytes = max(1, int(max_body_bytes or getattr(config, "HTTP_MAX_BODY_BYTES", 5 * 1024 * 1024)))
        self._session: aiohttp.ClientSession | None = None
        self._semaphores: dict[str, asyncio.Semaphore] = {}
        self._stats: dict[str, HttpSourceStats] = {}

    async def close(self) -> None:
        session = self._session
        self._session = None
        if session is not None and not session.closed:
            await session.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            connector_limit = max(1, int(getattr(config, "HTTP_CONNECTOR_LIMIT", 20) or 20))
            connector = aiohttp.TCPConnector(limit=connector_limit)
            self._session = aiohttp.ClientSession(timeout=self._timeout, connector=connector)
        return self._session

    @staticmethod
    def _source_key(source: str) -> str:
        return str(source or "default").strip().lower() or "default"

    def _get_semaphore(self, source_key: str) -> asyncio.Semaphore:
        sem = self._semaphores.get(source_key)
        if sem is not None:
            return sem
        default_limit = max(1, int(getattr(config, "HTTP_DEFAULT_CONCURRENCY", 8) or 8))
        limit = max(1, int(self._source_limits.get(source_key, default_limit)))
        sem = asyncio.Semaphore(limit)
        self._semaphores[source_key] = sem
        return sem

    def _stats_row(self, source_key: str) -> HttpSourceStats:
        row = self._stats.get(source_key)
        if row is None:
            row = HttpSourceStats()
            self._stats[source_key] = row
        return row

    @staticmethod
    def _record_latency(stats: HttpSourceStats, started: float) -> None:
        elapsed_ms = max(0.0, (time.perf_counter() - started) * 1000.0)
        stats.latency_total_ms += elapsed_ms
        stats.latency_count += 1
        stats.latency_max_ms = max(stats.latency_max_ms, elapsed_ms)

    def snapshot_stats(self, reset: bool = False) -> dict[str, dict[str, int | float]]:
        out: dict[str, dict[str, int | float]] = {}
        for source, row in self._stats.items():
            total = int(row.ok + row.fail)
            err_pct = (float(row.fail) / total * 100.0) if total > 0 else 0.0
            out[source] = {
                "ok": int(row.ok),
                "fail": int(row.fail),
                "total": total,
                "error_percent": round(err_pct, 2),
                "latency_avg_ms": round((row.latency_total_ms / row.latency_count), 2) if row.latency_count > 0 else 0.0,
                "latency_max_ms": round(float(row.latency_max_ms), 2),
            }
        if reset:
            self._stats = {}
        return out

    async def _read_capped(self, response: aiohttp.ClientResponse) -> bytes | None:
        """Body bytes, or None once the declared or streamed size passes the cap."""
        limit = self._max_body_bytes
        if response.content_length is not None and response.content_length > limit:
            return None
        chunks: list[bytes] = []
        total = 0
        async for chunk in response.content.iter_chunked(64 * 1024):
            total += len(chunk)
            if total > limit:
                return None
            chunks.append(chunk)
        return b"".join(chunks)

    async def _get(
        self,
        url: str,
        *,
        source: str,
        read: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> HttpResult:
        req_headers = dict(self._headers)
        if headers:
            req_headers.update(headers)

        source_key = self._source_key(source)
        sem = self._get_semaphore(source_key)
        stats = self._stats_row(source_key)
        status = 0
        async with sem:
            started = time.perf_counter()
            try:
                session = await self._get_session()
                async with session.get(url, params=params, headers=req_headers) as response:
                    status = int(response.status or 0)
                    content_type = str(response.content_type or "")
                    if not 200 <= status <= 299:
                        self._record_latency(stats, started)
                        stats.fail += 1
                        return HttpResult(
                            ok=False,
                            status=status,
                            data=None,
                            error=f"http_status_{status}",
                            content_type=content_type,
                        )
                    if read == "json":
                        payload: Any = await response.json(content_type=None)
                    elif read == "bytes":
                        payload = await self._read_capped(response)
                        if payload is None:
                            self._record_latency(stats, started)
                            stats.fail += 1
                            logger.warning(
                                "HTTP_BODY_TOO_LARGE source=%s limit=%s url=%s", source_key, self._max_body_bytes, url
                            )
                            return HttpResult(
                                ok=False, status=status, data=None, error="too_large", content_type=content_type
                            )
                    else:
                        payload = None
                    self._record_latency(stats, started)
                    stats.ok += 1
                    return HttpResult(ok=True, status=status, data=payload, content_type=content_type)
            except (aiohttp.ClientError, asyncio.TimeoutError, TimeoutError, ValueError) as exc:
                self._record_latency(stats, started)
                stats.fail += 1
                logger.debug("HTTP_FAIL source=%s status=%s url=%s err=%s", source_key, status, url, exc)
                return HttpResult(ok=False, status=status, data=None, error=f"http_error:{exc}")

    async def get_json(
        self,
        url: str,
        *,
        source: str = "default",
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> HttpResult:
        return await self._get(url, source=source, read="json", params=params, headers=headers)

    async def get_bytes(
        self,
        url: str,
        *,
        source: str = "default",
        headers: dict[str, str] | None = None,
    ) -> HttpResult:
        return await self._get(url, source=source, read="bytes", headers=headers)

    async def probe(self, url: str, *, source: str = "default") -> HttpResult:
        """GET the url and report only whether it answered with a 2xx status."""
        return await self._get(url, source=source, read="none")


_shared_client: SharedHttpClient | None = None


def get_http_client() -> SharedHttpClient:
    global _shared_client
    if _shared_client is None:
        _shared_client = SharedHttpClient(
            timeout_seconds=float(config.HTTP_TIMEOUT_SECONDS),
            headers={"User-Agent": config.HTTP_USER_AGENT},
            source_limits={"ensdata": 8, "ens_avatar": 8, "qrserver": 4, "asset": 8},
        )
    return _shared_client


async def close_http_client() -> None:
    global _shared_client
    client = _shared_client
    _shared_client = None
    if client is not None:
        await client.close()
