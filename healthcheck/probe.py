from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass

import httpx


@dataclass(frozen=True)
class ProbeResult:
    url: str
    status_code: int | None = None
    error: str | None = None
    elapsed_ms: float = 0.0

    @property
    def completed(self) -> bool:
        # A transport failure never carries a status code.
        return self.status_code is not None


def describe_status(status_code: int) -> str:
    reason = httpx.codes.get_reason_phrase(status_code)
    return f"{status_code} {reason}" if reason else str(status_code)


class HttpProbe:
    """
    Issues a single GET per call over a shared client.

    Redirects are not followed; the status of the first response is what counts.
    The body is never read, and the whole call is capped at ``timeout_seconds``.
    Safe to call concurrently from many endpoint tasks.
    """

    def __init__(self, client: httpx.AsyncClient, *, timeout_seconds: float = 10.0, concurrency: int = 25):
        self._client = client
        self._deadline = float(timeout_seconds)
        self._timeout = httpx.Timeout(timeout_seconds)
        self._semaphore = asyncio.Semaphore(max(1, int(concurrency)))

    async def _fetch_status(self, url: str) -> int:
        # Leaving the stream context closes the connection without draining the body.
        async with self._client.stream("GET", url, follow_redirects=False, timeout=self._timeout) as resp:
            return resp.status_code

    async def probe(self, url: str) -> ProbeResult:
        async with self._semaphore:
            started = time.perf_counter()
            try:
                status_code = await asyncio.wait_for(self._fetch_status(url), timeout=self._deadline)
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                error = f"{type(e).__name__}: {e}" if str(e) else type(e).__name__
            except asyncio.TimeoutError:
                error = f"TimeoutError: no response within {self._deadline:g}s"
            else:
                error = None
            elapsed_ms = round((time.perf_counter() - started) * 1000.0, 3)

        if error is not None:
            return ProbeResult(url=url, error=error, elapsed_ms=elapsed_ms)
        return ProbeResult(url=url, status_code=status_code, elapsed_ms=elapsed_ms)
