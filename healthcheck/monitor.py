"""
Per-endpoint check loop and the supervisor that runs one loop per address.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Protocol

import httpx

from healthcheck.config import HealthcheckConfig
from healthcheck.probe import ProbeResult, describe_status
from healthcheck.state import EndpointState, should_notify
from healthcheck.telegram import redact_telegram_response


LOGGER = logging.getLogger("healthcheck")


class InvalidEndpointURL(ValueError):
    pass


class Probe(Protocol):
    async def probe(self, url: str) -> ProbeResult: ...


class Notifier(Protocol):
    async def notify(self, text: str) -> tuple[bool, dict]: ...


Sleep = Callable[[float], Awaitable[None]]


def parse_endpoint_url(raw: str) -> httpx.URL:
    s = str(raw or "").strip()
    if not s or any(ch.isspace() for ch in s):
        raise InvalidEndpointURL(f"Bad URL format: {raw!r}")
    try:
        url = httpx.URL(s)
    except (httpx.InvalidURL, TypeError, ValueError) as exc:
        raise InvalidEndpointURL(f"Bad URL format: {raw!r}") from exc
    if url.scheme not in ("http", "https") or not url.host:
        raise InvalidEndpointURL(f"Bad URL format: {raw!r}")
    return url


class EndpointMonitor:
    """
    Runs the probe -> classify -> notify -> sleep cycle for one endpoint.

    Iterations are strictly sequential: a notification for one probe is
    resolved (or dropped after a logged delivery failure) before the next probe.
    """

    def __init__(
        self,
        url: str,
        config: HealthcheckConfig,
        probe: Probe,
        notifier: Notifier,
        *,
        sleep: Sleep = asyncio.sleep,
    ):
        self.url = url
        self.config = config
        self.state = EndpointState(url=url)
        self._probe = probe
        self._notifier = notifier
        self._sleep = sleep

    def _failure_message(self, result: ProbeResult) -> str:
        if result.status_code is not None:
            what = f"status {describe_status(result.status_code)}"
        else:
            what = result.error or "unknown error"
        return (
            f"{self.url}: {what}, "
            f"failures: {self.state.total_failures}, success: {self.state.total_successes}"
        )

    def classify(self, result: ProbeResult) -> tuple[str | None, bool]:
        """
        Apply one probe result to the endpoint state.

        Returns ``(message, deliver)``; ``message`` is None for a plain success.
        """
        if result.completed and result.status_code in self.config.ok_status_codes:
            if self.state.record_success():
                return f"{self.url} Recovered", self.config.notify_on_recovery
            LOGGER.info("Check %s OK", self.url)
            return None, False

        streak = self.state.record_failure()
        message = self._failure_message(result)
        deliver = should_notify(
            streak,
            notify_after_failures=self.config.notify_after_failures,
            rereport_every=self.config.rereport_every,
        )
        return message, deliver

    async def _deliver(self, message: str) -> bool:
        LOGGER.info("%s", message)
        ok, details = await self._notifier.notify(message)
        if not ok:
            reason = (
                details.get("description")
                or details.get("error")
                or redact_telegram_response(details)
            )
            LOGGER.error("[%s]: telegram error %s", self.url, reason)
        return ok

    async def check_once(self) -> float:
        """Run one iteration without sleeping. Returns the delay before the next one, in seconds."""
        result = await self._probe.probe(self.url)
        LOGGER.debug(
            "Probed %s: %s in %.1f ms",
            self.url,
            result.status_code if result.completed else result.error,
            result.elapsed_ms,
        )
        message, deliver = self.classify(result)

        if message is None:
            return self.config.success_interval_ms / 1000.0

        if deliver:
            await self._deliver(message)
        else:
            LOGGER.debug(
                "Suppressed alert for %s (consecutive failures: %d)", self.url, self.state.consecutive_failures
            )
        return self.config.fail_interval_ms / 1000.0

    async def run(self) -> None:
        while True:
            delay = await self.check_once()
            await self._sleep(delay)


async def monitor_endpoint(
    address: str,
    config: HealthcheckConfig,
    probe: Probe,
    notifier: Notifier,
    *,
    sleep: Sleep = asyncio.sleep,
) -> bool:
    """
    Validate ``address`` and run its check loop.

    Returns False (after logging) when the address is not a usable URL or the
    loop dies on an unexpected error. Sibling endpoints are never affected.
    """
    url = str(address or "").strip()
    try:
        parse_endpoint_url(url)
    except InvalidEndpointURL:
        LOGGER.error("Bad URL format: %s", url)
        return False

    try:
        await EndpointMonitor(url, config, probe, notifier, sleep=sleep).run()
    except Exception:
        LOGGER.exception("Monitor for %s stopped", url)
        return False
    return True


async def run_monitors(
    config: HealthcheckConfig,
    probe: Probe,
    notifier: Notifier,
    *,
    sleep: Sleep = asyncio.sleep,
) -> int:
    """Start one monitor task per address and wait for all of them. Returns 1 if none could run."""
    tasks = [
        asyncio.create_task(
            monitor_endpoint(str(address), config, probe, notifier, sleep=sleep),
            name=f"monitor:{address}",
        )
        for address in config.addresses
    ]
    LOGGER.info("Monitoring %d endpoint(s)", len(tasks))

    # Cancelling this coroutine cancels every endpoint task via gather.
    results = await asyncio.gather(*tasks)
    return 0 if any(results) else 1
