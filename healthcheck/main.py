from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import os
import signal

import httpx

from healthcheck.config import ConfigError, HealthcheckConfig, load_config, resolve_config_path
from healthcheck.monitor import run_monitors
from healthcheck.probe import HttpProbe
from healthcheck.telegram import TelegramConfig, TelegramNotifier


LOGGER = logging.getLogger("healthcheck")

USER_AGENT = "healthcheck/0.1 (+availability monitor)"


SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _install_shutdown_handlers(task: asyncio.Task) -> list[signal.Signals]:
    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []
    for sig in SHUTDOWN_SIGNALS:
        # Not available on Windows event loops; Ctrl+C still raises KeyboardInterrupt there.
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, task.cancel)
            installed.append(sig)
    return installed


def _remove_shutdown_handlers(installed: list[signal.Signals]) -> None:
    loop = asyncio.get_running_loop()
    for sig in installed:
        loop.remove_signal_handler(sig)


async def run(config: HealthcheckConfig) -> int:
    current = asyncio.current_task()
    installed = _install_shutdown_handlers(current) if current is not None else []
    try:
        return await _run_with_client(config)
    finally:
        _remove_shutdown_handlers(installed)


async def _run_with_client(config: HealthcheckConfig) -> int:
    async with httpx.AsyncClient(headers={"User-Agent": USER_AGENT}) as client:
        probe = HttpProbe(
            client,
            timeout_seconds=config.probe_timeout_seconds,
            concurrency=config.check_concurrency,
        )
        notifier = TelegramNotifier(
            client,
            TelegramConfig(bot_token=config.telegram_token, chat_id=config.telegram_chat_id),
        )
        try:
            return await run_monitors(config, probe, notifier)
        except asyncio.CancelledError:
            LOGGER.info("Shutdown requested; stopped all monitors")
            return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Multi-endpoint HTTP availability monitor with Telegram alerts")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config (default: $HEALTHCHECK_CONFIG or ./healthcheck.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Logging level (INFO, WARNING, ...)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    # Avoid leaking secrets (Telegram token is embedded in the Telegram API URL).
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    config_path = resolve_config_path(args.config)
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        LOGGER.error("%s", exc)
        return 2

    try:
        return asyncio.run(run(config))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
