"""HTTP(S) availability monitor with throttled Telegram alerts."""

from healthcheck.config import ConfigError, HealthcheckConfig, load_config, resolve_config_path
from healthcheck.monitor import EndpointMonitor, InvalidEndpointURL, parse_endpoint_url, run_monitors
from healthcheck.state import EndpointState, should_notify

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "EndpointMonitor",
    "EndpointState",
    "HealthcheckConfig",
    "InvalidEndpointURL",
    "load_config",
    "parse_endpoint_url",
    "resolve_config_path",
    "run_monitors",
    "should_notify",
]
