"""
Application settings from config.ini.

Example config.ini:

    [Scanner]
    QuietPeriodMs = 80
    SubmitOnTerminator = true

    [Network]
    ApiBaseUrl = http://192.168.31.147:8040/api
    ConnectionTimeout = 10

    [Logging]
    LogLevel = INFO

Different scanner models need different debounce settings: a slow Bluetooth
scanner may pause mid-barcode for longer than a wired one, and some models
send a stray Enter that should be ignored. Both are tuned here instead of in
code. The [Logging] section is read by logger.py.
"""

import configparser
from dataclasses import dataclass, field
from pathlib import Path

from api_client import PickingApiClient
from exceptions import ConfigurationError
from logger import get_logger
from scan_aggregator import DEFAULT_QUIET_PERIOD_MS, ScanAggregator

logger = get_logger(__name__)

DEFAULT_API_BASE_URL = "http://localhost:8040/api"


@dataclass
class ScannerSettings:
    quiet_period_ms: int = DEFAULT_QUIET_PERIOD_MS
    submit_on_terminator: bool = True


@dataclass
class NetworkSettings:
    api_base_url: str = DEFAULT_API_BASE_URL
    connection_timeout: float = 10


@dataclass
class AppConfig:
    scanner: ScannerSettings = field(default_factory=ScannerSettings)
    network: NetworkSettings = field(default_factory=NetworkSettings)

    def create_aggregator(self, sink) -> ScanAggregator:
        """Build a ScanAggregator tuned for the configured scanner."""
        return ScanAggregator(
            sink,
            quiet_period_ms=self.scanner.quiet_period_ms,
            submit_on_terminator=self.scanner.submit_on_terminator,
        )

    def create_client(self, **kwargs) -> PickingApiClient:
        return PickingApiClient(
            self.network.api_base_url,
            timeout=self.network.connection_timeout,
            **kwargs,
        )


def load_config(config_path: str = "config.ini") -> AppConfig:
    """
    Load settings from config.ini.

    A missing file gives the defaults.

    Raises:
        ConfigurationError: A value is present but unusable
    """
    config = configparser.ConfigParser()
    path = Path(config_path)

    if path.exists():
        config.read(path, encoding='utf-8')
        logger.info(f"Loaded configuration from {path}")
    else:
        logger.warning(f"Config file not found: {path}, using defaults")

    try:
        quiet_period_ms = config.getint('Scanner', 'QuietPeriodMs', fallback=DEFAULT_QUIET_PERIOD_MS)
        submit_on_terminator = config.getboolean('Scanner', 'SubmitOnTerminator', fallback=True)
        timeout = config.getfloat('Network', 'ConnectionTimeout', fallback=10)
    except ValueError as e:
        raise ConfigurationError(f"Invalid value in {path}: {e}") from e

    if quiet_period_ms <= 0:
        raise ConfigurationError("QuietPeriodMs must be a positive integer")
    if timeout <= 0:
        raise ConfigurationError("ConnectionTimeout must be positive")

    base_url = config.get('Network', 'ApiBaseUrl', fallback=DEFAULT_API_BASE_URL).strip()
    if not base_url.startswith(("http://", "https://")):
        raise ConfigurationError(f"ApiBaseUrl must be an http(s) URL, got: {base_url!r}")

    return AppConfig(
        scanner=ScannerSettings(quiet_period_ms=quiet_period_ms,
                                submit_on_terminator=submit_on_terminator),
        network=NetworkSettings(api_base_url=base_url, connection_timeout=timeout),
    )
