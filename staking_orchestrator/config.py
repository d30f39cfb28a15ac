"""Environment driven configuration for the staking backend client."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .errors import ConfigurationError
from .polling import PollOptions

logger = logging.getLogger(__name__)

DEFAULT_HTTP_TIMEOUT = 30.0
DEFAULT_WAIT_INTERVAL = 5.0
DEFAULT_WAIT_TIMEOUT = 3600.0
DEFAULT_POLL_INTERVAL = 0.2
DEFAULT_POLL_TIMEOUT = 600.0


def _parse_int_env(name: str, default: Optional[int] = None) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw, 0)
    except ValueError:
        logger.warning("Invalid integer for %s: %s", name, raw)
        return default
    return value


def _parse_json_env(name: str) -> Optional[Dict[str, Any]]:
    raw = os.getenv(name)
    if not raw:
        return None
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Failed to decode JSON payload for %s", name)
        return None
    if isinstance(parsed, dict):
        return parsed
    logger.warning("Expected JSON object for %s, received %s", name, type(parsed).__name__)
    return None


def _seconds_from_ms(name: str, default: float, minimum: float) -> float:
    millis = _parse_int_env(name)
    if not millis:
        return default
    return max(minimum, millis / 1000)


@dataclass(frozen=True)
class StakingSettings:
    """Resolved client settings plus the polling defaults used by the orchestration."""

    api_url: str
    api_key: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    wait_interval: float = DEFAULT_WAIT_INTERVAL
    wait_timeout: float = DEFAULT_WAIT_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    poll_timeout: float = DEFAULT_POLL_TIMEOUT

    @classmethod
    def from_env(cls) -> "StakingSettings":
        api_url = os.getenv("STAKING_API_URL")
        if not api_url:
            raise ConfigurationError("STAKING_API_URL must be set")
        headers = _parse_json_env("STAKING_API_HEADERS") or {}
        return cls(
            api_url=api_url,
            api_key=os.getenv("STAKING_API_KEY") or None,
            headers={str(k): str(v) for k, v in headers.items()},
            http_timeout=_seconds_from_ms("STAKING_API_TIMEOUT_MS", DEFAULT_HTTP_TIMEOUT, 1.0),
            wait_interval=_seconds_from_ms("STAKING_WAIT_INTERVAL_MS", DEFAULT_WAIT_INTERVAL, 0.05),
            wait_timeout=_seconds_from_ms("STAKING_WAIT_TIMEOUT_MS", DEFAULT_WAIT_TIMEOUT, 1.0),
            poll_interval=_seconds_from_ms("STAKING_POLL_INTERVAL_MS", DEFAULT_POLL_INTERVAL, 0.05),
            poll_timeout=_seconds_from_ms("STAKING_POLL_TIMEOUT_MS", DEFAULT_POLL_TIMEOUT, 1.0),
        )

    def wait_options(self) -> PollOptions:
        """Defaults for ``StakingOperation.wait`` on external addresses."""

        return PollOptions(interval_seconds=self.wait_interval, timeout_seconds=self.wait_timeout)

    def poll_options(self) -> PollOptions:
        """Defaults for the sign/broadcast poller of wallet addresses."""

        return PollOptions(interval_seconds=self.poll_interval, timeout_seconds=self.poll_timeout)
