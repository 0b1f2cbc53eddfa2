import logging
import math
import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_ADDRESS = "0.0.0.0"
DEFAULT_PORT = 8080
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _parse_port(value):
    try:
        port = int(value)
    except (TypeError, ValueError):
        return DEFAULT_PORT
    if not 0 <= port <= 65535:
        return DEFAULT_PORT
    return port


def _parse_timeout(value):
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        return None
    return timeout if math.isfinite(timeout) and timeout > 0 else None


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, read once at startup."""

    logging_enabled: bool = False
    address: str = DEFAULT_ADDRESS
    port: int = DEFAULT_PORT
    upstream_timeout: Optional[float] = None

    @classmethod
    def from_env(cls, environ=None):
        if environ is None:
            environ = os.environ
        return cls(
            logging_enabled=environ.get("LOGGING_ENABLED") == "true",
            address=environ.get("ADDRESS", DEFAULT_ADDRESS),
            port=_parse_port(environ.get("PORT")),
            upstream_timeout=_parse_timeout(environ.get("UPSTREAM_TIMEOUT")),
        )


def configure_logging(enabled):
    if enabled:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    else:
        # werkzeug's access log included
        logging.disable(logging.CRITICAL)
