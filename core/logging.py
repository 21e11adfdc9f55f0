"""
Unified Logging Configuration

Sets up the logging system shared by the signing core, the exchange handlers
and the polling services. Modules obtain child loggers through get_logger()
instead of calling print().

Usage:
    from core.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Liqui exchange handler initialized")

Log Levels (from most to least verbose):
    DEBUG    - Request/response tracing (e.g., "API Request: liqui /tapi | method=getInfo")
    INFO     - Lifecycle messages and verbose-mode payload dumps
    WARNING  - Retries, rate limiting, exchanges reporting errors
    ERROR    - Failed calls surfaced to the caller
    CRITICAL - Unrecoverable startup failures

Configuration:
    The level comes from LOG_LEVEL (see core.config.Settings), default INFO.

Notes:
    API secrets and signatures are never passed to the logger; only public
    key prefixes, nonces and request bodies are logged.
"""

import logging
import sys
from typing import Optional


def setup_logging(
    log_level: str = "INFO",
    log_format: Optional[str] = None,
    include_timestamp: bool = True,
    include_module: bool = True
) -> logging.Logger:
    """
    Configure and return the application logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom log format string (uses default if None)
        include_timestamp: Include timestamp in log messages
        include_module: Include logger name in log messages

    Returns:
        logging.Logger: The "coinrest" application logger

    Example:
        >>> logger = setup_logging(log_level="DEBUG")
        >>> logger.info("Signer ready")
        2024-01-01 12:00:00 [INFO] coinrest: Signer ready
    """
    if log_format is None:
        format_parts = []

        if include_timestamp:
            format_parts.append("%(asctime)s")

        format_parts.append("[%(levelname)s]")

        if include_module:
            format_parts.append("%(name)s:")

        format_parts.append("%(message)s")

        log_format = " ".join(format_parts)

    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True
    )

    logger = logging.getLogger("coinrest")
    logger.setLevel(level)

    return logger


# ============================================
# Initialize Logger with Settings
# ============================================

try:
    from core.config import settings
    log_level = settings.log_level
except ImportError:
    # core.config not importable yet (partial install, early import)
    log_level = "INFO"

logger = setup_logging(log_level=log_level)


# ============================================
# Convenience Functions
# ============================================

def get_logger(name: str) -> logging.Logger:
    """
    Get a child of the application logger.

    Args:
        name: Component name (typically __name__)

    Returns:
        logging.Logger: Logger named "coinrest.<name>"

    Example:
        # In exchanges/liqui/api_client.py:
        logger = get_logger(__name__)  # "coinrest.exchanges.liqui.api_client"
    """
    return logging.getLogger(f"coinrest.{name}")


def set_log_level(level: str) -> None:
    """
    Change the log level at runtime.

    Args:
        level: New log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logging.getLogger().setLevel(getattr(logging, level.upper(), logging.INFO))


# ============================================
# Log Helper Functions
# ============================================

def log_api_request(exchange: str, method: str, endpoint: str, params: dict = None) -> None:
    """
    Log an outgoing API request.

    Args:
        exchange: Exchange name (e.g., "itbit")
        method: HTTP method
        endpoint: Path or full URL
        params: Query or body parameters (optional, never credentials)

    Example:
        >>> log_api_request("liqui", "GET", "/api/3/ticker/eth_btc")
        [DEBUG] API Request: liqui GET /api/3/ticker/eth_btc
    """
    if params:
        logger.debug(f"API Request: {exchange} {method} {endpoint} | Params: {params}")
    else:
        logger.debug(f"API Request: {exchange} {method} {endpoint}")


def log_api_response(exchange: str, endpoint: str, status: int, response_time: float = None) -> None:
    """
    Log an API response with status and timing information.

    Example:
        >>> log_api_response("itbit", "/markets/XBTUSD/ticker", 200, 0.342)
        [DEBUG] API Response: itbit /markets/XBTUSD/ticker | Status: 200 | Time: 0.342s
    """
    time_str = f" | Time: {response_time:.3f}s" if response_time else ""
    logger.debug(f"API Response: {exchange} {endpoint} | Status: {status}{time_str}")


logger.debug("Logging system initialized")
