"""
Configuration Management Module

Loads, validates and exposes application configuration from environment
variables (.env file) using Pydantic Settings.

Per-exchange settings follow a "<exchange>_<field>" naming scheme, e.g.:

    LIQUI_ENABLED=true
    LIQUI_API_KEY=...
    LIQUI_API_SECRET=...
    ITBIT_CLIENT_ID=<itbit user id>
    ITBIT_POLLING_DELAY=10

Settings.exchange_config() turns those flat fields into the ExchangeConfig
model consumed by exchange handlers.

Usage:
    from core.config import settings

    liqui_config = settings.exchange_config("liqui")
    print(liqui_config.rest_polling_delay)
"""

from typing import List, Optional
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.schemas import Credentials


# Exchanges that have a handler in exchanges/
SUPPORTED_EXCHANGES = ("liqui", "itbit")


class ExchangeConfig(BaseModel):
    """
    Configuration for a single exchange handler.

    Attributes:
        name: Exchange identifier (lowercase)
        enabled: Whether the handler is active (polling, API routes)
        verbose: Log request bodies and raw responses at INFO level
        rest_polling_delay: Seconds between ticker polls
        authenticated_api_support: Allow signed (private) endpoints
        api_key: Public key identifier
        api_secret: Shared secret used for HMAC signing
        client_id: Optional account/user identifier (ItBit userId)
        enabled_pairs: Pairs polled by the ticker service
    """

    name: str
    enabled: bool = True
    verbose: bool = False
    rest_polling_delay: int = Field(default=10, ge=1)
    authenticated_api_support: bool = False
    api_key: str = ""
    api_secret: str = ""
    client_id: str = ""
    enabled_pairs: List[str] = Field(default_factory=list)

    @property
    def credentials(self) -> Optional[Credentials]:
        """Credentials built from the key fields, or None if no key is set."""
        if not self.api_key:
            return None
        return Credentials(api_key=self.api_key, api_secret=self.api_secret, client_id=self.client_id)


class Settings(BaseSettings):
    """
    Application Settings

    Values are loaded from environment variables or the .env file.
    """

    # ============================================
    # Application Configuration
    # ============================================

    environment: str = Field(
        default="development",
        description="Application environment (development, production)"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    app_host: str = Field(
        default="0.0.0.0",
        description="FastAPI server host address"
    )

    app_port: int = Field(
        default=8000,
        description="FastAPI server port"
    )

    request_timeout: int = Field(
        default=10,
        description="HTTP request timeout in seconds"
    )

    # ============================================
    # Liqui Configuration
    # ============================================

    liqui_enabled: bool = Field(default=True)
    liqui_verbose: bool = Field(default=False)
    liqui_polling_delay: int = Field(default=10)
    liqui_authenticated: bool = Field(default=False)
    liqui_api_key: str = Field(default="")
    liqui_api_secret: str = Field(default="")
    liqui_client_id: str = Field(default="")
    liqui_pairs: str = Field(
        default="eth_btc,ltc_btc",
        description="Comma-separated Liqui pairs to poll"
    )

    # ============================================
    # ItBit Configuration
    # ============================================

    itbit_enabled: bool = Field(default=True)
    itbit_verbose: bool = Field(default=False)
    itbit_polling_delay: int = Field(default=10)
    itbit_authenticated: bool = Field(default=False)
    itbit_api_key: str = Field(default="")
    itbit_api_secret: str = Field(default="")
    itbit_client_id: str = Field(
        default="",
        description="ItBit user id, sent as userId on wallet endpoints"
    )
    itbit_pairs: str = Field(
        default="XBTUSD",
        description="Comma-separated ItBit markets to poll"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False
    )

    # ============================================
    # Derived Values
    # ============================================

    def pairs_list(self, exchange: str) -> List[str]:
        """
        Split an exchange's comma-separated pair setting.

        Example:
            >>> settings.pairs_list("liqui")
            ['eth_btc', 'ltc_btc']
        """
        raw = getattr(self, f"{exchange.lower()}_pairs", "")
        return [p.strip() for p in raw.split(",") if p.strip()]

    def exchange_config(self, exchange: str) -> ExchangeConfig:
        """
        Build the ExchangeConfig for one exchange.

        Raises:
            ValueError: If the exchange has no settings block
        """
        name = exchange.lower()
        if name not in SUPPORTED_EXCHANGES:
            raise ValueError(
                f"No configuration for exchange '{exchange}'. "
                f"Available: {', '.join(SUPPORTED_EXCHANGES)}"
            )

        return ExchangeConfig(
            name=name,
            enabled=getattr(self, f"{name}_enabled"),
            verbose=getattr(self, f"{name}_verbose"),
            rest_polling_delay=getattr(self, f"{name}_polling_delay"),
            authenticated_api_support=getattr(self, f"{name}_authenticated"),
            api_key=getattr(self, f"{name}_api_key"),
            api_secret=getattr(self, f"{name}_api_secret"),
            client_id=getattr(self, f"{name}_client_id"),
            enabled_pairs=self.pairs_list(name),
        )


# ============================================
# Global Settings Instance
# ============================================

settings = Settings()


# ============================================
# Configuration Validation
# ============================================

def validate_configuration(config: Optional[Settings] = None) -> None:
    """
    Validate configuration on application startup.

    Args:
        config: Settings to validate (defaults to the global instance)

    Raises:
        ValueError: If configuration is missing or invalid
    """
    # core.logging imports this module, so import lazily
    from core.logging import logger

    config = config or settings

    valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if config.log_level.upper() not in valid_log_levels:
        raise ValueError(
            f"Invalid LOG_LEVEL: '{config.log_level}'. "
            f"Must be one of: {', '.join(valid_log_levels)}"
        )

    if not (1 <= config.app_port <= 65535):
        raise ValueError(f"Invalid port number: {config.app_port}. Must be between 1 and 65535")

    if config.request_timeout <= 0:
        raise ValueError(f"REQUEST_TIMEOUT must be positive, got {config.request_timeout}")

    for name in SUPPORTED_EXCHANGES:
        delay = getattr(config, f"{name}_polling_delay")
        if delay < 1:
            raise ValueError(f"{name.upper()}_POLLING_DELAY must be at least 1 second, got {delay}")

        if getattr(config, f"{name}_authenticated"):
            if not getattr(config, f"{name}_api_key") or not getattr(config, f"{name}_api_secret"):
                raise ValueError(
                    f"{name.upper()}_AUTHENTICATED is set but {name.upper()}_API_KEY "
                    f"or {name.upper()}_API_SECRET is empty"
                )

    enabled = [name for name in SUPPORTED_EXCHANGES if getattr(config, f"{name}_enabled")]
    logger.info("Configuration validated successfully")
    logger.info(f"Enabled exchanges: {', '.join(enabled) or 'none'}")
    for name in enabled:
        auth = "authenticated" if getattr(config, f"{name}_authenticated") else "public only"
        logger.info(f"  {name}: pairs={', '.join(config.pairs_list(name))} ({auth})")
    logger.info(f"Log level: {config.log_level.upper()}")
