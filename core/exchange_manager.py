"""
Exchange Manager - Central Registry for Exchange Handlers

Keeps one configured handler instance per exchange and manages their
lifecycle. Each handler owns its credentials and nonce counter, so the
manager never shares signing state between exchanges.

Example Usage:
    manager = ExchangeManager()
    await manager.initialize_all()

    liqui = manager.get_exchange("liqui")
    ticker = await liqui.get_ticker("eth_btc")

    await manager.shutdown_all()

Adding an exchange:
    1. Create the handler class under exchanges/<name>/
    2. Add a settings block in core.config (and SUPPORTED_EXCHANGES)
    3. Register it in ExchangeManager.__init__
"""

from typing import Dict, List, Optional

from core.config import Settings, settings as default_settings
from core.exchange_interface import ExchangeInterface
from core.logging import logger


class ExchangeManager:
    """
    Central registry of exchange handlers.

    Args:
        config: Settings to configure handlers from (defaults to the global settings)
        exchanges: Pre-built handlers to register instead of the defaults (tests)
    """

    def __init__(self, config: Optional[Settings] = None,
                 exchanges: Optional[List[ExchangeInterface]] = None):
        # Handlers import from core, so import them lazily
        from exchanges.itbit import ItBitExchange
        from exchanges.liqui import LiquiExchange

        config = config or default_settings

        if exchanges is None:
            exchanges = [
                LiquiExchange(config.exchange_config("liqui"), timeout=config.request_timeout),
                ItBitExchange(config.exchange_config("itbit"), timeout=config.request_timeout),
            ]

        self.exchanges: Dict[str, ExchangeInterface] = {ex.name: ex for ex in exchanges}

        logger.info(f"ExchangeManager initialized with {len(self.exchanges)} exchange(s): "
                    f"{', '.join(self.exchanges.keys())}")

    # ============================================
    # Exchange Retrieval Methods
    # ============================================

    def get_exchange(self, name: str) -> ExchangeInterface:
        """
        Get a handler by name (case-insensitive).

        Raises:
            ValueError: If the exchange is not registered
        """
        name = name.lower()

        if name not in self.exchanges:
            available = ", ".join(self.exchanges.keys())
            logger.error(f"Exchange '{name}' not found. Available: {available}")
            raise ValueError(
                f"Exchange '{name}' is not supported. "
                f"Available exchanges: {available}"
            )

        return self.exchanges[name]

    def has_exchange(self, name: str) -> bool:
        return name.lower() in self.exchanges

    def list_exchanges(self) -> List[str]:
        return list(self.exchanges.keys())

    def enabled_exchanges(self) -> List[ExchangeInterface]:
        """Handlers whose configuration has enabled=True."""
        return [ex for ex in self.exchanges.values() if ex.is_enabled()]

    # ============================================
    # Lifecycle Management
    # ============================================

    async def initialize_all(self) -> None:
        """
        Initialize every enabled handler.

        A handler that fails to initialize is logged and skipped; the others
        still start.
        """
        logger.info("Initializing enabled exchanges...")

        for exchange in self.enabled_exchanges():
            try:
                await exchange.initialize()
            except Exception as e:
                logger.error(f"✗ Failed to initialize {exchange.name}: {e}")

        logger.info("Exchanges initialized")

    async def shutdown_all(self) -> None:
        """Shut down every handler, continuing past individual failures."""
        logger.info("Shutting down all exchanges...")

        for name, exchange in self.exchanges.items():
            try:
                await exchange.shutdown()
            except Exception as e:
                logger.error(f"✗ Error shutting down {name}: {e}")

        logger.info("All exchanges shut down")

    # ============================================
    # Health Check Methods
    # ============================================

    async def health_check_all(self) -> Dict[str, bool]:
        """Map each enabled exchange name to its health status."""
        health_status = {}
        for exchange in self.enabled_exchanges():
            try:
                health_status[exchange.name] = await exchange.health_check()
            except Exception as e:
                logger.error(f"Health check failed for {exchange.name}: {e}")
                health_status[exchange.name] = False

        return health_status

    # ============================================
    # Capability Queries
    # ============================================

    def get_exchanges_with_feature(self, feature: str) -> List[str]:
        return [
            name for name, exchange in self.exchanges.items()
            if exchange.supports(feature)
        ]

    def get_exchange_capabilities(self, name: str) -> Dict[str, bool]:
        return self.get_exchange(name).capabilities.copy()

    def __repr__(self) -> str:
        return f"<ExchangeManager(exchanges={list(self.exchanges.keys())})>"

    def __len__(self) -> int:
        return len(self.exchanges)
