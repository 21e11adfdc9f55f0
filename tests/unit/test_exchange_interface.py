"""
Unit Tests for Exchange Interface and Manager

These tests verify that:
- ExchangeInterface is properly defined as an abstract class
- Dummy implementations can inherit and implement the interface
- Credentials install a signer, and a new credential set gets a new nonce counter
- ExchangeManager correctly manages exchange instances
- Lifecycle methods work as expected

Run with:
    pytest tests/unit/test_exchange_interface.py -v
"""

from typing import List

import pytest

from core.config import ExchangeConfig, Settings
from core.errors import AuthenticationRequiredError
from core.exchange_interface import ExchangeInterface
from core.exchange_manager import ExchangeManager
from core.schemas import FeeQuery, FeeSchedule, Orderbook, Ticker, Trade
from core.signing import LIQUI_SCHEME
from core.utils.time import utc_now
from exchanges.itbit import ItBitExchange
from exchanges.liqui import LiquiExchange


# ============================================
# Dummy Exchange for Testing
# ============================================

class DummyExchange(ExchangeInterface):
    """
    Minimal implementation of ExchangeInterface for testing purposes.

    Market data methods return fixed values so the interface contract can be
    tested without network access.
    """

    name = "dummy"
    capabilities = {
        "ticker": True,
        "orderbook": True,
        "trades": False,  # Intentionally not supported
        "authenticated": True,
        "withdrawals": False,
    }
    signing_scheme = LIQUI_SCHEME
    default_fee_schedule = FeeSchedule(maker_rate=0.001, taker_rate=0.002)

    def __init__(self, config=None, healthy=True):
        self.healthy = healthy
        self.initialized = False
        self.shut_down = False
        super().__init__(config)

    async def get_ticker(self, pair: str) -> Ticker:
        return Ticker(exchange=self.name, symbol=pair, timestamp=utc_now(),
                      last=1.0, high=2.0, low=0.5, volume=10.0)

    async def get_orderbook(self, pair: str) -> Orderbook:
        return Orderbook(exchange=self.name, symbol=pair, timestamp=utc_now())

    async def get_trades(self, pair: str) -> List[Trade]:
        raise NotImplementedError("Dummy exchange doesn't support trades")

    async def initialize(self) -> None:
        if not self.healthy:
            raise RuntimeError("cannot connect")
        self.initialized = True

    async def shutdown(self) -> None:
        self.shut_down = True

    async def health_check(self) -> bool:
        return self.healthy


class OtherDummyExchange(DummyExchange):
    name = "other"


# ============================================
# Exchange Interface Tests
# ============================================

class TestExchangeInterface:
    """Test the abstract ExchangeInterface contract"""

    def test_cannot_instantiate_abstract_interface(self):
        with pytest.raises(TypeError):
            ExchangeInterface()

    def test_defaults_applied(self):
        exchange = DummyExchange()

        assert exchange.get_name() == "dummy"
        assert exchange.is_enabled()
        assert not exchange.verbose
        assert exchange.config.rest_polling_delay == 10
        assert exchange.fee_schedule.taker_rate == 0.002
        assert exchange.signer is None

    def test_supports_method_returns_correct_values(self):
        exchange = DummyExchange()

        assert exchange.supports("ticker") is True
        assert exchange.supports("trades") is False
        assert exchange.supports("nonexistent") is False

    def test_setup_applies_config(self):
        exchange = DummyExchange()
        exchange.setup(ExchangeConfig(name="ignored", enabled=False, verbose=True, rest_polling_delay=3))

        assert exchange.config.name == "dummy"
        assert not exchange.is_enabled()
        assert exchange.verbose
        assert exchange.config.rest_polling_delay == 3

    def test_setup_fee_schedule_override(self):
        exchange = DummyExchange()
        exchange.setup(ExchangeConfig(name="dummy"), fee_schedule=FeeSchedule(taker_rate=0.01))

        assert exchange.get_fee(FeeQuery(amount=1, purchase_price=100)) == pytest.approx(1.0)

    def test_set_enabled(self):
        exchange = DummyExchange()
        exchange.set_enabled(False)

        assert not exchange.is_enabled()

    def test_require_signer_without_credentials(self):
        exchange = DummyExchange(ExchangeConfig(name="dummy", authenticated_api_support=True))

        with pytest.raises(AuthenticationRequiredError):
            exchange.require_signer()

    def test_require_signer_when_authenticated_disabled(self):
        exchange = DummyExchange(ExchangeConfig(name="dummy", api_key="k", api_secret="s"))

        assert exchange.credentials is not None
        with pytest.raises(AuthenticationRequiredError):
            exchange.require_signer()

    def test_set_api_keys_installs_new_counter(self):
        exchange = DummyExchange(ExchangeConfig(name="dummy", authenticated_api_support=True,
                                                api_key="k1", api_secret="s1"))
        first = exchange.require_signer()

        exchange.set_api_keys("k1", "s1")
        assert exchange.require_signer() is first

        exchange.set_api_keys("k2", "s2", "client")
        second = exchange.require_signer()

        assert second is not first
        assert second.nonce_counter is not first.nonce_counter
        assert second.credentials.api_key == "k2"
        assert exchange.config.client_id == "client"

    @pytest.mark.asyncio
    async def test_get_ticker_is_callable(self):
        ticker = await DummyExchange().get_ticker("eth_btc")
        assert ticker.symbol == "ETH_BTC"

    @pytest.mark.asyncio
    async def test_unsupported_method_raises_not_implemented(self):
        with pytest.raises(NotImplementedError):
            await DummyExchange().get_trades("eth_btc")

    def test_repr(self):
        assert "dummy" in repr(DummyExchange())

    @pytest.mark.parametrize("cls", [LiquiExchange, ItBitExchange])
    def test_real_handlers_implement_interface(self, cls):
        exchange = cls()
        assert isinstance(exchange, ExchangeInterface)
        assert exchange.supports("ticker")
        assert exchange.supports("authenticated")


# ============================================
# Exchange Manager Tests
# ============================================

class TestExchangeManager:
    """Test ExchangeManager functionality"""

    def test_manager_builds_default_handlers(self):
        manager = ExchangeManager(Settings(_env_file=None))

        assert sorted(manager.list_exchanges()) == ["itbit", "liqui"]
        assert isinstance(manager.get_exchange("liqui"), LiquiExchange)
        assert len(manager) == 2

    def test_manager_applies_settings(self):
        manager = ExchangeManager(Settings(_env_file=None, itbit_enabled=False, liqui_polling_delay=7))

        assert [ex.name for ex in manager.enabled_exchanges()] == ["liqui"]
        assert manager.get_exchange("liqui").config.rest_polling_delay == 7

    def test_manager_get_exchange_case_insensitive(self):
        manager = ExchangeManager(exchanges=[DummyExchange()])

        assert manager.get_exchange("DUMMY") is manager.get_exchange("dummy")
        assert manager.has_exchange("Dummy")
        assert not manager.has_exchange("nope")

    def test_manager_get_exchange_raises_for_unknown(self):
        manager = ExchangeManager(exchanges=[DummyExchange()])

        with pytest.raises(ValueError, match="not supported"):
            manager.get_exchange("nope")

    def test_manager_get_exchanges_with_feature(self):
        manager = ExchangeManager(exchanges=[DummyExchange(), ItBitExchange()])

        assert sorted(manager.get_exchanges_with_feature("ticker")) == ["dummy", "itbit"]
        assert manager.get_exchanges_with_feature("trades") == ["itbit"]

    def test_manager_get_exchange_capabilities_is_copy(self):
        manager = ExchangeManager(exchanges=[DummyExchange()])

        caps = manager.get_exchange_capabilities("dummy")
        caps["ticker"] = False

        assert DummyExchange.capabilities["ticker"] is True

    @pytest.mark.asyncio
    async def test_initialize_all_skips_disabled_and_survives_failures(self):
        enabled = DummyExchange()
        disabled = OtherDummyExchange(ExchangeConfig(name="other", enabled=False))
        manager = ExchangeManager(exchanges=[enabled, disabled])

        await manager.initialize_all()

        assert enabled.initialized
        assert not disabled.initialized

        failing = DummyExchange(healthy=False)
        await ExchangeManager(exchanges=[failing]).initialize_all()
        assert not failing.initialized

    @pytest.mark.asyncio
    async def test_shutdown_all(self):
        exchanges = [DummyExchange(), OtherDummyExchange()]
        manager = ExchangeManager(exchanges=exchanges)

        await manager.shutdown_all()

        assert all(ex.shut_down for ex in exchanges)

    @pytest.mark.asyncio
    async def test_health_check_all(self):
        manager = ExchangeManager(exchanges=[DummyExchange(), OtherDummyExchange(healthy=False)])

        assert await manager.health_check_all() == {"dummy": True, "other": False}

    def test_manager_repr_includes_exchange_names(self):
        manager = ExchangeManager(exchanges=[DummyExchange()])
        assert "dummy" in repr(manager)
