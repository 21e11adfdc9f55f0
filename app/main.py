"""
FastAPI Application - Exchange REST Gateway

Exposes the exchange handlers over HTTP: public market data, fee estimates
and the latest polled tickers.

Supported Exchanges:
    - Liqui
    - ItBit

Usage:
    uvicorn app.main:app --reload --host 0.0.0.0 --port 8000

Docs:
    - Swagger: http://localhost:8000/docs
    - ReDoc: http://localhost:8000/redoc
"""

from contextlib import asynccontextmanager
from typing import Dict, List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from core.config import validate_configuration
from core.errors import AuthenticationRequiredError, ExchangeAPIError
from core.exchange_interface import ExchangeInterface
from core.exchange_manager import ExchangeManager
from core.logging import logger
from core.schemas import FeeQuery, Orderbook, Ticker, Trade
from services.ticker_poller import TickerPoller, latest_tickers


manager = ExchangeManager()  # Global exchange manager
pollers: Dict[str, TickerPoller] = {}


# ============================================
# Lifespan Management
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""
    # Startup
    logger.info("=== Application Starting ===")
    try:
        validate_configuration()
        await manager.initialize_all()
        for exchange in manager.enabled_exchanges():
            try:
                poller = TickerPoller(exchange)
                await poller.start()
                pollers[exchange.name] = poller
            except Exception as svc_err:
                logger.error(f"Ticker poller for {exchange.name} failed to start: {svc_err}")
        logger.info("=== Started Successfully ===")
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise

    yield

    # Shutdown
    logger.info("=== Shutting Down ===")
    try:
        for name, poller in list(pollers.items()):
            try:
                await poller.stop()
            except Exception as svc_stop_err:
                logger.error(f"Error stopping {name} ticker poller: {svc_stop_err}")
        pollers.clear()
        await manager.shutdown_all()
        logger.info("=== Shutdown Complete ===")
    except Exception as e:
        logger.error(f"Shutdown error: {e}")


# ============================================
# FastAPI Application
# ============================================

app = FastAPI(
    title="CoinRest Exchange Gateway",
    description=(
        "REST gateway over the Liqui and ItBit exchange handlers.\n\n"
        "## Endpoints\n"
        "- `GET /{exchange}/ticker/{pair}` - Current ticker\n"
        "- `GET /{exchange}/orderbook/{pair}` - Order book snapshot\n"
        "- `GET /{exchange}/trades/{pair}` - Recent public trades\n"
        "- `POST /{exchange}/fee` - Fee estimate for a FeeQuery body\n"
        "- `GET /tickers/latest` - Latest ticker of every polled pair\n"
        "- `GET /exchanges` - List supported exchanges\n"
        "- `GET /health` - Health check\n"
    ),
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)


def _exchange_or_404(name: str) -> ExchangeInterface:
    try:
        return manager.get_exchange(name)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _raise_for_exchange_error(action: str, exchange: str, pair: str, e: Exception) -> None:
    logger.error(f"{action} error {exchange}/{pair}: {e}")
    if isinstance(e, AuthenticationRequiredError):
        raise HTTPException(status_code=401, detail=e.to_dict())
    if isinstance(e, ExchangeAPIError):
        raise HTTPException(status_code=502, detail=e.to_dict())
    raise HTTPException(status_code=500, detail=f"Failed to fetch {action.lower()}: {str(e)}")


# ============================================
# System Endpoints
# ============================================

@app.get("/", tags=["System"])
async def root():
    """API information and available exchanges."""
    return {
        "name": "CoinRest Exchange Gateway",
        "version": "1.0.0",
        "status": "operational",
        "docs": "/docs",
        "exchanges": manager.list_exchanges()
    }


@app.get("/health", tags=["System"])
async def health_check():
    """Health check - tests connectivity to every enabled exchange."""
    health = await manager.health_check_all()
    return {
        "status": "healthy" if all(health.values()) else "degraded",
        "exchanges": health
    }


@app.get("/exchanges", tags=["System"])
async def list_exchanges():
    """List all supported exchanges with their capabilities and state."""
    return {
        "exchanges": [
            {
                "name": name,
                "enabled": manager.get_exchange(name).is_enabled(),
                "capabilities": manager.get_exchange_capabilities(name)
            }
            for name in manager.list_exchanges()
        ]
    }


# ============================================
# Polled Data Endpoints
# NOTE: must be defined BEFORE generic '/{exchange}/...' routes
#       to avoid being captured by the dynamic path.
# ============================================

@app.get("/tickers/latest", response_model=List[Ticker], tags=["Market Data"])
async def get_latest_tickers():
    """Latest ticker of every pair the background pollers have fetched."""
    return latest_tickers()


# ============================================
# Market Data Endpoints
# ============================================

@app.get("/{exchange}/ticker/{pair}", response_model=Ticker, tags=["Market Data"])
async def get_ticker(exchange: str, pair: str):
    """
    Get the current ticker.

    Examples:
        GET /liqui/ticker/eth_btc
        GET /itbit/ticker/XBTUSD
    """
    ex = _exchange_or_404(exchange)
    if not ex.supports("ticker"):
        raise HTTPException(status_code=404, detail=f"{exchange} does not support tickers")

    try:
        return await ex.get_ticker(pair)
    except Exception as e:
        _raise_for_exchange_error("Ticker", exchange, pair, e)


@app.get("/{exchange}/orderbook/{pair}", response_model=Orderbook, tags=["Market Data"])
async def get_orderbook(exchange: str, pair: str):
    """
    Get an order book snapshot.

    Example:
        GET /liqui/orderbook/ltc_btc
    """
    ex = _exchange_or_404(exchange)
    if not ex.supports("orderbook"):
        raise HTTPException(status_code=404, detail=f"{exchange} does not support order books")

    try:
        return await ex.get_orderbook(pair)
    except Exception as e:
        _raise_for_exchange_error("Orderbook", exchange, pair, e)


@app.get("/{exchange}/trades/{pair}", response_model=List[Trade], tags=["Market Data"])
async def get_trades(exchange: str, pair: str):
    """
    Get recent public trades.

    Example:
        GET /itbit/trades/XBTUSD
    """
    ex = _exchange_or_404(exchange)
    if not ex.supports("trades"):
        raise HTTPException(status_code=404, detail=f"{exchange} does not support trades")

    try:
        return await ex.get_trades(pair)
    except Exception as e:
        _raise_for_exchange_error("Trades", exchange, pair, e)


# ============================================
# Fee Endpoints
# ============================================

@app.post("/{exchange}/fee", tags=["Fees"])
async def estimate_fee(exchange: str, query: FeeQuery):
    """
    Estimate a fee from the exchange's fee schedule.

    Example:
        POST /liqui/fee
        {"fee_type": "crypto_trade", "amount": 1, "purchase_price": 1000}
        -> {"exchange": "liqui", "fee": 2.5}
    """
    ex = _exchange_or_404(exchange)
    return {"exchange": ex.name, "fee": ex.get_fee(query)}
