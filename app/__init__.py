"""
FastAPI Application Package

Entry point of the HTTP gateway: exposes exchange market data, fee
estimates and the latest polled tickers as REST endpoints.
"""
