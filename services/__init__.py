"""
Services Package

Background services built on top of the exchange handlers:
- ticker_poller: per-exchange ticker polling loop
"""
