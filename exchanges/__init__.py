"""
Exchange Handlers Package

Each exchange has its own subpackage with:
- __init__.py: Handler class implementing ExchangeInterface
- api_client.py: REST API client (public and authenticated endpoints)
- models.py: Exchange-specific response models

Handlers declare their signing scheme and fee schedule; the signing and fee
logic itself lives in core.
"""
