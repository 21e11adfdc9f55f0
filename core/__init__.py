"""
Core Package

Exchange-agnostic logic:
- signing: canonical messages, nonces and HMAC request signing
- fees: fee schedule evaluation
- ExchangeInterface / ExchangeManager: handler contract and registry
- schemas, config, logging, errors: shared models and ambient services
"""
