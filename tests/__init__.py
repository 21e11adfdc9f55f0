"""
Test Suite

Unit tests for the signing protocol, fee engine, exchange handlers and
the HTTP gateway. Network access is never needed: API clients are tested
by monkeypatching their transport methods (_get / _send).

Uses pytest with pytest-asyncio for testing async functionality.
"""
