"""Rate limiting adapters.

Routes talk to ``AbstractRateLimiter``; the in-memory fixed-window
implementation keeps one lock-guarded counter per (client, route) pair.
"""
