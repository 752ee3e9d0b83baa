"""Adtime order bot: persistence, caching and rate limiting."""

__version__ = "0.1.0"
