"""
Static configuration for the Adtime storage layer.

Values come from environment variables (optionally a .env file) and are
exposed as class attributes on `Config`.
"""

from adtime.core.config.config import Config, Environment

__all__ = [
    "Config",
    "Environment",
]
