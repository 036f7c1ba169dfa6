"""
booth-common: Shared library for BoothGuard.

Provides configuration management, structured logging, database
connection handling, ORM models and the shared Pydantic models used by
the BoothGuard verification service and its tooling.
"""

from booth_common.config import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
