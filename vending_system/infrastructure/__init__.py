"""
Infrastructure layer - External dependencies and implementations.

Contains:
- Configuration (``settings``)
- Completion scheduler on the asyncio loop (``scheduler``)
- Diagnostics sinks (``diagnostics``)

Only settings are re-exported here: the logger reads them at import time,
so this package must not pull in modules that log.
"""

from .settings import (
    Settings,
    get_settings,
)


__all__ = [
    "Settings",
    "get_settings",
]
