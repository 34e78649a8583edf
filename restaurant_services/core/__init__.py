"""
Core module initialization.
Exports configuration, logging, error and health utilities.
"""

from restaurant_services.core.config import (
    get_settings,
    setup_logging,
    Settings,
    EnvironmentMode,
)
from restaurant_services.core.errors import register_exception_handlers
from restaurant_services.core.health import database_gate, health_payload

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "register_exception_handlers",
    "database_gate",
    "health_payload",
]
