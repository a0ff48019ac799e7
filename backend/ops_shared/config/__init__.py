"""
Configuration module: Settings, logging, constants.
"""

from ops_shared.config.settings import settings, get_settings, DATABASE_URL
from ops_shared.config.logging import get_logger, setup_logging
from ops_shared.config.constants import (
    Roles,
    TaskType,
    TaskStatus,
    ErrorCodes,
    Limits,
    HOD_ELIGIBLE_ROLES,
)

__all__ = [
    # settings
    "settings",
    "get_settings",
    "DATABASE_URL",
    # logging
    "get_logger",
    "setup_logging",
    # constants
    "Roles",
    "TaskType",
    "TaskStatus",
    "ErrorCodes",
    "Limits",
    "HOD_ELIGIBLE_ROLES",
]
