"""
Retail Reporting Query Set
Configuration Module
"""
from .settings import (
    DatabaseSettings,
    MonitoringSettings,
    ReportingSettings,
    Settings,
    get_settings,
)
from .logging import configure_logging, get_logger

__all__ = [
    "DatabaseSettings",
    "MonitoringSettings",
    "ReportingSettings",
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
]
