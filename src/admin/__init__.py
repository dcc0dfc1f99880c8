"""Admin configuration management.

Components:
- AdminConfigService: Load and save alert thresholds and feature flags
"""

from src.admin.service import AdminConfigService

__all__ = ["AdminConfigService"]
