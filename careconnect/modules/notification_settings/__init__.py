# careconnect/modules/notification_settings/__init__.py
"""Notification settings: remote-authoritative with a local fallback copy."""

from .settings_controller import router
from .settings_resolver import SettingsResolver

__all__ = ["router", "SettingsResolver"]
