# careconnect/modules/notification_settings/settings_service.py
"""Service layer wiring users to their notification settings."""

from pathlib import Path
from typing import Any, Dict

from careconnect.common.config import settings
from careconnect.common.database.database import async_session
from careconnect.common.utils.global_messages import GlobalMessages
from careconnect.models.models import User
from .local_cache import FileSettingsCache
from .remote_store import SettingsChangeBroker, SqlRemoteSettingsStore
from .schemas import (
    NotificationSettings, SaveResult, SaveStatus, SettingsActionResponse,
    SettingsChecksResponse, SettingsResponse, role_for_user,
)
from .settings_resolver import SettingsResolver


def cache_path_for(user: User, cache_dir: str = None) -> Path:
    """Location of the user's on-device settings copy."""
    return Path(cache_dir or settings.SETTINGS_CACHE_DIR) / f"{user.id}.json"


def build_resolver(user: User, broker: SettingsChangeBroker, session_factory=None) -> SettingsResolver:
    """Build the resolver for one signed-in user."""
    remote = SqlRemoteSettingsStore(session_factory or async_session, user.id, broker)
    local = FileSettingsCache(cache_path_for(user))
    return SettingsResolver(remote, local, remote_timeout=settings.REMOTE_TIMEOUT_SECONDS)


def _action_response(result: SaveResult) -> SettingsActionResponse:
    if result.status is SaveStatus.SAVED:
        message = GlobalMessages.SETTINGS_SAVED
    elif result.status is SaveStatus.SAVED_LOCALLY_ONLY:
        message = GlobalMessages.SETTINGS_SAVED_LOCALLY_ONLY
    else:
        message = GlobalMessages.SETTINGS_SAVE_FAILED
    return SettingsActionResponse(
        success=result.durable,
        saved_locally_only=result.status is SaveStatus.SAVED_LOCALLY_ONLY,
        message=message,
        settings=result.settings if result.durable else None,
    )


async def get_settings(resolver: SettingsResolver, user: User) -> SettingsResponse:
    role = role_for_user(user.role)
    current = await resolver.get_current(role)
    return SettingsResponse(role=role, notification_settings=current)


async def save_settings(
    resolver: SettingsResolver,
    user: User,
    new_settings: NotificationSettings
) -> SettingsActionResponse:
    result = await resolver.save(role_for_user(user.role), new_settings)
    return _action_response(result)


async def update_settings(
    resolver: SettingsResolver,
    user: User,
    changes: Dict[str, Any]
) -> SettingsActionResponse:
    result = await resolver.update(role_for_user(user.role), changes)
    return _action_response(result)


def get_checks(resolver: SettingsResolver) -> SettingsChecksResponse:
    return SettingsChecksResponse(
        chat_notifications=resolver.should_show_chat_notifications(),
        appointment_notifications=resolver.should_show_appointment_notifications(),
        chat_sound=resolver.should_play_sound(is_chat=True),
        appointment_sound=resolver.should_play_sound(is_chat=False),
        chat_vibrate=resolver.should_vibrate(is_chat=True),
        appointment_vibrate=resolver.should_vibrate(is_chat=False),
        message_preview=resolver.should_show_message_preview(),
    )
