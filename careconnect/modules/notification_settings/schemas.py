# careconnect/modules/notification_settings/schemas.py
"""Pydantic schemas and value types for notification settings."""

import enum
import time
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Optional, Union

from pydantic import BaseModel, Field, field_validator

from careconnect.models.models import UserRole
from .errors import NotificationSettingsError


class Role(str, enum.Enum):
    PATIENT = "patient"
    DOCTOR = "doctor"
    ADMIN = "admin"


def role_for_user(user_role: UserRole) -> Role:
    """Map the account role stored on a user to its settings partition."""
    return Role(user_role.value)


# ============================================================================
# SETTINGS VALUE
# ============================================================================

CONFIRMATION = "confirmation"
REMINDER = "reminder"
CANCELLATION = "cancellation"
COMPLETION = "completion"

APPOINTMENT_CATEGORIES = frozenset({CONFIRMATION, REMINDER, CANCELLATION, COMPLETION})

# Appointment statuses carried by push payloads, grouped by the category that gates them
APPOINTMENT_TYPE_CATEGORIES = {
    "CONFIRMED": CONFIRMATION,
    "PENDING": CONFIRMATION,
    "REMINDER": REMINDER,
    "CANCELED": CANCELLATION,
    "CANCELLED": CANCELLATION,
    "COMPLETED": COMPLETION,
    "NO_SHOW": COMPLETION,
}


def appointment_category(appointment_type: str) -> Optional[str]:
    """Return the category for an appointment type or status, or None if unknown."""
    value = (appointment_type or "").strip()
    if value.lower() in APPOINTMENT_CATEGORIES:
        return value.lower()
    return APPOINTMENT_TYPE_CATEGORIES.get(value.upper().replace("-", "_"))


def _known_categories(value) -> FrozenSet[str]:
    unknown = set(value) - APPOINTMENT_CATEGORIES
    if unknown:
        raise ValueError(f"Unknown appointment notification types: {sorted(unknown)}")
    return frozenset(value)


class NotificationSettings(BaseModel):
    chat_notifications_enabled: bool = True
    appointment_notifications_enabled: bool = True
    enabled_appointment_types: FrozenSet[str] = APPOINTMENT_CATEGORIES
    chat_sound_enabled: bool = True
    appointment_sound_enabled: bool = True
    chat_vibrate_enabled: bool = True
    appointment_vibrate_enabled: bool = True
    show_message_preview: bool = True
    reminder_minutes_before: int = Field(default=30, ge=0, le=1440)

    class Config:
        frozen = True

    @field_validator("enabled_appointment_types")
    def known_categories(cls, value):
        return _known_categories(value)

    def allows_appointment_type(self, appointment_type: str) -> bool:
        category = appointment_category(appointment_type)
        if category is None:
            # Unknown types are shown
            return True
        return category in self.enabled_appointment_types


class NotificationSettingsUpdate(BaseModel):
    """Partial change; fields left as None keep their current value."""
    chat_notifications_enabled: Optional[bool] = None
    appointment_notifications_enabled: Optional[bool] = None
    enabled_appointment_types: Optional[FrozenSet[str]] = None
    chat_sound_enabled: Optional[bool] = None
    appointment_sound_enabled: Optional[bool] = None
    chat_vibrate_enabled: Optional[bool] = None
    appointment_vibrate_enabled: Optional[bool] = None
    show_message_preview: Optional[bool] = None
    reminder_minutes_before: Optional[int] = Field(default=None, ge=0, le=1440)

    @field_validator("enabled_appointment_types")
    def known_categories(cls, value):
        if value is None:
            return value
        return _known_categories(value)

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


# ============================================================================
# DOCUMENT CODEC
# ============================================================================

def _flag(section: Dict[str, Any], key: str, default: bool) -> bool:
    value = section.get(key)
    return value if isinstance(value, bool) else default


def to_document(settings: NotificationSettings) -> Dict[str, Any]:
    """Build the nested document stored remotely."""
    types = settings.enabled_appointment_types
    return {
        "chatNotifications": {
            "enabled": settings.chat_notifications_enabled,
            "sound": settings.chat_sound_enabled,
            "vibration": settings.chat_vibrate_enabled,
            "showPreview": settings.show_message_preview,
        },
        "appointmentNotifications": {
            "enabled": settings.appointment_notifications_enabled,
            "sound": settings.appointment_sound_enabled,
            "vibration": settings.appointment_vibrate_enabled,
            "confirmations": CONFIRMATION in types,
            "reminders": REMINDER in types,
            "cancellations": CANCELLATION in types,
            "completions": COMPLETION in types,
            "reminderTimeBefore": settings.reminder_minutes_before,
        },
        "lastUpdated": int(time.time() * 1000),
    }


def from_document(data: Optional[Dict[str, Any]]) -> NotificationSettings:
    """
    Parse a remote document. Missing or mistyped fields take their defaults,
    so a partially written record still yields a complete settings value.
    """
    data = data if isinstance(data, dict) else {}
    chat = data.get("chatNotifications")
    chat = chat if isinstance(chat, dict) else {}
    appointment = data.get("appointmentNotifications")
    appointment = appointment if isinstance(appointment, dict) else {}

    categories = {
        CONFIRMATION: _flag(appointment, "confirmations", True),
        REMINDER: _flag(appointment, "reminders", True),
        CANCELLATION: _flag(appointment, "cancellations", True),
        COMPLETION: _flag(appointment, "completions", True),
    }
    reminder = appointment.get("reminderTimeBefore")
    if isinstance(reminder, bool) or not isinstance(reminder, int) or not 0 <= reminder <= 1440:
        reminder = 30

    return NotificationSettings(
        chat_notifications_enabled=_flag(chat, "enabled", True),
        chat_sound_enabled=_flag(chat, "sound", True),
        chat_vibrate_enabled=_flag(chat, "vibration", True),
        show_message_preview=_flag(chat, "showPreview", True),
        appointment_notifications_enabled=_flag(appointment, "enabled", True),
        appointment_sound_enabled=_flag(appointment, "sound", True),
        appointment_vibrate_enabled=_flag(appointment, "vibration", True),
        enabled_appointment_types=frozenset(name for name, on in categories.items() if on),
        reminder_minutes_before=reminder,
    )


# ============================================================================
# RESULTS
# ============================================================================

@dataclass(frozen=True)
class SettingsSuccess:
    settings: NotificationSettings


@dataclass(frozen=True)
class SettingsError:
    message: str


@dataclass(frozen=True)
class SettingsLoading:
    pass


SettingsResult = Union[SettingsSuccess, SettingsError, SettingsLoading]


class SaveStatus(str, enum.Enum):
    SAVED = "saved"
    SAVED_LOCALLY_ONLY = "saved_locally_only"
    FAILED = "failed"


@dataclass(frozen=True)
class SaveResult:
    status: SaveStatus
    settings: NotificationSettings
    error: Optional[NotificationSettingsError] = None

    @property
    def ok(self) -> bool:
        return self.status is SaveStatus.SAVED

    @property
    def durable(self) -> bool:
        """True when the value reached at least the local cache."""
        return self.status is not SaveStatus.FAILED


@dataclass(frozen=True)
class DeliveryDecision:
    show: bool
    sound: bool
    vibrate: bool
    show_preview: bool


# ============================================================================
# API SCHEMAS
# ============================================================================

class SettingsResponse(BaseModel):
    role: Role
    notification_settings: NotificationSettings


class SettingsActionResponse(BaseModel):
    success: bool
    saved_locally_only: bool = False
    message: str
    settings: Optional[NotificationSettings] = None


class SettingsChecksResponse(BaseModel):
    chat_notifications: bool
    appointment_notifications: bool
    chat_sound: bool
    appointment_sound: bool
    chat_vibrate: bool
    appointment_vibrate: bool
    message_preview: bool


class NotificationKind(str, enum.Enum):
    CHAT = "chat"
    APPOINTMENT = "appointment"


class DeliveryRequest(BaseModel):
    kind: NotificationKind
    appointment_type: Optional[str] = None


class DeliveryResponse(BaseModel):
    show: bool
    sound: bool
    vibrate: bool
    show_preview: bool
