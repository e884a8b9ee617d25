import pytest
from pydantic import ValidationError

from careconnect.models.models import UserRole
from careconnect.modules.notification_settings.schemas import (
    APPOINTMENT_CATEGORIES, COMPLETION, REMINDER,
    NotificationSettings, NotificationSettingsUpdate, Role,
    appointment_category, from_document, role_for_user, to_document,
)


def test_defaults_are_fully_populated():
    settings = NotificationSettings()

    assert settings.enabled_appointment_types == APPOINTMENT_CATEGORIES
    assert settings.reminder_minutes_before == 30
    assert all(value is True for key, value in settings.model_dump().items()
               if isinstance(value, bool))


def test_settings_are_immutable():
    settings = NotificationSettings()

    with pytest.raises(ValidationError):
        settings.chat_notifications_enabled = False


def test_unknown_appointment_category_is_rejected():
    with pytest.raises(ValidationError):
        NotificationSettings(enabled_appointment_types=frozenset({"reminder", "new-booking"}))


def test_reminder_minutes_must_be_in_range():
    with pytest.raises(ValidationError):
        NotificationSettings(reminder_minutes_before=-5)


def test_document_layout():
    settings = NotificationSettings(
        chat_sound_enabled=False,
        enabled_appointment_types=frozenset({REMINDER}),
        reminder_minutes_before=45,
    )

    document = to_document(settings)

    assert document["chatNotifications"] == {
        "enabled": True, "sound": False, "vibration": True, "showPreview": True,
    }
    assert document["appointmentNotifications"] == {
        "enabled": True, "sound": True, "vibration": True,
        "confirmations": False, "reminders": True, "cancellations": False, "completions": False,
        "reminderTimeBefore": 45,
    }
    assert isinstance(document["lastUpdated"], int)


def test_document_is_read_back_unchanged():
    settings = NotificationSettings(
        appointment_notifications_enabled=False,
        chat_vibrate_enabled=False,
        enabled_appointment_types=frozenset({COMPLETION}),
    )

    assert from_document(to_document(settings)) == settings


@pytest.mark.parametrize("document", [None, {}, "not a document", {"chatNotifications": "broken"}])
def test_empty_or_malformed_document_gives_defaults(document):
    assert from_document(document) == NotificationSettings()


def test_missing_and_mistyped_fields_fall_back_individually():
    settings = from_document({
        "chatNotifications": {"enabled": False, "sound": "no"},
        "appointmentNotifications": {"reminders": False, "reminderTimeBefore": "soon"},
    })

    assert settings.chat_notifications_enabled is False
    assert settings.chat_sound_enabled is True
    assert REMINDER not in settings.enabled_appointment_types
    assert len(settings.enabled_appointment_types) == 3
    assert settings.reminder_minutes_before == 30


@pytest.mark.parametrize("value,expected", [
    ("CONFIRMED", "confirmation"),
    ("Pending", "confirmation"),
    ("reminder", "reminder"),
    ("CANCELED", "cancellation"),
    ("COMPLETED", "completion"),
    ("unknown", None),
    ("", None),
])
def test_appointment_category(value, expected):
    assert appointment_category(value) == expected


def test_role_for_user():
    assert role_for_user(UserRole.PATIENT) is Role.PATIENT
    assert role_for_user(UserRole.DOCTOR) is Role.DOCTOR
    assert role_for_user(UserRole.ADMIN) is Role.ADMIN


def test_update_changes_exclude_unset_fields():
    update = NotificationSettingsUpdate(chat_sound_enabled=False)

    assert update.changes() == {"chat_sound_enabled": False}
