# careconnect/modules/notification_settings/errors.py
"""Error kinds raised by the settings stores and reported by the resolver."""


class NotificationSettingsError(Exception):
    """Base class for notification settings failures."""


class TransportError(NotificationSettingsError):
    """The remote store could not be reached, rejected the caller, or timed out."""


class LocalStorageError(NotificationSettingsError):
    """The on-device copy could not be written."""


class PartialSaveError(NotificationSettingsError):
    """Settings were stored locally but could not be pushed to the remote store."""

    def __init__(self, message: str, cause: Exception = None):
        super().__init__(message)
        self.cause = cause
