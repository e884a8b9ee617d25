# careconnect/modules/notification_settings/local_cache.py
"""On-device copies of the notification settings record."""

import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Optional, Protocol

from pydantic import ValidationError

from .errors import LocalStorageError
from .schemas import NotificationSettings

logger = logging.getLogger(__name__)


class LocalSettingsCache(Protocol):
    """
    Fast local store for one settings record.

    `get` never fails and returns defaults when nothing was stored;
    `set` replaces the whole record and raises LocalStorageError on failure.
    """

    def get(self) -> NotificationSettings: ...

    def set(self, settings: NotificationSettings) -> None: ...


class InMemorySettingsCache:
    """Process-local cache, for ephemeral clients and tests."""

    def __init__(self, initial: Optional[NotificationSettings] = None):
        self._lock = threading.Lock()
        self._value = initial

    def get(self) -> NotificationSettings:
        with self._lock:
            return self._value if self._value is not None else NotificationSettings()

    def set(self, settings: NotificationSettings) -> None:
        with self._lock:
            self._value = settings


class FileSettingsCache:
    """
    JSON file holding a single settings record.

    Writes go to a temporary file in the same directory and are moved into
    place with os.replace, so readers see either the old or the new record.
    """

    def __init__(self, path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def get(self) -> NotificationSettings:
        with self._lock:
            try:
                raw = self.path.read_bytes()
            except FileNotFoundError:
                return NotificationSettings()
            except OSError:
                logger.warning("Could not read settings cache %s, using defaults", self.path, exc_info=True)
                return NotificationSettings()
        try:
            return NotificationSettings.model_validate_json(raw)
        except (ValidationError, UnicodeDecodeError):
            logger.warning("Settings cache %s is corrupt, using defaults", self.path)
            return NotificationSettings()

    def set(self, settings: NotificationSettings) -> None:
        payload = settings.model_dump_json()
        with self._lock:
            tmp_name = None
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".settings-", suffix=".tmp")
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(tmp_name, self.path)
            except OSError as exc:
                if tmp_name is not None and os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise LocalStorageError(f"Could not write settings cache {self.path}: {exc}") from exc
