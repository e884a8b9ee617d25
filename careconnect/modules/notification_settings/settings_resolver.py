# careconnect/modules/notification_settings/settings_resolver.py
"""
Resolution of a user's notification settings.

The remote record is authoritative. Every value read from it is mirrored
into the local cache, and the local cache (or the defaults) stands in
whenever the remote store is missing, failing or slow. Read paths never
raise; write paths report whether the value reached the local cache only
or both stores.
"""

import asyncio
import logging
from contextlib import aclosing
from typing import Any, AsyncIterator, Awaitable, Dict, Optional, Set, TypeVar

from careconnect.common.config import settings as app_settings
from .errors import LocalStorageError, PartialSaveError, TransportError
from .local_cache import LocalSettingsCache
from .remote_store import RemoteSettingsStore
from .schemas import (
    DeliveryDecision, NotificationKind, NotificationSettings, Role,
    SaveResult, SaveStatus, SettingsResult, SettingsSuccess,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SettingsResolver:
    def __init__(
        self,
        remote: RemoteSettingsStore,
        local: LocalSettingsCache,
        remote_timeout: Optional[float] = None,
    ):
        self.remote = remote
        self.local = local
        self.remote_timeout = remote_timeout if remote_timeout is not None else app_settings.REMOTE_TIMEOUT_SECONDS
        self._last: Optional[NotificationSettings] = None
        self._pending: Set[asyncio.Task] = set()

    @property
    def last_resolved(self) -> Optional[NotificationSettings]:
        """The most recent value produced by observe, get_current or save."""
        return self._last

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    async def _remote_call(self, call: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self.remote_timeout)
        except asyncio.TimeoutError as exc:
            raise TransportError(f"Remote settings store timed out after {self.remote_timeout}s") from exc

    def _local_or_default(self) -> NotificationSettings:
        try:
            return self.local.get()
        except LocalStorageError:
            logger.warning("Local settings cache unreadable, using defaults", exc_info=True)
            return NotificationSettings()

    async def _write_local(self, value: NotificationSettings) -> None:
        # File-backed caches fsync, so keep the write off the event loop
        await asyncio.to_thread(self.local.set, value)

    async def _mirror(self, value: NotificationSettings) -> None:
        try:
            await self._write_local(value)
        except LocalStorageError:
            logger.error("Failed to mirror remote settings into the local cache", exc_info=True)

    def _remember(self, value: NotificationSettings) -> NotificationSettings:
        self._last = value
        return value

    # ------------------------------------------------------------------
    # live view
    # ------------------------------------------------------------------

    async def observe(self, role: Role) -> AsyncIterator[SettingsResult]:
        """
        Yield one SettingsSuccess per remote update, in remote order.

        A remote value is written to the local cache before it is yielded.
        When the remote record is missing the local value (or the defaults)
        is yielded and a provisioning write is started in the background.
        A remote failure yields the local value and ends the stream.
        """
        async with aclosing(self.remote.subscribe(role)) as updates:
            try:
                async for remote_value in updates:
                    if remote_value is not None:
                        await self._mirror(remote_value)
                        logger.debug("Settings for %s loaded remotely and cached locally", role.value)
                        yield SettingsSuccess(self._remember(remote_value))
                    else:
                        local_value = self._local_or_default()
                        logger.debug("No remote settings for %s, using local cached settings", role.value)
                        self._start_provisioning(role, local_value)
                        yield SettingsSuccess(self._remember(local_value))
            except TransportError:
                logger.warning("Error in settings stream for %s, falling back to local settings", role.value, exc_info=True)
                yield SettingsSuccess(self._remember(self._local_or_default()))

    def _start_provisioning(self, role: Role, value: NotificationSettings) -> None:
        task = asyncio.create_task(self._provision(role, value))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _provision(self, role: Role, value: NotificationSettings) -> None:
        try:
            # Another device may have created the record since the subscription saw it missing
            if await self._remote_call(self.remote.get(role)) is not None:
                return
            logger.info("First time user - saving initial notification settings for %s remotely", role.value)
            await self._remote_call(self.remote.set(role, value))
        except TransportError:
            logger.error("Failed to save initial notification settings for %s remotely", role.value, exc_info=True)

    async def wait_for_pending_writes(self) -> None:
        """Wait for background provisioning writes started by observe."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ------------------------------------------------------------------
    # one-shot reads and writes
    # ------------------------------------------------------------------

    async def get_current(self, role: Role) -> NotificationSettings:
        try:
            remote_value = await self._remote_call(self.remote.get(role))
        except TransportError:
            logger.warning("Error getting remote settings for %s, using local", role.value, exc_info=True)
            return self._remember(self._local_or_default())

        if remote_value is None:
            return self._remember(self._local_or_default())
        await self._mirror(remote_value)
        return self._remember(remote_value)

    async def save(self, role: Role, value: NotificationSettings) -> SaveResult:
        try:
            await self._write_local(value)
        except LocalStorageError as exc:
            logger.error("Failed to save notification settings locally", exc_info=True)
            return SaveResult(status=SaveStatus.FAILED, settings=value, error=exc)
        self._remember(value)
        logger.debug("Settings saved locally")

        try:
            await self._remote_call(self.remote.set(role, value))
        except TransportError as exc:
            logger.warning("Settings for %s saved locally only due to remote error", role.value, exc_info=True)
            return SaveResult(
                status=SaveStatus.SAVED_LOCALLY_ONLY,
                settings=value,
                error=PartialSaveError(f"Settings saved locally only: {exc}", cause=exc),
            )

        logger.debug("Settings for %s saved remotely", role.value)
        return SaveResult(status=SaveStatus.SAVED, settings=value)

    async def update(self, role: Role, changes: Dict[str, Any]) -> SaveResult:
        """Apply a partial change on top of the current settings and save the result."""
        current = await self.get_current(role)
        updated = NotificationSettings.model_validate({**current.model_dump(), **changes})
        return await self.save(role, updated)

    # ------------------------------------------------------------------
    # synchronous checks, local cache only
    # ------------------------------------------------------------------

    def should_show_chat_notifications(self) -> bool:
        return self._local_or_default().chat_notifications_enabled

    def should_show_appointment_notifications(self) -> bool:
        return self._local_or_default().appointment_notifications_enabled

    def should_show_appointment_type(self, appointment_type: str) -> bool:
        return self._local_or_default().allows_appointment_type(appointment_type)

    def should_play_sound(self, is_chat: bool) -> bool:
        current = self._local_or_default()
        return current.chat_sound_enabled if is_chat else current.appointment_sound_enabled

    def should_vibrate(self, is_chat: bool) -> bool:
        current = self._local_or_default()
        return current.chat_vibrate_enabled if is_chat else current.appointment_vibrate_enabled

    def should_show_message_preview(self) -> bool:
        return self._local_or_default().show_message_preview

    def evaluate_delivery(self, kind: NotificationKind, appointment_type: Optional[str] = None) -> DeliveryDecision:
        """Decide how an incoming push notification should be presented."""
        current = self._local_or_default()
        if kind is NotificationKind.CHAT:
            show = current.chat_notifications_enabled
            return DeliveryDecision(
                show=show,
                sound=show and current.chat_sound_enabled,
                vibrate=show and current.chat_vibrate_enabled,
                show_preview=show and current.show_message_preview,
            )

        show = current.appointment_notifications_enabled
        if show and appointment_type:
            show = current.allows_appointment_type(appointment_type)
        return DeliveryDecision(
            show=show,
            sound=show and current.appointment_sound_enabled,
            vibrate=show and current.appointment_vibrate_enabled,
            show_preview=show,
        )
