# careconnect/modules/notification_settings/remote_store.py
"""Remote (server-side) copy of notification settings, keyed by user and role."""

import asyncio
import logging
import uuid
from collections import defaultdict
from typing import AsyncIterator, Dict, Optional, Protocol, Set, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from careconnect.models.models import NotificationSettingsRecord, UserRole
from .errors import TransportError
from .schemas import NotificationSettings, Role, from_document, to_document

logger = logging.getLogger(__name__)


class RemoteSettingsStore(Protocol):
    """
    Role-keyed settings record.

    None means the record does not exist yet. Failures are raised as TransportError.
    """

    def subscribe(self, role: Role) -> AsyncIterator[Optional[NotificationSettings]]: ...

    async def get(self, role: Role) -> Optional[NotificationSettings]: ...

    async def set(self, role: Role, settings: NotificationSettings) -> None: ...


class SettingsChangeBroker:
    """
    In-process fan-out of settings changes to live subscribers.

    One broker is created per application and shared by every store it builds.
    """

    def __init__(self):
        self._subscribers: Dict[Tuple[uuid.UUID, Role], Set[asyncio.Queue]] = defaultdict(set)

    def register(self, user_id: uuid.UUID, role: Role) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers[(user_id, role)].add(queue)
        return queue

    def unregister(self, user_id: uuid.UUID, role: Role, queue: asyncio.Queue) -> None:
        key = (user_id, role)
        queues = self._subscribers.get(key)
        if queues is None:
            return
        queues.discard(queue)
        if not queues:
            del self._subscribers[key]

    def publish(self, user_id: uuid.UUID, role: Role, settings: NotificationSettings) -> None:
        for queue in list(self._subscribers.get((user_id, role), ())):
            queue.put_nowait(settings)

    def subscriber_count(self, user_id: uuid.UUID, role: Role) -> int:
        return len(self._subscribers.get((user_id, role), ()))


class SqlRemoteSettingsStore:
    """Settings records in the `notification_settings` table for one user."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        user_id: uuid.UUID,
        broker: SettingsChangeBroker,
    ):
        self.session_factory = session_factory
        self.user_id = user_id
        self.broker = broker

    async def _fetch(self, session: AsyncSession, role: Role) -> Optional[NotificationSettingsRecord]:
        result = await session.execute(
            select(NotificationSettingsRecord).where(
                NotificationSettingsRecord.user_id == self.user_id,
                NotificationSettingsRecord.role == UserRole(role.value),
            )
        )
        return result.scalar_one_or_none()

    async def get(self, role: Role) -> Optional[NotificationSettings]:
        try:
            async with self.session_factory() as session:
                record = await self._fetch(session, role)
        except SQLAlchemyError as exc:
            raise TransportError(f"Could not read notification settings for {role.value}") from exc
        if record is None:
            return None
        return from_document(record.document)

    async def set(self, role: Role, settings: NotificationSettings) -> None:
        try:
            async with self.session_factory() as session:
                record = await self._fetch(session, role)
                if record is None:
                    record = NotificationSettingsRecord(
                        user_id=self.user_id,
                        role=UserRole(role.value),
                        document=to_document(settings),
                    )
                    session.add(record)
                else:
                    record.document = to_document(settings)
                await session.commit()
        except SQLAlchemyError as exc:
            raise TransportError(f"Could not save notification settings for {role.value}") from exc

        logger.debug("Notification settings saved for user %s as %s", self.user_id, role.value)
        self.broker.publish(self.user_id, role, settings)

    async def subscribe(self, role: Role) -> AsyncIterator[Optional[NotificationSettings]]:
        """Yield the current record, then every change published for it."""
        # Register before the first read so a change between the two is not lost
        queue = self.broker.register(self.user_id, role)
        try:
            yield await self.get(role)
            while True:
                yield await queue.get()
        finally:
            self.broker.unregister(self.user_id, role, queue)
            logger.debug("Notification settings listener removed for user %s as %s", self.user_id, role.value)
