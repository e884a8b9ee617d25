import asyncio
import json
import uuid

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from careconnect.models.models import Base, NotificationSettingsRecord, User, UserRole
from careconnect.modules.notification_settings.errors import TransportError
from careconnect.modules.notification_settings.local_cache import InMemorySettingsCache
from careconnect.modules.notification_settings.remote_store import SettingsChangeBroker, SqlRemoteSettingsStore
from careconnect.modules.notification_settings.schemas import NotificationSettings, Role, SettingsSuccess
from careconnect.modules.notification_settings.settings_controller import stream_settings
from careconnect.modules.notification_settings.settings_resolver import SettingsResolver

MUTED = NotificationSettings(chat_sound_enabled=False, appointment_sound_enabled=False)


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def broker():
    return SettingsChangeBroker()


@pytest.fixture
def user_id():
    return uuid.uuid4()


@pytest.mark.asyncio
async def test_missing_record_reads_as_none(session_factory, broker, user_id):
    store = SqlRemoteSettingsStore(session_factory, user_id, broker)

    assert await store.get(Role.PATIENT) is None


@pytest.mark.asyncio
async def test_set_creates_then_replaces_record(session_factory, broker, user_id):
    store = SqlRemoteSettingsStore(session_factory, user_id, broker)

    await store.set(Role.PATIENT, MUTED)
    await store.set(Role.PATIENT, NotificationSettings(show_message_preview=False))

    assert await store.get(Role.PATIENT) == NotificationSettings(show_message_preview=False)
    async with session_factory() as session:
        records = (await session.execute(select(NotificationSettingsRecord))).scalars().all()
    assert len(records) == 1
    assert records[0].document["chatNotifications"]["showPreview"] is False


@pytest.mark.asyncio
async def test_records_are_partitioned_by_role_and_user(session_factory, broker, user_id):
    store = SqlRemoteSettingsStore(session_factory, user_id, broker)
    other_user = SqlRemoteSettingsStore(session_factory, uuid.uuid4(), broker)

    await store.set(Role.DOCTOR, MUTED)

    assert await store.get(Role.DOCTOR) == MUTED
    assert await store.get(Role.PATIENT) is None
    assert await other_user.get(Role.DOCTOR) is None


@pytest.mark.asyncio
async def test_subscribe_yields_current_then_changes(session_factory, broker, user_id):
    store = SqlRemoteSettingsStore(session_factory, user_id, broker)
    updates = store.subscribe(Role.PATIENT)

    assert await updates.__anext__() is None
    assert broker.subscriber_count(user_id, Role.PATIENT) == 1

    await store.set(Role.PATIENT, MUTED)
    assert await asyncio.wait_for(updates.__anext__(), timeout=1) == MUTED

    await updates.aclose()
    assert broker.subscriber_count(user_id, Role.PATIENT) == 0


@pytest.mark.asyncio
async def test_database_errors_become_transport_errors(broker, user_id):
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    store = SqlRemoteSettingsStore(async_sessionmaker(engine), user_id, broker)

    # No tables were created
    with pytest.raises(TransportError):
        await store.get(Role.PATIENT)
    with pytest.raises(TransportError):
        await store.set(Role.PATIENT, MUTED)
    await engine.dispose()


@pytest.mark.asyncio
async def test_resolver_provisions_sql_record_and_sees_it_come_back(session_factory, broker, user_id):
    store = SqlRemoteSettingsStore(session_factory, user_id, broker)
    local = InMemorySettingsCache(MUTED)
    resolver = SettingsResolver(store, local, remote_timeout=1)

    stream = resolver.observe(Role.PATIENT)
    first = await stream.__anext__()
    second = await asyncio.wait_for(stream.__anext__(), timeout=1)
    await stream.aclose()

    assert first == SettingsSuccess(MUTED)
    assert second == SettingsSuccess(MUTED)
    assert await store.get(Role.PATIENT) == MUTED
    assert broker.subscriber_count(user_id, Role.PATIENT) == 0


@pytest.mark.asyncio
async def test_resolver_save_reaches_live_observer(session_factory, broker, user_id):
    store = SqlRemoteSettingsStore(session_factory, user_id, broker)
    await store.set(Role.DOCTOR, NotificationSettings())
    observer = SettingsResolver(store, InMemorySettingsCache(), remote_timeout=1)
    editor = SettingsResolver(store, InMemorySettingsCache(), remote_timeout=1)

    stream = observer.observe(Role.DOCTOR)
    assert await stream.__anext__() == SettingsSuccess(NotificationSettings())

    await editor.save(Role.DOCTOR, MUTED)

    assert await asyncio.wait_for(stream.__anext__(), timeout=1) == SettingsSuccess(MUTED)
    assert observer.should_play_sound(is_chat=True) is False
    await stream.aclose()


@pytest.mark.asyncio
async def test_stream_endpoint_frames_first_update_and_unsubscribes_on_close(session_factory, broker, user_id):
    user = User(id=user_id, role=UserRole.PATIENT)
    store = SqlRemoteSettingsStore(session_factory, user_id, broker)
    resolver = SettingsResolver(store, InMemorySettingsCache(), remote_timeout=1)

    response = await stream_settings(current_user=user, resolver=resolver)
    frame = await asyncio.wait_for(response.body_iterator.__anext__(), timeout=1)

    assert broker.subscriber_count(user_id, Role.PATIENT) == 1
    event, data = frame.rstrip("\n").split("\n")
    assert event == "event: settings"
    payload = json.loads(data[len("data: "):])
    assert payload["status"] == "success"
    assert NotificationSettings.model_validate(payload["settings"]) == NotificationSettings()

    # Client disconnect closes the body iterator
    await response.body_iterator.aclose()
    await resolver.wait_for_pending_writes()

    assert broker.subscriber_count(user_id, Role.PATIENT) == 0
    assert await store.get(Role.PATIENT) == NotificationSettings()
