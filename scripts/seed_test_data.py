# scripts/seed_test_data.py
"""
Seed script for CareConnect testing.
Creates one patient, one doctor and one administrator. The doctor starts
with a stored settings record (appointment sounds off, no completion
notices); the patient and administrator have none, so their first stream
subscription provisions the defaults.

Run: python -m scripts.seed_test_data
"""

import asyncio
import logging

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from careconnect.common.database.database import async_session, connect_to_db
from careconnect.common.logging_config import configure_logging
from careconnect.auth.auth_service import hash_password
from careconnect.models.models import NotificationSettingsRecord, User, UserRole
from careconnect.modules.notification_settings.schemas import (
    CONFIRMATION, CANCELLATION, REMINDER, NotificationSettings, to_document,
)

logger = logging.getLogger("scripts.seed_test_data")

TEST_PASSWORD = "Test1234!"  # Same password for all test users

TEST_USERS = [
    ("amara.patient@careconnect.org", "Amara", "Okafor", UserRole.PATIENT),
    ("daniel.doctor@careconnect.org", "Daniel", "Mensah", UserRole.DOCTOR),
    ("grace.admin@careconnect.org", "Grace", "Bello", UserRole.ADMIN),
]

DOCTOR_SETTINGS = NotificationSettings(
    appointment_sound_enabled=False,
    enabled_appointment_types=frozenset({CONFIRMATION, REMINDER, CANCELLATION}),
    reminder_minutes_before=60,
)


async def seed_all_data(db: AsyncSession) -> None:
    emails = [email for email, *_ in TEST_USERS]
    await db.execute(delete(User).where(User.email.in_(emails)))

    password_hash = hash_password(TEST_PASSWORD)
    users = {}
    for email, first_name, last_name, role in TEST_USERS:
        user = User(email=email, password_hash=password_hash, first_name=first_name, last_name=last_name, role=role)
        db.add(user)
        users[role] = user
    await db.flush()

    doctor = users[UserRole.DOCTOR]
    db.add(NotificationSettingsRecord(user_id=doctor.id, role=UserRole.DOCTOR, document=to_document(DOCTOR_SETTINGS)))
    await db.commit()

    for email, *_ in TEST_USERS:
        logger.info("Seeded %s (password: %s)", email, TEST_PASSWORD)


async def main():
    """Run the seed script."""
    configure_logging()
    await connect_to_db()
    async with async_session() as db:
        try:
            await seed_all_data(db)
        except Exception:
            await db.rollback()
            logger.exception("Error during seeding")
            raise


if __name__ == "__main__":
    asyncio.run(main())
