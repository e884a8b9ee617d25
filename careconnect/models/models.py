# careconnect/models/models.py

import uuid
import enum

from sqlalchemy import (
    JSON, Boolean, Column, ForeignKey, Index, String, DateTime, Uuid,
    Enum as SAEnum, UniqueConstraint,
    func,
)
from sqlalchemy.orm import declarative_base, relationship, backref

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class UserRole(enum.Enum):
    PATIENT = "patient"
    DOCTOR = "doctor"
    ADMIN = "admin"


# ============================================================================
# USER MODELS
# ============================================================================

class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(SAEnum(UserRole), nullable=False, default=UserRole.PATIENT)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role.value})>"


# ============================================================================
# NOTIFICATION SETTINGS MODELS
# ============================================================================

class NotificationSettingsRecord(Base):
    """
    Remote copy of a user's notification settings for one role.
    The settings live in `document` in the same nested shape the mobile
    clients read and write.
    """
    __tablename__ = "notification_settings"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role = Column(SAEnum(UserRole), nullable=False)
    document = Column(JSON, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationship
    user = relationship("User", backref=backref("notification_settings", lazy="dynamic", cascade="all, delete-orphan"))

    __table_args__ = (
        UniqueConstraint("user_id", "role", name="uq_notification_settings_user_role"),
        Index("idx_notification_settings_user", "user_id"),
    )

    def __repr__(self):
        return f"<NotificationSettingsRecord(user_id={self.user_id}, role={self.role.value})>"
