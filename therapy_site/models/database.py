from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class AppSetting(Base):
    __tablename__ = "app_settings"

    key = Column(String(255), primary_key=True)
    value = Column(JSON)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class AdminUser(Base):
    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    last_login_at = Column(DateTime, nullable=True)


class AdminSession(Base):
    __tablename__ = "admin_sessions"

    token = Column(String(255), primary_key=True)
    admin_id = Column(Integer, ForeignKey("admin_users.id", ondelete="CASCADE"), index=True)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    admin = relationship("AdminUser")


class AdminPasswordReset(Base):
    __tablename__ = "admin_password_resets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # One row per admin; a new request replaces the previous one
    admin_id = Column(Integer, ForeignKey("admin_users.id", ondelete="CASCADE"), unique=True, index=True)
    token_hash = Column(String(64), unique=True, index=True, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    title = Column(String(255), nullable=False)
    short_title = Column(String(255), nullable=True)
    description = Column(Text, default="")
    long_description = Column(Text, nullable=True)
    duration = Column(Integer, default=60)
    price = Column(Numeric(10, 2), default=0)
    category = Column(String(64), default="CHILD_THERAPY")
    image = Column(String(512), nullable=True)
    highlights = Column(JSON, default=list)
    order = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(Integer, ForeignKey("clients.id"), index=True)
    service_id = Column(Integer, ForeignKey("services.id"), index=True)
    date = Column(Date, index=True, nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    status = Column(String(32), default="PENDING")
    child_name = Column(String(255), nullable=True)
    child_age = Column(String(32), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    client = relationship("Client")
    service = relationship("Service")


class BookingReminder(Base):
    __tablename__ = "booking_reminders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), index=True)
    reminder_type = Column(String(32), nullable=False)
    offset_minutes = Column(Integer, nullable=False)
    send_at = Column(DateTime, index=True, nullable=False)
    status = Column(String(32), default="PENDING")
    sent_at = Column(DateTime, nullable=True)
    error_message = Column(Text, nullable=True)

    booking = relationship("Booking")


class Assessment(Base):
    __tablename__ = "assessments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(255), unique=True, index=True, nullable=False)
    child_age = Column(String(64), nullable=True)
    child_gender = Column(String(64), nullable=True)
    previous_diagnosis = Column(String(255), nullable=True)
    concern_areas = Column(JSON, default=list)
    main_concern = Column(Text, nullable=True)
    answers = Column(JSON, default=dict)
    media_urls = Column(JSON, default=list)
    status = Column(String(32), default="IN_PROGRESS")
    ai_analysis = Column(JSON, nullable=True)
    ai_recommendations = Column(Text, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class ContactSubmission(Base):
    __tablename__ = "contact_submissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(64), nullable=True)
    subject = Column(String(255), nullable=True)
    message = Column(Text, nullable=False)
    source = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class MediaAsset(Base):
    __tablename__ = "media_assets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    url = Column(String(1024), nullable=False)
    storage_path = Column(String(512), nullable=True)
    type = Column(String(16), default="IMAGE")
    title = Column(String(255), nullable=True)
    alt_text = Column(String(255), nullable=True)
    size = Column(Integer, nullable=True)
    created_by_id = Column(Integer, ForeignKey("admin_users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class BackupExport(Base):
    __tablename__ = "backup_exports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    status = Column(String(16), default="PENDING")
    file_url = Column(String(1024), nullable=True)
    file_key = Column(String(255), nullable=True)
    error_message = Column(Text, nullable=True)
    created_by_id = Column(Integer, ForeignKey("admin_users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    completed_at = Column(DateTime, nullable=True)


class LegalPage(Base):
    __tablename__ = "legal_pages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    title = Column(String(255), nullable=False)
    content = Column(Text, default="")
    is_published = Column(Boolean, default=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class ContentEntry(Base):
    __tablename__ = "content_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(64), unique=True, index=True, nullable=False)
    data = Column(JSON, default=dict)
    status = Column(String(16), default="PUBLISHED")
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class ContentRevision(Base):
    __tablename__ = "content_revisions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    content_id = Column(Integer, ForeignKey("content_entries.id", ondelete="CASCADE"), index=True)
    data = Column(JSON, default=dict)
    created_by_id = Column(Integer, ForeignKey("admin_users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
