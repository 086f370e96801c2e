import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Float, Text, DateTime, ForeignKey, Index, Enum, CheckConstraint
from sqlalchemy.orm import relationship, declarative_base
from shared.enums import FileType

Base = declarative_base()

# All timestamps are produced in UTC.
# When stored in SQLite, timezone info is stripped (SQLite limitation).
APP_TIMEZONE = timezone.utc


def now():
    """Return current datetime in application timezone (UTC, timezone-aware)."""
    return datetime.now(APP_TIMEZONE)


def new_uuid():
    return str(uuid.uuid4())


class TimestampMixin:
    """Mixin providing creation/update timestamps."""

    created_at = Column(DateTime, default=now)
    updated_at = Column(DateTime, default=now, onupdate=now)


class User(Base, TimestampMixin):
    __tablename__ = 'users'
    id = Column(String(36), primary_key=True, default=new_uuid)
    email = Column(String(254), unique=True, nullable=False)
    password_hash = Column(String(256), nullable=False)
    name = Column(String(200), nullable=True)
    projects = relationship('Project', backref='owner', lazy='select', cascade="all, delete-orphan")


class Project(Base, TimestampMixin):
    __tablename__ = 'projects'
    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    address = Column(Text, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    media = relationship('Media', backref='project', lazy='select', cascade="all, delete-orphan",
                         order_by='Media.uploaded_at.desc()')
    notes = relationship('Note', backref='project', lazy='select', cascade="all, delete-orphan")
    photos = relationship('Photo', backref='project', lazy='select', cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint('(latitude IS NULL) = (longitude IS NULL)', name='chk_project_coordinate_pair'),
        CheckConstraint('latitude IS NULL OR (latitude >= -90.0 AND latitude <= 90.0)', name='chk_project_latitude_range'),
        CheckConstraint('longitude IS NULL OR (longitude >= -180.0 AND longitude <= 180.0)', name='chk_project_longitude_range'),
    )


class Media(Base):
    __tablename__ = 'media'
    id = Column(String(36), primary_key=True, default=new_uuid)
    project_id = Column(String(36), ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True)
    # Denormalised owner of the parent project
    user_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    file_type = Column(Enum(FileType), nullable=False)
    file_path = Column(String(1000), nullable=False)
    thumbnail_path = Column(String(1000), nullable=True)
    file_size = Column(Integer, nullable=False)
    mime_type = Column(String(100), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    captured_at = Column(DateTime, default=now, nullable=False)
    uploaded_at = Column(DateTime, default=now, nullable=False)

    __table_args__ = (
        CheckConstraint('(latitude IS NULL) = (longitude IS NULL)', name='chk_media_coordinate_pair'),
        CheckConstraint('latitude IS NULL OR (latitude >= -90.0 AND latitude <= 90.0)', name='chk_media_latitude_range'),
        CheckConstraint('longitude IS NULL OR (longitude >= -180.0 AND longitude <= 180.0)', name='chk_media_longitude_range'),
        CheckConstraint('file_size >= 0', name='chk_media_file_size'),
    )

Index('idx_media_user_uploaded', Media.user_id, Media.uploaded_at)
Index('idx_media_project_type', Media.project_id, Media.file_type)


class Note(Base):
    __tablename__ = 'notes'
    id = Column(Integer, primary_key=True, nullable=False)
    project_id = Column(String(36), ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True)
    body = Column(Text, nullable=False)
    created_at = Column(DateTime, default=now, index=True)


class Photo(Base):
    """Row shape of the simple photos table.

    The photos blueprint reads and writes this table with hand-written SQL;
    the mapped class exists so the schema is created with the rest.
    """
    __tablename__ = 'photos'
    id = Column(Integer, primary_key=True, nullable=False)
    project_id = Column(String(36), ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True)
    filename = Column(String(255), nullable=False)
    original_name = Column(String(255), nullable=False)
    mimetype = Column(String(100), nullable=False)
    size = Column(Integer, nullable=False)
    uploaded_at = Column(DateTime, default=now, index=True)
