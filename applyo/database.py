"""
Database Module

SQLAlchemy ORM models and database operations.
Holds enriched company profiles, their employees, user-owned outreach
templates, and the users and sessions used for authentication.
"""

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional

from sqlalchemy import create_engine, Column, Integer, String, Boolean, Text, DateTime, JSON, ForeignKey, Index
from sqlalchemy.orm import declarative_base, sessionmaker, relationship, Session
from sqlalchemy.pool import StaticPool

from applyo.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


class CompanyProfile(Base):
    """Represents an enriched company."""
    __tablename__ = 'company_profiles'

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_name = Column(String(255), nullable=False)
    website = Column(String(2048))
    year_founded = Column(Integer)
    description = Column(Text)
    tech_stack = Column(Text)
    employee_count_min = Column(Integer)
    employee_count_max = Column(Integer)
    revenue = Column(String(255))
    funding = Column(String(255))
    headquarters = Column(String(255))
    industry = Column(String(255))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    employees = relationship('Employee', back_populates='company', cascade='all, delete-orphan')

    __table_args__ = (
        Index('idx_company_profiles_name', 'company_name'),
        Index('idx_company_profiles_website', 'website'),
    )


class Employee(Base):
    """Represents a person found at a company."""
    __tablename__ = 'employees'

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_name = Column(String(255), nullable=False)
    employee_title = Column(String(255))
    email = Column(String(255))
    emails = Column(JSON, default=list)
    company_id = Column(Integer, ForeignKey('company_profiles.id', ondelete='CASCADE'))
    created_at = Column(DateTime, default=datetime.utcnow)

    company = relationship('CompanyProfile', back_populates='employees')

    __table_args__ = (
        Index('idx_employees_company_id', 'company_id'),
        Index('idx_employees_name', 'employee_name'),
    )

    @property
    def all_emails(self) -> list:
        """Primary email first, then any other verified addresses."""
        result = [self.email] if self.email else []
        for email in self.emails or []:
            if email and email not in result:
                result.append(email)
        return result


class User(Base):
    """An application user (anonymous users included)."""
    __tablename__ = 'users'

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255))
    email = Column(String(255), unique=True)
    is_anonymous = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    sessions = relationship('AuthSession', back_populates='user', cascade='all, delete-orphan')
    templates = relationship('Template', back_populates='user', cascade='all, delete-orphan')


class AuthSession(Base):
    """A login session identified by an opaque bearer token."""
    __tablename__ = 'sessions'

    id = Column(String(36), primary_key=True, default=_uuid)
    token = Column(String(128), unique=True, nullable=False)
    user_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship('User', back_populates='sessions')

    __table_args__ = (
        Index('idx_sessions_user_id', 'user_id'),
    )


class Template(Base):
    """A user-owned outreach email template."""
    __tablename__ = 'templates'

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    name = Column(String(255), nullable=False)
    subject = Column(String(998), nullable=False)
    body = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship('User', back_populates='templates')

    __table_args__ = (
        Index('idx_templates_user_id', 'user_id'),
    )


class DatabaseManager:
    """Manages database connections and operations."""

    def __init__(self, database_url: Optional[str] = None):
        """
        Initialize database manager.

        Args:
            database_url: SQLAlchemy URL, defaults to settings.database_url
        """
        self.database_url = database_url or settings.database_url

        if self.database_url.startswith("sqlite"):
            engine_kwargs = {"connect_args": {"check_same_thread": False}}
            if ":memory:" in self.database_url or self.database_url == "sqlite://":
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs = {
                "pool_size": settings.db_pool_size,
                "max_overflow": settings.db_max_overflow,
                "pool_recycle": settings.db_pool_recycle,
                "pool_pre_ping": True,
            }

        self.engine = create_engine(self.database_url, echo=settings.db_echo, **engine_kwargs)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

    def init_db(self):
        """Initialize database schema."""
        try:
            Base.metadata.create_all(self.engine)
            logger.info("Database schema initialized")
        except Exception as e:
            logger.error(f"Error initializing database: {e}")
            raise

    def get_session(self) -> Session:
        """Get database session."""
        return self.SessionLocal()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Transactional scope: commit on success, roll back on error."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self):
        """Close database connections."""
        self.engine.dispose()


_db_manager: Optional[DatabaseManager] = None


def get_db_manager() -> DatabaseManager:
    """Get the process-wide database manager, creating it on first use."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


def set_db_manager(manager: Optional[DatabaseManager]) -> None:
    """Replace the process-wide database manager (used by tests and the CLI)."""
    global _db_manager
    _db_manager = manager


def get_session() -> Session:
    """Get database session."""
    return get_db_manager().get_session()


def init_database():
    """Initialize database."""
    get_db_manager().init_db()
