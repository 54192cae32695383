"""Database setup and models for the pin audit trail.

This module provides the database connection, models, and utilities
for recording admin changes to pins using SQLAlchemy.
"""

from datetime import datetime

from sqlalchemy import create_engine, Column, Integer, String, Text, DateTime
from sqlalchemy.orm import declarative_base, sessionmaker

from logic.config import DATABASE_URL

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


class AuditLog(Base):
    """Audit log model for tracking admin changes to pins.

    Attributes:
        id: Primary key auto-incrementing ID.
        timestamp: When the change occurred.
        user: Email or identifier of the admin who made the change.
        pin_id: ID of the pin that was changed.
        action: Type of action (create, update, delete).
        before_value: Pin before the change (JSON string).
        after_value: Pin after the change (JSON string).
        description: Human-readable description of the change.
    """

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    user = Column(String(255), nullable=False, index=True)
    pin_id = Column(String(100), nullable=True, index=True)
    action = Column(String(50), nullable=False)
    before_value = Column(Text, nullable=True)
    after_value = Column(Text, nullable=True)
    description = Column(Text, nullable=True)

    def to_dict(self):
        """Convert audit log entry to dictionary.

        Returns:
            Dictionary representation of the audit log entry.
        """
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "user": self.user,
            "pin_id": self.pin_id,
            "action": self.action,
            "before_value": self.before_value,
            "after_value": self.after_value,
            "description": self.description,
        }


def init_db():
    """Initialize the database by creating all tables."""
    Base.metadata.create_all(bind=engine)
