"""Audit logging service for admin changes to pins.

This module records every pin create, update and delete made through the
admin API with before/after values.
"""

import json
from typing import Any, Optional, Dict, List

from database import AuditLog, SessionLocal


class AuditLogger:
    """Service for logging audit events."""

    @staticmethod
    def _write(
        user: str,
        pin_id: Any,
        action: str,
        before_value: Optional[Dict[str, Any]],
        after_value: Optional[Dict[str, Any]],
        description: str,
    ) -> None:
        db = SessionLocal()
        try:
            log_entry = AuditLog(
                user=user,
                pin_id=str(pin_id) if pin_id is not None else None,
                action=action,
                before_value=json.dumps(before_value) if before_value is not None else None,
                after_value=json.dumps(after_value) if after_value is not None else None,
                description=description,
            )
            db.add(log_entry)
            db.commit()
        finally:
            db.close()

    @staticmethod
    def log_create(user: str, pin: Dict[str, Any]) -> None:
        """Log pin creation.

        Args:
            user: Email of the admin who created the pin.
            pin: The created pin.
        """
        AuditLogger._write(
            user, pin.get("id"), "create", None, pin,
            f"Created pin {pin.get('id')} ({pin.get('title')})",
        )

    @staticmethod
    def log_update(
        user: str,
        before_value: Optional[Dict[str, Any]],
        after_value: Dict[str, Any],
    ) -> None:
        """Log a pin update.

        Args:
            user: Email of the admin who made the update.
            before_value: The pin before the update, if it was cached.
            after_value: The updated pin.
        """
        changed = sorted(
            key for key, value in after_value.items()
            if before_value is None or before_value.get(key) != value
        )
        AuditLogger._write(
            user, after_value.get("id"), "update", before_value, after_value,
            f"Updated pin {after_value.get('id')} fields {', '.join(changed) or 'none'}",
        )

    @staticmethod
    def log_delete(user: str, pin_id: Any, before_value: Optional[Dict[str, Any]]) -> None:
        """Log a pin deletion.

        Args:
            user: Email of the admin who deleted the pin.
            pin_id: ID of the deleted pin.
            before_value: The pin data before deletion, if known.
        """
        AuditLogger._write(user, pin_id, "delete", before_value, None, f"Deleted pin {pin_id}")

    @staticmethod
    def get_logs(
        pin_id: Optional[str] = None,
        user: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """Retrieve audit logs with optional filtering.

        Args:
            pin_id: Filter by pin ID.
            user: Filter by user.
            limit: Maximum number of logs to return.
            offset: Number of logs to skip.

        Returns:
            List of audit log entries as dictionaries, newest first.
        """
        db = SessionLocal()
        try:
            query = db.query(AuditLog)

            if pin_id:
                query = query.filter(AuditLog.pin_id == pin_id)
            if user:
                query = query.filter(AuditLog.user == user)

            query = query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
            query = query.offset(offset).limit(limit)

            return [log.to_dict() for log in query.all()]
        finally:
            db.close()
