from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from backend.app.models.audit import AuditLog


def log_action(
    db: Session,
    *,
    actor: str | None,
    action: str,
    resource_type: str,
    resource_id: str,
    changes: dict[str, Any] | None = None,
    previous: dict[str, Any] | None = None,
) -> None:
    """Write a single row to the audit_logs table.

    It does NOT call db.commit(); the caller commits it as part of its own
    transaction, so the audit row and the change it records land together.
    """
    db.add(
        AuditLog(
            table_name=resource_type,
            record_id=resource_id,
            action=action,
            changed_by=actor,
            old_values=previous,
            new_values=changes,
        )
    )
