"""
Audit logging service for tracking admin actions.
"""
from marketplace.models.audit_log import AuditLog, AuditAction
from flask import request, has_request_context
from datetime import datetime, timezone
import json
import logging

logger = logging.getLogger(__name__)


def log_action(
    session,
    action: AuditAction,
    actor_id: int = None,
    resource_type: str = None,
    resource_id: int = None,
    details: dict = None
):
    """
    Add an audit entry to the session.

    Args:
        session: Database session
        action: AuditAction enum value
        actor_id: User performing the action (None for CLI actions)
        resource_type: Type of resource affected (e.g., 'user', 'order')
        resource_id: ID of the affected resource
        details: Dict with additional details (will be JSON encoded)
    """
    ip_address = None
    user_agent = None
    if has_request_context():
        ip_address = request.remote_addr
        user_agent = request.headers.get('User-Agent', '')[:255]

    details_json = None
    if details:
        try:
            details_json = json.dumps(details, default=str)
        except (TypeError, ValueError) as e:
            logger.warning(f"Failed to serialize audit details: {e}")
            details_json = str(details)

    audit_entry = AuditLog(
        actor_id=actor_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        details=details_json,
        ip_address=ip_address,
        user_agent=user_agent,
        created_at=datetime.now(timezone.utc)
    )
    session.add(audit_entry)
    # Note: Caller is responsible for committing the session

    logger.info(f"Audit log created: {action.value} by user {actor_id} on {resource_type} {resource_id}")
    return audit_entry
