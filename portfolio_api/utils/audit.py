"""
Audit logging utilities for the verification trail
"""
from typing import Optional, Dict, Any
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from portfolio_api.models.verification_log import VerificationLog, ACTIONS
from portfolio_api.utils.common import utcnow


def record_verification_event(
    session,
    verification_id: Any,
    action: str,
    actor_email: str,
    metadata: Optional[Dict] = None,
    timestamp=None
) -> Optional[VerificationLog]:
    """
    Append an entry to the verification log.

    Written in its own commit after the state change it describes, so a
    failing log write never undoes a transition.

    Args:
        session: SQLAlchemy session
        verification_id: ID of the verification request
        action: One of CREATED, VIEWED, APPROVED, REJECTED
        actor_email: Email of whoever performed the action
        metadata: Optional free-form context (comment, user agent, ...)
        timestamp: When the action happened (defaults to now)

    Returns:
        The stored entry, or None when the write failed.

    Example:
        record_verification_event(
            db.session,
            verification.id,
            'VIEWED',
            verification.verifier_email,
            metadata={'user_agent': request.headers.get('User-Agent')}
        )
    """
    if action not in ACTIONS:
        raise ValueError(f"Unknown verification log action: {action}")

    try:
        entry = VerificationLog(
            verification_id=verification_id,
            action=action,
            actor_email=(actor_email or 'system').strip().lower(),
            context_metadata=metadata or {},
            timestamp=timestamp or utcnow()
        )
        session.add(entry)
        session.commit()
        return entry

    except SQLAlchemyError as e:
        # Log error but don't fail the main operation
        session.rollback()
        current_app.logger.error(
            f"Failed to write verification log ({action} on {verification_id}); "
            f"audit trail incomplete: {e}"
        )
        return None


def list_verification_events(session, verification_id):
    """Log entries for one request, oldest first"""
    return (
        session.query(VerificationLog)
        .filter(VerificationLog.verification_id == verification_id)
        .order_by(VerificationLog.timestamp.asc())
        .all()
    )
