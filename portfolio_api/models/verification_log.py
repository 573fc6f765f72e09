"""
Verification log model
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, JSON, Uuid, Index, func
from sqlalchemy.dialects.postgresql import JSONB
from .base import BaseModel

ACTION_CREATED = 'CREATED'
ACTION_VIEWED = 'VIEWED'
ACTION_APPROVED = 'APPROVED'
ACTION_REJECTED = 'REJECTED'
ACTIONS = (ACTION_CREATED, ACTION_VIEWED, ACTION_APPROVED, ACTION_REJECTED)


class VerificationLog(BaseModel):
    """Append-only audit trail of actions taken on a verification request"""
    __tablename__ = 'verification_logs'

    verification_id = Column(
        Uuid(as_uuid=True), ForeignKey('verification_requests.id'), nullable=False, index=True
    )
    action = Column(String(20), nullable=False, index=True)
    actor_email = Column(String(255), nullable=False, index=True)
    context_metadata = Column('metadata', JSON().with_variant(JSONB, 'postgresql'), default=dict)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index('ix_verification_logs_verification_timestamp', 'verification_id', 'timestamp'),
    )
