"""
Verification request model for tokenized item verification links
"""
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, Text, Uuid, Index
from .base import BaseModel

ITEM_EXPERIENCE = 'EXPERIENCE'
ITEM_EDUCATION = 'EDUCATION'
ITEM_PROJECT = 'PROJECT'
ITEM_KINDS = (ITEM_EXPERIENCE, ITEM_EDUCATION, ITEM_PROJECT)

STATUS_PENDING = 'PENDING'
STATUS_APPROVED = 'APPROVED'
STATUS_REJECTED = 'REJECTED'
STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED)


def pending_slot(item_kind, item_id):
    """Key held by the one live pending request of an item"""
    return f"{item_kind}:{item_id}"


class VerificationRequest(BaseModel):
    """A request for a verifier to approve or reject one portfolio item"""
    __tablename__ = 'verification_requests'

    item_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    item_kind = Column(String(20), nullable=False, index=True)
    verifier_email = Column(String(255), nullable=False, index=True)
    token = Column(String(128), unique=True, nullable=False, index=True)
    status = Column(String(20), default=STATUS_PENDING, nullable=False, index=True)
    comment = Column(Text)
    acted_by = Column(String(255))
    acted_at = Column(DateTime(timezone=True))
    expires_at = Column(DateTime(timezone=True), nullable=False)
    # Non-null only while this request is the item's live pending request
    pending_key = Column(String(100), unique=True)

    __table_args__ = (
        Index('ix_verification_requests_item', 'item_id', 'item_kind'),
    )

    _private_fields = ('token', 'pending_key')

    def is_expired(self, now=None):
        """Check if the verification link is past its expiry"""
        now = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at <= now

    def to_dict(self, now=None):
        """Enhanced to_dict with the computed expiry flag"""
        result = super().to_dict()
        result['expired'] = self.status == STATUS_PENDING and self.is_expired(now)
        return result
