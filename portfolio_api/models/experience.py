"""
Experience model
"""
from sqlalchemy import Column, String, Text, Date, Boolean, ForeignKey, JSON, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from .base import BaseModel, VerifiableMixin


class Experience(VerifiableMixin, BaseModel):
    """Work, internship or activity experience on a student's portfolio"""
    __tablename__ = 'experiences'

    user_id = Column(Uuid(as_uuid=True), ForeignKey('users.id'), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    role = Column(String(100), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date)
    tags = Column(JSON().with_variant(JSONB, 'postgresql'), default=list)
    attachments = Column(JSON().with_variant(JSONB, 'postgresql'), default=list)
    is_public = Column(Boolean, default=True)

    owner = relationship("User")

    title_attribute = 'title'
