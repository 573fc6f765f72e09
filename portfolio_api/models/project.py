"""
Project model
"""
from sqlalchemy import Column, String, Text, Date, Boolean, ForeignKey, JSON, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from .base import BaseModel, VerifiableMixin

PROJECT_TYPES = (
    'PERSONAL', 'ACADEMIC', 'PROFESSIONAL', 'OPEN_SOURCE', 'HACKATHON',
    'COMPETITION', 'INTERNSHIP', 'FREELANCE', 'OTHER'
)


class Project(VerifiableMixin, BaseModel):
    """Academic, personal or professional project"""
    __tablename__ = 'projects'

    user_id = Column(Uuid(as_uuid=True), ForeignKey('users.id'), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(50), default='OTHER', nullable=False)
    project_type = Column(String(30), default='PERSONAL', nullable=False)
    github_url = Column(String(500))
    live_url = Column(String(500))
    skills_used = Column(JSON().with_variant(JSONB, 'postgresql'), default=list)
    start_date = Column(Date)
    end_date = Column(Date)
    supervisor = Column(String(100))
    attachments = Column(JSON().with_variant(JSONB, 'postgresql'), default=list)
    is_public = Column(Boolean, default=True)

    owner = relationship("User")

    title_attribute = 'title'
