"""
Education model
"""
from sqlalchemy import Column, String, Text, Integer, Boolean, Float, ForeignKey, JSON, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from .base import BaseModel, VerifiableMixin

COURSE_TYPES = ('10TH', '12TH', 'DIPLOMA', 'BACHELORS', 'MASTERS', 'PHD', 'CERTIFICATE', 'OTHER')


class Education(VerifiableMixin, BaseModel):
    """Education record (school, degree or certificate)"""
    __tablename__ = 'educations'

    user_id = Column(Uuid(as_uuid=True), ForeignKey('users.id'), nullable=False, index=True)
    course_type = Column(String(20), nullable=False)
    course_name = Column(String(200), nullable=False)
    board_or_university = Column(String(200), nullable=False)
    school_or_college = Column(String(200), nullable=False)
    passing_year = Column(Integer, nullable=False)
    is_expected = Column(Boolean, default=False)
    grade = Column(String(50))
    percentage = Column(Float)
    cgpa = Column(Float)
    description = Column(Text)
    attachments = Column(JSON().with_variant(JSONB, 'postgresql'), default=list)

    owner = relationship("User")

    title_attribute = 'course_name'
