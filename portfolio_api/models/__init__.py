"""
SQLAlchemy models for the portfolio verification system
"""
from .base import BaseModel, VerifiableMixin
from .user import User
from .experience import Experience
from .education import Education
from .project import Project
from .verification import VerificationRequest
from .verification_log import VerificationLog

__all__ = [
    'BaseModel',
    'VerifiableMixin',
    'User',
    'Experience',
    'Education',
    'Project',
    'VerificationRequest',
    'VerificationLog'
]
