"""
User model (identity records consumed by the verification workflow)
"""
from sqlalchemy import Column, String, Boolean
from .base import BaseModel

ROLE_STUDENT = 'STUDENT'
ROLE_VERIFIER = 'VERIFIER'


class User(BaseModel):
    """Portfolio user: a student or an institute verifier"""
    __tablename__ = 'users'

    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    role = Column(String(20), default=ROLE_STUDENT, nullable=False)
    institute = Column(String(200), index=True)
    is_active = Column(Boolean, default=True)

    @property
    def is_verifier(self):
        return self.role == ROLE_VERIFIER

    def public_identity(self):
        """Identity fields safe to show to the other party of a verification"""
        return {
            'name': self.name,
            'email': self.email,
            'institute': self.institute
        }
