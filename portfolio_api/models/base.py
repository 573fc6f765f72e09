"""
Base model with common functionality
"""
import uuid
from datetime import date, datetime
from sqlalchemy import Column, DateTime, Boolean, String, Text, Uuid, func
from portfolio_api import db


class BaseModel(db.Model):
    """Base model class with common fields and methods"""
    __abstract__ = True

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Columns never rendered by to_dict
    _private_fields = ()

    def to_dict(self):
        """Convert model instance to dictionary"""
        result = {}
        for column in self.__table__.columns:
            if column.key in self._private_fields:
                continue
            # Use column.key for attribute access to support differing
            # Python attribute names vs database column names
            value = getattr(self, column.key)
            if isinstance(value, (datetime, date)):
                result[column.name] = value.isoformat()
            elif isinstance(value, uuid.UUID):
                result[column.name] = str(value)
            else:
                result[column.name] = value
        return result

    @classmethod
    def find_by_id(cls, id):
        """Find a record by ID"""
        if not isinstance(id, uuid.UUID):
            try:
                id = uuid.UUID(str(id))
            except ValueError:
                return None
        return cls.query.filter_by(id=id).first()


class VerifiableMixin:
    """Columns written by the verification workflow on a portfolio item"""

    verified = Column(Boolean, default=False, nullable=False, index=True)
    verified_at = Column(DateTime(timezone=True))
    verified_by = Column(String(200))
    verifier_comment = Column(Text)

    # Set by each item model: attribute holding the display title
    title_attribute = 'title'

    @property
    def display_title(self):
        return getattr(self, self.title_attribute, None) or 'Item'

    def snapshot(self):
        """Fields a verifier needs to make a decision"""
        return {
            'title': self.display_title,
            'description': getattr(self, 'description', None),
            'start_date': _isoformat(getattr(self, 'start_date', None)),
            'end_date': _isoformat(getattr(self, 'end_date', None)),
            'passing_year': getattr(self, 'passing_year', None),
            'attachments': list(getattr(self, 'attachments', None) or []),
        }


def _isoformat(value):
    return value.isoformat() if value is not None else None
