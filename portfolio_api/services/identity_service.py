"""
Identity lookup over the users table
"""
from portfolio_api.models.user import User
from portfolio_api.utils.common import normalize_email, coerce_uuid


class IdentityLookup:
    """Resolves users by id or email for role and institute checks"""

    def __init__(self, db_session):
        self.db = db_session

    def find_by_email(self, email):
        email = normalize_email(email)
        if not email:
            return None
        return self.db.query(User).filter(User.email == email).first()

    def find_by_id(self, user_id):
        if user_id is None:
            return None
        try:
            user_id = coerce_uuid(user_id)
        except ValueError:
            return None
        return self.db.get(User, user_id)
