"""
Utility helpers for validating JWT access tokens.
"""
import jwt
from flask import current_app


def verify_jwt_token(token: str) -> dict:
    """Verify a JWT and return its payload; raises jwt exceptions on failure."""
    return jwt.decode(token, current_app.config['JWT_SECRET'], algorithms=[current_app.config['JWT_ALGORITHM']])
