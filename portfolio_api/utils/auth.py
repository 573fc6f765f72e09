"""
Bearer token validation for Flask API

Tokens are issued by the identity layer; this API only validates them and
loads the matching user for role and institute checks.
"""
from functools import wraps
import jwt
from flask import request, jsonify, current_app, g
from portfolio_api.models.user import User, ROLE_VERIFIER
from portfolio_api.utils.jwt_utils import verify_jwt_token
from portfolio_api.utils.common import validate_uuid


class AuthError(Exception):
    """Authentication error exception"""
    def __init__(self, message, status_code=401):
        self.message = message
        self.status_code = status_code


def get_bearer_token():
    """
    Extract access token from request
    Supports:
    - Authorization: Bearer <token>
    - X-Access-Token: <token>
    """
    auth_header = request.headers.get('Authorization')
    if auth_header:
        try:
            scheme, token = auth_header.split(' ', 1)
            if scheme.lower() == 'bearer':
                return token.strip()
        except ValueError:
            pass

    token_header = request.headers.get('X-Access-Token')
    if token_header:
        return token_header

    raise AuthError('No access token provided')


def resolve_user(token):
    """
    Validate an access token and load its user

    Args:
        token: The encoded JWT
    """
    try:
        payload = verify_jwt_token(token)
    except jwt.ExpiredSignatureError:
        raise AuthError('Token expired')
    except jwt.InvalidTokenError:
        raise AuthError('Invalid token')

    user_id = payload.get('sub')
    if not user_id or not validate_uuid(user_id):
        raise AuthError('Invalid token data')

    user = User.find_by_id(user_id)
    if not user:
        raise AuthError('User not found')
    if not user.is_active:
        raise AuthError('User account is inactive')

    return user


def require_auth(f):
    """Decorator to require an authenticated user for routes"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            user = resolve_user(get_bearer_token())

            # Store user information in Flask g object
            g.current_user_id = str(user.id)
            g.current_user_email = user.email
            g.current_user_role = user.role
            g.current_user_institute = user.institute
            g.current_user = user

            return f(*args, **kwargs)

        except AuthError as e:
            return jsonify({
                'error': 'Authentication failed',
                'message': e.message
            }), e.status_code
        except Exception as e:
            current_app.logger.error(f"Authentication error: {str(e)}")
            return jsonify({
                'error': 'Authentication failed',
                'message': 'Internal authentication error'
            }), 500

    return decorated_function


def verifier_required(f):
    """Decorator to require verifier role for routes"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if getattr(g, 'current_user_role', None) != ROLE_VERIFIER:
            return jsonify({
                'error': 'Access denied',
                'message': 'Verifier role required'
            }), 403

        return f(*args, **kwargs)

    return decorated_function


def get_current_user():
    """Get current authenticated user from Flask g object"""
    return getattr(g, 'current_user', None)
