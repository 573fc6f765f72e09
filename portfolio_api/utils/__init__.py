"""
Utility modules for reusable functionality
"""
from .auth import (
    require_auth,
    verifier_required,
    get_current_user
)
from .common import (
    utcnow,
    normalize_email,
    validate_uuid,
    coerce_uuid
)

__all__ = [
    # Auth utilities
    'require_auth',
    'verifier_required',
    'get_current_user',

    # Common helpers
    'utcnow',
    'normalize_email',
    'validate_uuid',
    'coerce_uuid',
]
