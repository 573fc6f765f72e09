"""
Verification Routes - request, token review, approve, reject, history
Uses services as controllers: routes -> services -> models

Token endpoints are unauthenticated; the token is the credential.
"""
from flask import Blueprint, request, jsonify, g
from portfolio_api.services.verification_service import get_verification_service
from portfolio_api.utils.auth import require_auth
from portfolio_api.utils.errors import VerificationError
from portfolio_api.utils.common import as_utc
from portfolio_api.utils.routes_helpers import handle_domain_error, handle_db_error

verification_bp = Blueprint('verification', __name__)


def _json_body():
    return request.get_json(silent=True) or {}


# === Owner operations ===

@verification_bp.route('/request/<item_kind>/<item_id>', methods=['POST'])
@require_auth
def request_verification(item_kind, item_id):
    """Ask a verifier from the owner's institute to review an item"""
    try:
        data = _json_body()
        service = get_verification_service()
        record = service.request_verification(
            g.current_user_id, item_kind, item_id, data.get('verifier_email')
        )

        return jsonify({
            'message': 'Verification request sent successfully',
            'verification': {
                'id': str(record.id),
                'item_type': record.item_kind,
                'item_id': str(record.item_id),
                'verifier_email': record.verifier_email,
                'status': record.status,
                'expires_at': as_utc(record.expires_at).isoformat()
            }
        }), 201

    except VerificationError as e:
        return handle_domain_error(e)
    except Exception as e:
        return handle_db_error(e, 'Failed to create verification request')


@verification_bp.route('/history/<item_kind>/<item_id>', methods=['GET'])
@require_auth
def verification_history(item_kind, item_id):
    """Every request made for one of the owner's items, newest first"""
    try:
        history = get_verification_service().history(g.current_user_id, item_kind, item_id)
        return jsonify({'verifications': history, 'count': len(history)})

    except VerificationError as e:
        return handle_domain_error(e)
    except Exception as e:
        return handle_db_error(e, 'Failed to fetch verification history')


@verification_bp.route('/requests/<request_id>/timeline', methods=['GET'])
@require_auth
def verification_timeline(request_id):
    """Ordered log entries of one of the owner's requests"""
    try:
        return jsonify(get_verification_service().timeline(g.current_user_id, request_id))

    except VerificationError as e:
        return handle_domain_error(e)
    except Exception as e:
        return handle_db_error(e, 'Failed to fetch verification timeline')


# === Token holder operations ===

@verification_bp.route('/<token>', methods=['GET'])
def get_verification(token):
    """Details a verifier needs to decide; every read is logged"""
    try:
        view = get_verification_service().get_by_token(
            token, user_agent=request.headers.get('User-Agent')
        )
        return jsonify({'verification': view})

    except VerificationError as e:
        return handle_domain_error(e)
    except Exception as e:
        return handle_db_error(e, 'Failed to fetch verification')


@verification_bp.route('/<token>/approve', methods=['POST'])
def approve_verification(token):
    """Approve the item behind a verification token"""
    try:
        data = _json_body()
        result = get_verification_service().approve(
            token, data.get('actor_email'), data.get('comment')
        )
        return jsonify({'message': 'Item approved successfully', 'verification': result})

    except VerificationError as e:
        return handle_domain_error(e)
    except Exception as e:
        return handle_db_error(e, 'Failed to approve verification')


@verification_bp.route('/<token>/reject', methods=['POST'])
def reject_verification(token):
    """Reject the item behind a verification token"""
    try:
        data = _json_body()
        result = get_verification_service().reject(
            token, data.get('actor_email'), data.get('comment')
        )
        return jsonify({'message': 'Item rejected', 'verification': result})

    except VerificationError as e:
        return handle_domain_error(e)
    except Exception as e:
        return handle_db_error(e, 'Failed to reject verification')
