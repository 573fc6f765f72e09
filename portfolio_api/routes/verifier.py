"""
Verifier dashboard routes - requests addressed to the signed-in verifier
"""
from flask import Blueprint, request, jsonify, current_app, g
from portfolio_api import db
from portfolio_api.models.verification import STATUS_APPROVED, STATUS_REJECTED
from portfolio_api.services.verification_service import get_verification_service
from portfolio_api.utils.auth import require_auth, verifier_required, get_current_user
from portfolio_api.utils.errors import VerificationError
from portfolio_api.utils.routes_helpers import (
    get_pagination_params, build_pagination_response, handle_domain_error, handle_db_error
)

verifier_bp = Blueprint('verifier', __name__)


@verifier_bp.route('/requests', methods=['GET'])
@require_auth
@verifier_required
def list_requests():
    """
    Requests addressed to the current verifier

    Query params:
        status: PENDING (default, live only), APPROVED, REJECTED or ALL
        item_type: EXPERIENCE, EDUCATION or PROJECT
        search: substring of the student's name or the item title
        page, per_page: pagination
    """
    try:
        page, per_page = get_pagination_params()
        service = get_verification_service()
        stmt = service.verifier_queue(
            g.current_user_email,
            status=request.args.get('status'),
            item_kind=request.args.get('item_type'),
            search=request.args.get('search')
        )
        paginated = db.paginate(stmt, page=page, per_page=per_page, error_out=False)

        now = service.clock()
        requests = [service.describe(record, now=now) for record in paginated.items]

        current_app.logger.info(
            f"Verifier {g.current_user_email} listed {len(requests)} request(s) "
            f"(page {page}, status {request.args.get('status', 'PENDING')})"
        )

        return jsonify({
            'requests': requests,
            'pagination': build_pagination_response(paginated)
        })

    except VerificationError as e:
        return handle_domain_error(e)
    except Exception as e:
        return handle_db_error(e, 'Failed to fetch verification requests')


def _decide(request_id, status):
    data = request.get_json(silent=True) or {}
    return get_verification_service().decide_as_verifier(
        request_id, get_current_user(), status, data.get('comment')
    )


@verifier_bp.route('/requests/<request_id>/approve', methods=['POST'])
@require_auth
@verifier_required
def approve_request(request_id):
    """Approve a request from the dashboard"""
    try:
        result = _decide(request_id, STATUS_APPROVED)
        return jsonify({'message': 'Item approved successfully', 'verification': result})

    except VerificationError as e:
        return handle_domain_error(e)
    except Exception as e:
        return handle_db_error(e, 'Failed to approve verification request')


@verifier_bp.route('/requests/<request_id>/reject', methods=['POST'])
@require_auth
@verifier_required
def reject_request(request_id):
    """Reject a request from the dashboard"""
    try:
        result = _decide(request_id, STATUS_REJECTED)
        return jsonify({'message': 'Item rejected', 'verification': result})

    except VerificationError as e:
        return handle_domain_error(e)
    except Exception as e:
        return handle_db_error(e, 'Failed to reject verification request')
