"""
Shared utility functions for route handlers
"""
from flask import request, jsonify, current_app
from portfolio_api import db


def get_pagination_params():
    """Extract and validate pagination parameters from request"""
    page = max(request.args.get('page', 1, type=int), 1)
    per_page = min(max(request.args.get('per_page', 10, type=int), 1), 100)
    return page, per_page


def build_pagination_response(paginated_query):
    """Build standard pagination response object"""
    return {
        'page': paginated_query.page,
        'per_page': paginated_query.per_page,
        'total': paginated_query.total,
        'pages': paginated_query.pages,
        'has_next': paginated_query.has_next,
        'has_prev': paginated_query.has_prev
    }


def handle_domain_error(error):
    """Map a VerificationError to its JSON response"""
    db.session.rollback()
    return jsonify({'error': error.message}), error.status_code


def handle_db_error(error, message, status_code=500):
    """Handle database errors with consistent logging and rollback"""
    db.session.rollback()
    current_app.logger.error(f"{message}: {str(error)}")
    return jsonify({'error': message}), status_code
