"""
Portfolio item routes - experiences, education and projects

All three collections share one handler set, bound per item kind.
"""
from flask import Blueprint, request, jsonify, current_app, g
from portfolio_api import db
from portfolio_api.models.verification import ITEM_EXPERIENCE, ITEM_EDUCATION, ITEM_PROJECT
from portfolio_api.services.item_store import ItemStore
from portfolio_api.services.verification_service import get_verification_service
from portfolio_api.utils.auth import require_auth
from portfolio_api.utils.errors import VerificationError, NotFound
from portfolio_api.utils.routes_helpers import handle_domain_error, handle_db_error


def create_item_blueprint(name, item_kind):
    """Build the CRUD blueprint for one item kind"""
    bp = Blueprint(name, __name__)
    label = item_kind.lower()

    def _repository():
        return ItemStore.for_session(db.session).repository(item_kind)

    def _owned_or_404(repo, item_id):
        item = repo.find_owned(item_id, g.current_user_id)
        if item is None:
            raise NotFound(f"{label} not found", reason='item_missing')
        return item

    @bp.route('/', methods=['POST'])
    @require_auth
    def create_item():
        try:
            item = _repository().create(g.current_user_id, request.get_json(silent=True))
            db.session.commit()
            current_app.logger.info(f"Created {label} {item.id} for user {g.current_user_id}")
            return jsonify({'message': f"{label.capitalize()} created", label: item.to_dict()}), 201

        except VerificationError as e:
            return handle_domain_error(e)
        except Exception as e:
            return handle_db_error(e, f"Failed to create {label}")

    @bp.route('/', methods=['GET'])
    @require_auth
    def list_items():
        try:
            items = _repository().list_owned(g.current_user_id)
            return jsonify({'items': [item.to_dict() for item in items], 'count': len(items)})

        except VerificationError as e:
            return handle_domain_error(e)
        except Exception as e:
            return handle_db_error(e, f"Failed to fetch {label} list")

    @bp.route('/<item_id>', methods=['GET'])
    @require_auth
    def get_item(item_id):
        try:
            item = _owned_or_404(_repository(), item_id)
            return jsonify({label: item.to_dict()})

        except VerificationError as e:
            return handle_domain_error(e)
        except Exception as e:
            return handle_db_error(e, f"Failed to fetch {label}")

    @bp.route('/<item_id>', methods=['DELETE'])
    @require_auth
    def delete_item(item_id):
        """Delete an item and expire its live verification request"""
        try:
            repo = _repository()
            item = _owned_or_404(repo, item_id)
            released = get_verification_service().release_pending_for_item(item_kind, item.id)
            repo.delete(item)
            db.session.commit()

            current_app.logger.info(f"Deleted {label} {item_id} for user {g.current_user_id}")
            return jsonify({
                'message': f"{label.capitalize()} deleted",
                'released_verifications': released
            })

        except VerificationError as e:
            return handle_domain_error(e)
        except Exception as e:
            return handle_db_error(e, f"Failed to delete {label}")

    return bp


experiences_bp = create_item_blueprint('experiences', ITEM_EXPERIENCE)
education_bp = create_item_blueprint('education', ITEM_EDUCATION)
projects_bp = create_item_blueprint('projects', ITEM_PROJECT)
