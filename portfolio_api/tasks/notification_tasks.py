"""
Celery tasks for verification emails
"""
from portfolio_api.services.async_processor import celery_app, get_flask_app


@celery_app.task(name='tasks.send_verification_request_email')
def send_verification_request_email(verifier_email, token, item_title, requester_name, item_kind):
    """
    Email a verifier the review link for a new request

    Returns:
        bool: whether the provider accepted the message
    """
    from portfolio_api.services.notification_service import NotificationGateway

    app = get_flask_app()
    with app.app_context():
        return NotificationGateway().send_verification_requested(
            verifier_email, token, item_title, requester_name, item_kind
        )


@celery_app.task(name='tasks.send_decision_email')
def send_decision_email(owner_email, item_title, item_kind, status, comment, actor_name):
    """
    Email an item owner the outcome of their verification request

    Returns:
        bool: whether the provider accepted the message
    """
    from portfolio_api.services.notification_service import NotificationGateway

    app = get_flask_app()
    with app.app_context():
        return NotificationGateway().send_decision(
            owner_email, item_title, item_kind, status, comment, actor_name
        )
