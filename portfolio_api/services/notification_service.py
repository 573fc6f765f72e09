"""
Email notifications for verification requests and decisions via Resend
"""
import requests
from flask import current_app, render_template
from portfolio_api.services.metrics_service import MetricsService
from portfolio_api.utils.common import mask_token


def _kind_label(item_kind):
    return (item_kind or 'item').lower().replace('_', ' ')


class NotificationGateway:
    """Renders and sends verification emails

    Every public method returns a success flag and never raises.
    """

    def __init__(self, config=None):
        self.config = config or current_app.config

    @property
    def frontend_url(self):
        return self.config['FRONTEND_URL'].rstrip('/')

    def verification_link(self, token):
        return f"{self.frontend_url}/verify/{token}"

    def send_verification_requested(self, verifier_email, token, item_title, requester_name, item_kind) -> bool:
        """Ask a verifier to review an item"""
        try:
            context = {
                'verification_url': self.verification_link(token),
                'dashboard_url': f"{self.frontend_url}/verifier/dashboard",
                'item_title': item_title,
                'item_kind': _kind_label(item_kind),
                'requester_name': requester_name,
                'ttl_hours': self.config['VERIFICATION_TTL_HOURS'],
            }
            sent = self._send(
                to=verifier_email,
                subject=f"Verification Request: {item_title}",
                html=render_template('email/verification_request.html', **context),
                text=render_template('email/verification_request.txt', **context),
            )
            if sent:
                current_app.logger.info(
                    f"Verification email sent to {verifier_email} (token {mask_token(token)})"
                )
        except Exception as e:
            current_app.logger.error(f"Verification email to {verifier_email} failed: {e}")
            sent = False

        MetricsService.track_notification('request', sent)
        return sent

    def send_decision(self, owner_email, item_title, item_kind, status, comment, actor_name) -> bool:
        """Tell an item owner how their request was decided"""
        try:
            approved = status == 'APPROVED'
            context = {
                'item_title': item_title,
                'item_kind': _kind_label(item_kind),
                'status_text': 'Approved' if approved else 'Rejected',
                'status_color': '#28a745' if approved else '#dc3545',
                'comment': comment,
                'actor_name': actor_name,
                'portfolio_url': f"{self.frontend_url}/portfolio",
            }
            sent = self._send(
                to=owner_email,
                subject=f"Verification {context['status_text']}: {item_title}",
                html=render_template('email/verification_decision.html', **context),
                text=render_template('email/verification_decision.txt', **context),
            )
            if sent:
                current_app.logger.info(f"Decision email ({status}) sent to {owner_email}")
        except Exception as e:
            current_app.logger.error(f"Decision email to {owner_email} failed: {e}")
            sent = False

        MetricsService.track_notification('decision', sent)
        return sent

    def _send(self, to, subject, html, text) -> bool:
        api_key = self.config.get('RESEND_API_KEY')
        if not api_key:
            # Development fallback: no provider configured
            current_app.logger.info(
                f"Email would be sent (no RESEND_API_KEY configured) | To: {to} | Subject: {subject}"
            )
            return True

        payload = {
            'from': self.config['FROM_EMAIL'],
            'to': [to],
            'subject': subject,
            'html': html,
            'text': text,
        }
        try:
            response = requests.post(
                self.config['RESEND_API_URL'],
                json=payload,
                headers={'Authorization': f"Bearer {api_key}"},
                timeout=self.config['EMAIL_TIMEOUT_SECONDS'],
            )
            response.raise_for_status()
        except requests.RequestException as e:
            current_app.logger.error(f"Resend API error sending to {to}: {e}")
            return False

        message_id = response.json().get('id') if response.content else None
        current_app.logger.debug(f"Resend accepted message {message_id} for {to}")
        return True


class QueuedNotifier:
    """Hands notifications to Celery so callers never wait on email delivery

    Return values only say whether the task was queued.
    """

    def send_verification_requested(self, verifier_email, token, item_title, requester_name, item_kind) -> bool:
        from portfolio_api.services.async_processor import dispatch
        from portfolio_api.tasks.notification_tasks import send_verification_request_email
        return dispatch(
            send_verification_request_email,
            verifier_email, token, item_title, requester_name, item_kind
        )

    def send_decision(self, owner_email, item_title, item_kind, status, comment, actor_name) -> bool:
        from portfolio_api.services.async_processor import dispatch
        from portfolio_api.tasks.notification_tasks import send_decision_email
        return dispatch(
            send_decision_email,
            owner_email, item_title, item_kind, status, comment, actor_name
        )
