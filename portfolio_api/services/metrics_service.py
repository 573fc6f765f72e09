"""
Prometheus metrics: HTTP request hooks and verification workflow counters
"""
import time
from flask import request, g
from prometheus_client import Counter, Histogram, Gauge, Info, generate_latest
from prometheus_client.core import REGISTRY

# Initialize metrics
REQUEST_COUNT = Counter(
    'portfolio_http_requests_total',
    'Total number of HTTP requests',
    ['method', 'endpoint', 'status_code']
)

REQUEST_DURATION = Histogram(
    'portfolio_http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

REQUEST_EXCEPTIONS = Counter(
    'portfolio_http_request_exceptions_total',
    'Total number of HTTP request exceptions',
    ['method', 'endpoint', 'exception']
)

ACTIVE_REQUESTS = Gauge(
    'portfolio_http_requests_active',
    'Number of active HTTP requests'
)

# Business metrics
VERIFICATION_REQUESTS_CREATED = Counter(
    'verification_requests_created_total',
    'Verification requests created',
    ['item_kind']
)

VERIFICATION_DECISIONS = Counter(
    'verification_decisions_total',
    'Verification decisions recorded',
    ['status', 'channel']
)

VERIFICATION_DECISIONS_REFUSED = Counter(
    'verification_decisions_refused_total',
    'Decision attempts refused, by internal reason',
    ['reason']
)

NOTIFICATIONS_SENT = Counter(
    'verification_notifications_total',
    'Verification notification outcomes',
    ['kind', 'result']
)

# Application info
APP_INFO = Info(
    'portfolio_api',
    'Portfolio verification API build information'
)


class MetricsService:
    """Service for managing Prometheus metrics"""

    def __init__(self, app=None):
        self.app = app
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        """Initialize metrics service with Flask app"""
        self.app = app

        # Set application info
        APP_INFO.info({
            'version': app.config.get('SEM_VER', '0.0.0'),
            'environment': app.config.get('ENVIRONMENT', 'development')
        })

        # Register before/after request handlers
        app.before_request(self._before_request)
        app.after_request(self._after_request)
        app.teardown_request(self._teardown_request)

    def _before_request(self):
        """Track request start time and increment active requests"""
        g.start_time = time.time()
        ACTIVE_REQUESTS.inc()

    def _after_request(self, response):
        """Track request completion metrics"""
        try:
            request_duration = time.time() - g.start_time

            # Endpoint name, not the raw path, so tokens never become labels
            endpoint = request.endpoint or 'unknown'
            method = request.method

            REQUEST_COUNT.labels(
                method=method,
                endpoint=endpoint,
                status_code=str(response.status_code)
            ).inc()

            REQUEST_DURATION.labels(
                method=method,
                endpoint=endpoint
            ).observe(request_duration)

        except Exception as e:
            # Don't let metrics tracking break the request
            self.app.logger.error(f"Error tracking metrics: {e}")

        return response

    def _teardown_request(self, exception):
        """Handle request teardown and exceptions"""
        try:
            ACTIVE_REQUESTS.dec()

            if exception:
                REQUEST_EXCEPTIONS.labels(
                    method=request.method,
                    endpoint=request.endpoint or 'unknown',
                    exception=type(exception).__name__
                ).inc()
        except Exception as e:
            # Don't let metrics tracking break the request
            if self.app:
                self.app.logger.error(f"Error in metrics teardown: {e}")

    @staticmethod
    def track_request_created(item_kind):
        VERIFICATION_REQUESTS_CREATED.labels(item_kind=item_kind).inc()

    @staticmethod
    def track_decision(status, channel):
        """Track a committed decision; channel is 'token' or 'dashboard'"""
        VERIFICATION_DECISIONS.labels(status=status, channel=channel).inc()

    @staticmethod
    def track_refused_decision(reason):
        VERIFICATION_DECISIONS_REFUSED.labels(reason=reason).inc()

    @staticmethod
    def track_notification(kind, sent):
        NOTIFICATIONS_SENT.labels(kind=kind, result='sent' if sent else 'failed').inc()


def metrics_endpoint():
    """Generate Prometheus metrics endpoint response"""
    return generate_latest(REGISTRY)


# Initialize global metrics service instance
metrics_service = MetricsService()
