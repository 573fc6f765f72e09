"""
Health check routes
"""
import redis
from flask import Blueprint, jsonify, Response, current_app
from portfolio_api import db
from sqlalchemy import text
from portfolio_api.services.metrics_service import metrics_endpoint

health_bp = Blueprint('health', __name__)


@health_bp.route('/', methods=['GET'])
def health_check():
    """Basic health check endpoint"""
    return jsonify({
        'status': 'healthy',
        'service': 'portfolio-verification-api',
        'version': current_app.config.get('SEM_VER', '0.0.0')
    })


@health_bp.route('/database', methods=['GET'])
def database_health():
    """Database connectivity health check"""
    try:
        # Test database connection
        db.session.execute(text('SELECT 1'))

        return jsonify({
            'status': 'healthy',
            'database': 'connected',
            'message': 'Database connection successful'
        })
    except Exception as e:
        current_app.logger.error(f"Database health check failed: {e}")
        return jsonify({
            'status': 'unhealthy',
            'database': 'disconnected',
            'error': 'Database connection failed'
        }), 503


@health_bp.route('/detailed', methods=['GET'])
def detailed_health():
    """Database and notification broker status"""
    health_status = {
        'status': 'healthy',
        'components': {}
    }

    overall_healthy = True

    try:
        db.session.execute(text('SELECT 1'))
        health_status['components']['database'] = {
            'status': 'healthy',
            'message': 'Connected'
        }
    except Exception as e:
        current_app.logger.error(f"Database health check failed: {e}")
        health_status['components']['database'] = {
            'status': 'unhealthy',
            'error': 'Connection failed'
        }
        overall_healthy = False

    # Notifications degrade to "not queued" without the broker, so a broker
    # outage is reported but does not mark the service unhealthy
    try:
        client = redis.Redis.from_url(
            current_app.config['CELERY_BROKER_URL'], socket_connect_timeout=2
        )
        client.ping()
        health_status['components']['broker'] = {
            'status': 'healthy',
            'message': 'Connected'
        }
    except Exception as e:
        current_app.logger.warning(f"Broker health check failed: {e}")
        health_status['components']['broker'] = {
            'status': 'degraded',
            'error': 'Broker unreachable; notifications will not be queued'
        }

    if not overall_healthy:
        health_status['status'] = 'unhealthy'
        return jsonify(health_status), 503

    return jsonify(health_status)


@health_bp.route('/metrics', methods=['GET'])
def prometheus_metrics():
    """Prometheus metrics endpoint"""
    return Response(metrics_endpoint(), mimetype='text/plain')
