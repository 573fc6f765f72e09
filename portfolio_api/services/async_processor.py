"""
Celery application shared by background tasks
"""
import os
from celery import Celery
from flask import current_app, has_app_context


# Initialize Celery app (works standalone or with Flask)
celery_app = Celery(
    'portfolio_api',
    broker=os.environ.get('CELERY_BROKER_URL', 'redis://localhost:6379/0'),
    backend=os.environ.get('CELERY_RESULT_BACKEND', 'redis://localhost:6379/1'),
    include=['portfolio_api.tasks.notification_tasks']
)

# Celery configuration
celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
    task_ignore_result=True,
    broker_connection_timeout=2,
)

# Flask app for worker context (lazy initialization)
_flask_app = None


def configure_celery(app):
    """Apply a Flask app's broker and eager settings to the Celery app"""
    celery_app.conf.update(
        broker_url=app.config['CELERY_BROKER_URL'],
        result_backend=app.config['CELERY_RESULT_BACKEND'],
        task_always_eager=app.config.get('CELERY_TASK_ALWAYS_EAGER', False),
        task_eager_propagates=False,
    )


def get_flask_app():
    """Get or create Flask app for worker context"""
    global _flask_app
    if has_app_context():
        return current_app._get_current_object()
    if _flask_app is None:
        from portfolio_api import create_app
        _flask_app = create_app()
    return _flask_app


def dispatch(task, *args):
    """
    Queue a task without waiting on the broker.

    Returns True when the task was handed off, False when queueing failed.
    Never raises.
    """
    try:
        task.apply_async(args=args, retry=False)
        return True
    except Exception as e:
        current_app.logger.warning(f"Failed to queue task {task.name}: {e}")
        return False
