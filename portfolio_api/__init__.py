"""
Flask application factory
"""
import os
from flask import Flask
from flask_cors import CORS
from flask_sqlalchemy import SQLAlchemy

# API Configuration
API_VERSION = 'v0'

# Initialize extensions
db = SQLAlchemy()


def create_app(config_name=None):
    """Create Flask application with configuration"""
    app = Flask(__name__)

    # Load configuration
    config_name = config_name or os.environ.get('FLASK_ENV', 'development')

    from config import config
    app.config.from_object(config[config_name])
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Initialize extensions
    db.init_app(app)

    # Initialize metrics service
    if app.config.get('METRICS_ENABLED', True):
        from portfolio_api.services.metrics_service import metrics_service
        metrics_service.init_app(app)

    # Bind Celery to this app's configuration
    from portfolio_api.services.async_processor import configure_celery
    configure_celery(app)

    allowed_origins = [app.config['FRONTEND_URL']]

    # Build CORS allowed origins list based on environment
    if app.config.get('DEBUG', False) or app.config.get('ENV') == 'development':
        # Development: use FRONTEND_URL + additional origins from ALLOWED_ORIGINS env var
        if app.config.get('ALLOWED_ORIGINS'):
            allowed_origins.extend(app.config['ALLOWED_ORIGINS'])

    CORS(app, origins=allowed_origins, supports_credentials=True)

    # Auto-initialize database on startup
    with app.app_context():
        from portfolio_api.utils.db_init import auto_initialize_database
        auto_initialize_database()

    # Register blueprints with API versioning
    from portfolio_api.routes.health import health_bp
    from portfolio_api.routes.items import experiences_bp, education_bp, projects_bp
    from portfolio_api.routes.verification import verification_bp
    from portfolio_api.routes.verifier import verifier_bp

    # API Versioned routes
    api_prefix = f'/api/{API_VERSION}'
    app.register_blueprint(health_bp, url_prefix=f'{api_prefix}/health')
    app.register_blueprint(experiences_bp, url_prefix=f'{api_prefix}/experiences')
    app.register_blueprint(education_bp, url_prefix=f'{api_prefix}/education')
    app.register_blueprint(projects_bp, url_prefix=f'{api_prefix}/projects')
    app.register_blueprint(verification_bp, url_prefix=f'{api_prefix}/verification')
    app.register_blueprint(verifier_bp, url_prefix=f'{api_prefix}/verifier')

    return app
