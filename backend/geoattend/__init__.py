# File: backend/geoattend/__init__.py
"""GeoAttend - Application Factory."""
import logging
import os
import time
from typing import Callable, Optional

from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)

def create_app(config_name: str = None, clock: Optional[Callable[[], float]] = None) -> Flask:
    """Application factory pattern.

    ``clock`` returns epoch seconds and drives QR token issue and expiry;
    tests pass a controllable one.
    """
    app = Flask(__name__)

    # Load configuration
    from config import get_config
    config_class = get_config(config_name)
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    limiter.init_app(app)

    # Configure CORS
    CORS(app, origins=app.config.get('CORS_ORIGINS', ["*"]))

    # QR token signer
    from geoattend.services.qr_service import QRTokenService
    app.extensions['qr_tokens'] = QRTokenService(
        app.config.get('QR_SECRET'),
        clock=clock or time.time
    )

    # Setup logging
    setup_logging(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Setup database
    setup_database(app)

    # Add CLI commands
    register_commands(app)

    # Add health check
    @app.route('/health')
    def health_check():
        return jsonify({
            'status': 'healthy',
            'service': 'GeoAttend',
            'version': '1.0.0'
        })

    return app

def register_blueprints(app: Flask) -> None:
    """Register all application blueprints."""
    from geoattend.api.student import student_bp
    from geoattend.api.faculty import faculty_bp

    app.register_blueprint(student_bp, url_prefix='/api/student')
    app.register_blueprint(faculty_bp, url_prefix='/api/faculty')

def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from sqlalchemy.exc import SQLAlchemyError
    from werkzeug.exceptions import HTTPException
    from geoattend.utils.errors import AttendanceError, Unavailable
    from geoattend.utils.helpers import handle_error

    @app.errorhandler(AttendanceError)
    def attendance_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(SQLAlchemyError)
    def storage_error(error):
        db.session.rollback()
        app.logger.error('Storage failure: %s', error)
        unavailable = Unavailable("Storage is temporarily unavailable, please retry")
        return jsonify(unavailable.to_dict()), unavailable.status_code

    @app.errorhandler(HTTPException)
    def handle_exception(e):
        return handle_error(e, e.code)

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return handle_error("Internal server error", 500)

    # JWT error handlers
    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({
            'error': True,
            'kind': 'expired',
            'message': 'Token expired. Please login again to get a fresh token.',
            'status_code': 401
        }), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return jsonify({
            'error': True,
            'kind': 'unauthenticated',
            'message': 'Invalid token',
            'status_code': 401
        }), 401

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return jsonify({
            'error': True,
            'kind': 'unauthenticated',
            'message': 'Authorization token required',
            'status_code': 401
        }), 401

def setup_logging(app: Flask) -> None:
    """Setup application logging."""
    level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO'), logging.INFO)
    logging.getLogger('geoattend').setLevel(level)

    if not app.debug and not app.testing:
        log_file = app.config.get('LOG_FILE', 'logs/app.log')
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(level)
        app.logger.addHandler(file_handler)
        logging.getLogger('geoattend').addHandler(file_handler)

        app.logger.setLevel(level)
        app.logger.info('GeoAttend startup')

def setup_database(app: Flask) -> None:
    """Setup database connections."""
    with app.app_context():
        # Import all models
        from geoattend.models import (
            StudentProfile, FacultyProfile,
            Course, Enrollment,
            AttendanceSession, ActiveQR, AttendanceRecord
        )

def register_commands(app: Flask) -> None:
    """Register CLI commands."""
    import click

    @app.cli.command('create-db')
    def create_db():
        """Create database tables."""
        db.create_all()
        click.echo('Database tables created.')

    @app.cli.command('drop-db')
    def drop_db():
        """Drop all database tables."""
        if click.confirm('Are you sure you want to drop all tables?'):
            db.drop_all()
            click.echo('Database tables dropped.')

    @app.cli.command('reset-db')
    def reset_db():
        """Reset database completely."""
        if click.confirm('This will delete all data and recreate tables. Continue?'):
            db.drop_all()
            db.create_all()
            click.echo('Database reset complete.')

    @app.cli.command('seed-all')
    def seed_all():
        """Seed database with demo data."""
        from geoattend.services.seed_service import SeedService

        summary = SeedService.seed_all()
        click.echo(f"Seeded course {summary['course_code']} "
                   f"(join code {summary['join_code']}) with "
                   f"{summary['students']} students.")

    @app.cli.command('issue-token')
    @click.argument('principal_id')
    @click.option('--email', default=None, help='Email claim for the token')
    def issue_token(principal_id, email):
        """Mint a bearer token for a principal (development only)."""
        from flask_jwt_extended import create_access_token

        if not app.debug and not app.testing:
            raise click.ClickException('issue-token is only available in development')

        claims = {'email': email} if email else {}
        click.echo(create_access_token(identity=principal_id, additional_claims=claims))
