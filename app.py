"""
EAS Station - Emergency Alert System
Copyright (c) 2025 Timothy Kramer (KR8MER)

This file is part of EAS Station.

EAS Station is dual-licensed software:
- GNU Affero General Public License v3 (AGPL-3.0) for open-source use
- Commercial License for proprietary use

You should have received a copy of both licenses with this software.
For more information, see LICENSE and LICENSE-COMMERCIAL files.

IMPORTANT: This software cannot be rebranded or have attribution removed.
See NOTICE file for complete terms.

Repository: https://github.com/KR8MER/eas-station
"""

"""Flask application factory for the NWS alert importer."""

import json
import logging
import os
from typing import Any, Dict, Optional
from urllib.parse import quote

import click
from dotenv import load_dotenv
from flask import Flask, jsonify
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from app_core.extensions import db
from app_core.poller_settings import get_poller_settings
from app_utils import set_location_timezone
from webapp import register_routes

# Load from CONFIG_PATH if set (persistent volume), with override=True
_config_path = os.environ.get('CONFIG_PATH')
if _config_path:
    load_dotenv(_config_path, override=True)
else:
    load_dotenv(override=True)

logger = logging.getLogger(__name__)


def build_database_url_from_env() -> str:
    """Build database URL from environment variables.

    Prioritizes DATABASE_URL if set, otherwise builds from POSTGRES_* variables.
    If POSTGRES_PASSWORD is omitted, builds a URL without credentials.
    """
    url = os.getenv('DATABASE_URL')
    if url:
        return url

    user = os.getenv('POSTGRES_USER', 'postgres') or 'postgres'
    password = os.getenv('POSTGRES_PASSWORD', '')
    host = os.getenv('POSTGRES_HOST', 'host.docker.internal') or 'host.docker.internal'
    port = os.getenv('POSTGRES_PORT', '5432') or '5432'
    database = os.getenv('POSTGRES_DB', user) or user

    # URL-encode credentials to handle special characters
    user_part = quote(user, safe='')
    password_part = quote(password, safe='') if password else ''

    if password_part:
        auth_segment = f"{user_part}:{password_part}"
    else:
        auth_segment = user_part

    return f"postgresql+psycopg2://{auth_segment}@{host}:{port}/{database}"


def initialize_database(app: Flask) -> bool:
    """Create all database tables, logging any initialization failure."""

    with app.app_context():
        try:
            db.create_all()
            get_poller_settings()
        except OperationalError as db_error:
            logger.error("Database initialization failed: %s", db_error)
            return False
        logger.info("Database tables ensured on startup")
        return True


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(500)
    def internal_error(error):
        try:
            db.session.rollback()
        except SQLAlchemyError as exc:  # pragma: no cover - defensive
            logger.debug("Rollback failed in error handler: %s", exc)
        return jsonify({'error': 'Internal server error'}), 500


def _register_cli(app: Flask) -> None:
    @app.cli.command('init-db')
    def init_db():
        """Initialize the database tables"""
        if initialize_database(app):
            click.echo("Database tables created successfully")

    @app.cli.command('poll-alerts')
    def poll_alerts_command():
        """Run one gated NWS poll cycle (for cron-style schedulers)."""
        from poller.alert_importer import poll_alerts

        click.echo(json.dumps(poll_alerts(), indent=2))


def create_app(config: Optional[Dict[str, Any]] = None) -> Flask:
    """Application factory pattern for testing"""

    app = Flask(__name__)
    app.config['SQLALCHEMY_DATABASE_URI'] = build_database_url_from_env()
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['SQLALCHEMY_ENGINE_OPTIONS'] = {'pool_pre_ping': True}
    app.secret_key = os.getenv('SECRET_KEY') or os.urandom(32).hex()
    if config:
        app.config.update(config)

    set_location_timezone(os.getenv('DEFAULT_TIMEZONE'))

    db.init_app(app)
    _register_error_handlers(app)
    _register_cli(app)
    register_routes(app, logger)

    if not app.config.get('SKIP_DB_INIT'):
        initialize_database(app)

    return app


# =============================================================================
# APPLICATION STARTUP
# =============================================================================

if __name__ == '__main__':
    logging.basicConfig(
        level=getattr(logging, os.getenv('LOG_LEVEL', 'INFO').upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    application = create_app()
    # Use FLASK_DEBUG environment variable to control debug mode (defaults to False for security)
    debug_mode = os.getenv('FLASK_DEBUG', 'False').lower() in ('true', '1', 'yes')
    application.run(debug=debug_mode, host='0.0.0.0', port=5000)
