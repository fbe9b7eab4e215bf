"""
Escola Gestão School Management System
Main Flask application entry point
"""

import logging
import os

from flask import Flask, jsonify
from flask_wtf.csrf import CSRFProtect
from config import get_config
from database import db, init_db

csrf = CSRFProtect()

def create_app(config_name=None):
    """Application factory pattern"""
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))

    # Initialize extensions with app
    db.init_app(app)
    csrf.init_app(app)

    setup_logging(app)

    # Register blueprints
    from routes.auth import auth_bp
    from routes.secretaria import secretaria_bp
    from routes.pedagogico import pedagogico_bp
    from routes.financial import financial_bp
    from routes.documents import documents_bp
    from routes.super_admin import super_admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(secretaria_bp, url_prefix='/secretaria')
    app.register_blueprint(pedagogico_bp, url_prefix='/pedagogico')
    app.register_blueprint(financial_bp, url_prefix='/financial')
    app.register_blueprint(documents_bp)
    app.register_blueprint(super_admin_bp, url_prefix='/super-admin')

    register_error_handlers(app)

    # Initialize database
    init_db(app)

    app.logger.info("Application created with config: %s", config_name or 'default')
    return app

def setup_logging(app):
    """Attach a file handler to the app logger outside debug and testing"""
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.getLogger().setLevel(level)

    if not app.debug and not app.testing:
        handler = logging.FileHandler(app.config.get('LOG_FILE', 'escola_gestao.log'))
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s - [in %(pathname)s:%(lineno)d]'
        ))
        app.logger.addHandler(handler)
        logging.getLogger().addHandler(handler)
        app.logger.setLevel(level)

def register_error_handlers(app):
    """Register JSON error handlers"""

    @app.errorhandler(400)
    def bad_request_error(error):
        return jsonify({'success': False, 'message': 'Bad request'}), 400

    @app.errorhandler(403)
    def forbidden_error(error):
        return jsonify({'success': False, 'message': 'Access denied'}), 403

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'success': False, 'message': 'Resource not found'}), 404

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        app.logger.error("Internal server error: %s", error)
        return jsonify({'success': False, 'message': 'Internal server error'}), 500

if __name__ == '__main__':
    app = create_app(os.environ.get('FLASK_ENV', 'development'))
    app.run(host='0.0.0.0', port=8000, debug=app.config.get('DEBUG', False), use_reloader=False)
