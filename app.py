import os

import click
import structlog
from flask import Flask, has_request_context, request, send_from_directory
from flask_babel import Babel
from flask_login import LoginManager
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from config import Config
from exceptions import BusinessException, ValidationException
from helpers import api_response
from helpers.formatting import format_price
from logging_config import configure_logging
from models import db
from models.user import User
from services.whatsapp_service import WhatsAppService

logger = structlog.get_logger()

# Initialize extensions
login_manager = LoginManager()
babel = Babel()


def wants_json_errors():
    return request.path.startswith('/api/') or request.is_json


def register_error_handlers(app):

    @app.errorhandler(ValidationException)
    def handle_validation(exc):
        return api_response.validation_error(exc.errors, exc.message)

    @app.errorhandler(BusinessException)
    def handle_business(exc):
        if exc.status_code >= 500:
            logger.error('business_error', message=exc.message, status=exc.status_code, path=request.path)
        return api_response.error(exc.message, exc.errors, exc.status_code)

    @app.errorhandler(SQLAlchemyError)
    def handle_database(exc):
        db.session.rollback()
        logger.error('database_error', error=str(exc), path=request.path)
        return api_response.error('A database error occurred', status=500)

    @app.errorhandler(HTTPException)
    def handle_http(exc):
        if not wants_json_errors():
            return exc
        messages = {
            404: 'Resource not found',
            405: 'Method not allowed',
            413: 'The uploaded file is too large',
        }
        return api_response.error(messages.get(exc.code, exc.description), status=exc.code)


def register_commands(app):

    @app.cli.command('init-db')
    def init_db():
        """Create all database tables."""
        db.create_all()
        click.echo('Database tables created.')

    @app.cli.command('create-admin')
    @click.option('--username', prompt=True)
    @click.option('--email', default=None)
    @click.password_option()
    def create_admin(username, email, password):
        """Create an administrator account."""
        if User.query.filter_by(username=username).first():
            raise click.ClickException(f'User {username} already exists.')
        user = User(username=username, email=email, role='admin')
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        click.echo(f'Admin {username} created.')

    @app.cli.command('cleanup-pdfs')
    @click.option('--days', default=7, show_default=True, help='Keep PDFs newer than this many days.')
    def cleanup_pdfs(days):
        """Delete generated price lists and uploaded PDFs older than --days."""
        from services.pdf_service import cleanup_old_pdfs
        removed = cleanup_old_pdfs(days)
        click.echo(f'Removed {removed} PDF file(s).')


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    configure_logging(app.config['LOG_LEVEL'], app.config['LOG_FORMAT'])

    db.init_app(app)
    login_manager.init_app(app)

    def get_locale():
        if not has_request_context():
            return app.config['BABEL_DEFAULT_LOCALE']
        return request.accept_languages.best_match(app.config['SUPPORTED_LOCALES']) \
            or app.config['BABEL_DEFAULT_LOCALE']
    babel.init_app(app, locale_selector=get_locale)

    app.extensions['whatsapp'] = WhatsAppService.from_config(app.config)

    @login_manager.user_loader
    def load_user(user_id):
        return User.query.get(int(user_id))

    # bearer tokens for the JSON API
    @login_manager.request_loader
    def load_user_from_request(req):
        header = req.headers.get('Authorization', '')
        if not header.startswith('Bearer '):
            return None
        token = header[len('Bearer '):].strip()
        if not token:
            return None
        user = User.query.filter_by(api_token=token).first()
        if user is None or not user.is_active:
            return None
        return user

    @login_manager.unauthorized_handler
    def unauthorized():
        return api_response.unauthorized()

    # Register Blueprints
    from routes.auth import auth_bp
    app.register_blueprint(auth_bp)
    from routes.categories import categories_bp
    app.register_blueprint(categories_bp)
    from routes.products import products_bp
    app.register_blueprint(products_bp)
    from routes.customers import customers_bp
    app.register_blueprint(customers_bp)
    from routes.orders import orders_bp
    app.register_blueprint(orders_bp)
    from routes.price_updates import price_updates_bp
    app.register_blueprint(price_updates_bp)
    from routes.whatsapp import whatsapp_bp
    app.register_blueprint(whatsapp_bp)
    from routes.dashboard import dashboard_bp
    app.register_blueprint(dashboard_bp)
    from routes.order_form import order_form_bp
    app.register_blueprint(order_form_bp)

    @app.route('/media/<path:path>')
    def media(path):
        return send_from_directory(app.config['MEDIA_ROOT'], path)

    @app.template_filter('price')
    def price_filter(value):
        return format_price(value)

    register_error_handlers(app)
    register_commands(app)

    os.makedirs(app.config['MEDIA_ROOT'], exist_ok=True)
    logger.debug('app_created', config=config_class.__name__)
    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=True)
