from functools import wraps

import structlog
from flask import Blueprint
from flask_login import login_required, current_user

from exceptions import UnauthorizedException
from forms.auth_forms import LoginForm, RegisterForm
from helpers import api_response
from helpers.resources import user_resource
from models import db
from models.user import User
from services.base import transaction

logger = structlog.get_logger()

auth_bp = Blueprint('auth', __name__, url_prefix='/api/v1')


def admin_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated or not current_user.is_admin():
            raise UnauthorizedException('This action requires administrator privileges.')
        return f(*args, **kwargs)
    return decorated_function


@auth_bp.route('/register', methods=['POST'])
def register():
    form = RegisterForm.from_request().validate_or_raise()
    with transaction('Failed to register user'):
        user = User(username=form.username.data, email=form.email.data, role='staff')
        user.set_password(form.password.data)
        token = user.issue_token()
        db.session.add(user)
    logger.info('user_registered', user_id=user.id)
    return api_response.created({'user': user_resource(user), 'token': token, 'token_type': 'Bearer'},
                                'Registration successful')


@auth_bp.route('/login', methods=['POST'])
def login():
    form = LoginForm.from_request().validate_or_raise()
    user = User.query.filter_by(username=form.username.data).first()
    if user is None or not user.is_active or not user.check_password(form.password.data):
        logger.warning('login_failed', username=form.username.data)
        return api_response.unauthorized('Invalid credentials')
    with transaction('Failed to log in'):
        token = user.issue_token()
    logger.info('user_logged_in', user_id=user.id)
    return api_response.success({'user': user_resource(user), 'token': token, 'token_type': 'Bearer'},
                                'Login successful')


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    with transaction('Failed to log out'):
        current_user.revoke_token()
    logger.info('user_logged_out', user_id=current_user.id)
    return api_response.success(message='Logged out successfully')


@auth_bp.route('/user')
@login_required
def me():
    return api_response.success(user_resource(current_user))
