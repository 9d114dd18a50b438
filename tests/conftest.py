import itertools
from unittest.mock import MagicMock

import pytest

from app import create_app
from config import TestingConfig
from models import db
from models.category import Category
from models.customer import Customer
from models.product import Product
from models.user import User
from services.whatsapp_service import WhatsAppService

_sequence = itertools.count(1)


@pytest.fixture
def app(tmp_path):
    class Config(TestingConfig):
        MEDIA_ROOT = str(tmp_path / 'media')

    app = create_app(Config)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def app_ctx(app):
    """Pushes an application context for tests that call services directly."""
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def twilio_client(app):
    """Replaces the Twilio REST client with a mock that accepts every message."""
    twilio = MagicMock()
    twilio.messages.create.return_value = MagicMock(sid='SM0001', status='queued')
    app.extensions['whatsapp'] = WhatsAppService(
        account_sid=app.config['TWILIO_ACCOUNT_SID'],
        auth_token=app.config['TWILIO_AUTH_TOKEN'],
        from_number=app.config['TWILIO_WHATSAPP_NUMBER'],
        default_message=app.config['TWILIO_DEFAULT_MESSAGE'],
        client=twilio,
    )
    return twilio


def _create_user(app, username, role):
    with app.app_context():
        user = User(username=username, email=f'{username}@example.com', role=role)
        user.set_password('secret123')
        token = user.issue_token()
        db.session.add(user)
        db.session.commit()
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def admin_headers(app):
    return _create_user(app, 'admin', 'admin')


@pytest.fixture
def staff_headers(app):
    return _create_user(app, 'staff', 'staff')


@pytest.fixture
def make_category(app):
    def factory(**kwargs):
        kwargs.setdefault('name', f'Category {next(_sequence)}')
        with app.app_context():
            category = Category(**kwargs)
            db.session.add(category)
            db.session.commit()
            return category.id
    return factory


@pytest.fixture
def make_product(app):
    def factory(**kwargs):
        number = next(_sequence)
        kwargs.setdefault('name', f'Product {number}')
        kwargs.setdefault('item_code', f'SKU-{number:04d}')
        kwargs.setdefault('regular_price', 10.0)
        kwargs.setdefault('stock_quantity', 50)
        kwargs.setdefault('stock_unit', 'Kg')
        kwargs.setdefault('discount_type', 'none')
        kwargs.setdefault('status', 'active')
        kwargs.setdefault('product_type', 'daily')
        with app.app_context():
            product = Product(**kwargs)
            db.session.add(product)
            db.session.commit()
            return product.id
    return factory


@pytest.fixture
def make_customer(app):
    def factory(**kwargs):
        number = next(_sequence)
        kwargs.setdefault('name', 'Test Customer')
        kwargs.setdefault('whatsapp_number', f'+97150{number:07d}')
        kwargs.setdefault('status', 'active')
        with app.app_context():
            customer = Customer(**kwargs)
            db.session.add(customer)
            db.session.commit()
            return customer.id
    return factory
