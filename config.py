import os

basedir = os.path.abspath(os.path.dirname(__file__))


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'change-me-in-production'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///grocery.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    BABEL_DEFAULT_LOCALE = os.environ.get('BABEL_DEFAULT_LOCALE') or 'en'
    SUPPORTED_LOCALES = ['en', 'ar']

    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'
    LOG_FORMAT = os.environ.get('LOG_FORMAT') or 'console'  # console or json

    # uploaded images and generated PDFs live here, served under /media/
    MEDIA_ROOT = os.environ.get('MEDIA_ROOT') or os.path.join(basedir, 'media')
    MAX_CONTENT_LENGTH = 12 * 1024 * 1024
    # absolute links to media handed to Twilio outside of a request
    APP_URL = os.environ.get('APP_URL') or 'http://localhost:5000'

    CURRENCY = os.environ.get('CURRENCY') or 'AED'
    LOW_STOCK_THRESHOLD = 10
    DEFAULT_PER_PAGE = 15
    MAX_PER_PAGE = 100

    PHONE_VALIDATION_COUNTRY = os.environ.get('PHONE_VALIDATION_COUNTRY') or 'AE'
    PHONE_RULES = {
        'AE': {
            'regex': r'^\+971(2|3|4|6|7|9|50|52|54|55|56|58)\d{7}$',
            'pattern': '+971XXXXXXXXX',
            'error_message': 'Please enter a valid UAE mobile number',
            'country_code': '+971',
        },
        'IN': {
            'regex': r'^\+91[6-9]\d{9}$',
            'pattern': '+91XXXXXXXXXX',
            'error_message': 'Please enter a valid 10-digit Indian mobile number starting with 6, 7, 8, or 9',
            'country_code': '+91',
        },
    }

    # web order form
    ORDER_ADDRESS_KEYWORD = os.environ.get('ORDER_ADDRESS_KEYWORD', 'dubai')
    ORDER_PHONE_REGEX = r'^(\+91|91)?[6-9][0-9]{9}$|^(\+971|971)?[0-9]{9}$'

    TWILIO_ACCOUNT_SID = os.environ.get('TWILIO_ACCOUNT_SID')
    TWILIO_AUTH_TOKEN = os.environ.get('TWILIO_AUTH_TOKEN')
    TWILIO_WHATSAPP_NUMBER = os.environ.get('TWILIO_WHATSAPP_NUMBER')
    TWILIO_DEFAULT_MESSAGE = os.environ.get('TWILIO_DEFAULT_MESSAGE') or \
        "Hello {{name}}, here is today's price list."

    # sync runs queued work inline, redis hands it to the arq worker
    QUEUE_CONNECTION = os.environ.get('QUEUE_CONNECTION') or 'sync'
    REDIS_URL = os.environ.get('REDIS_URL') or 'redis://localhost:6379'
    WHATSAPP_QUEUE_NAME = os.environ.get('WHATSAPP_QUEUE_NAME') or 'whatsapp'


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'testing'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    WTF_CSRF_ENABLED = False
    LOG_LEVEL = 'WARNING'
    QUEUE_CONNECTION = 'sync'
    TWILIO_ACCOUNT_SID = 'ACtest'
    TWILIO_AUTH_TOKEN = 'test-token'
    TWILIO_WHATSAPP_NUMBER = '+14155238886'
