from flask import current_app
from flask_babel import format_decimal


def format_price(value, currency=None):
    currency = currency or current_app.config.get('CURRENCY', 'AED')
    return f"{currency} {format_decimal(value or 0, format='#,##0.00')}"


def format_quantity(value):
    if value is None:
        return ''
    if float(value).is_integer():
        return str(int(value))
    return format_decimal(value, format='#,##0.##')
