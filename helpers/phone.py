import re

from flask import current_app

E164_REGEX = re.compile(r'^\+[1-9]\d{1,14}$')
WHATSAPP_PREFIX = 'whatsapp:'
DEFAULT_COUNTRY = 'AE'
DEFAULT_RULES = {
    'regex': r'^\+971(2|3|4|6|7|9|50|52|54|55|56|58)\d{7}$',
    'pattern': '+971XXXXXXXXX',
    'error_message': 'Please enter a valid UAE mobile number',
    'country_code': '+971',
}


def country_rules(country=None):
    """Validation rules for ``country`` (configured default when omitted)."""
    config = current_app.config
    country = country or config.get('PHONE_VALIDATION_COUNTRY', DEFAULT_COUNTRY)
    return config.get('PHONE_RULES', {}).get(country, DEFAULT_RULES)


def normalize(number, country_code=None):
    if number is None:
        return None
    country_code = country_code or country_rules()['country_code']
    digits_code = country_code.lstrip('+')
    cleaned = re.sub(r'[\s\-\(\)]', '', str(number))
    if not cleaned:
        return cleaned
    if cleaned.startswith('+'):
        return cleaned
    if cleaned.startswith(digits_code):
        return '+' + cleaned
    if cleaned.startswith('0'):
        return country_code + cleaned[1:]
    return country_code + cleaned


def format_for_whatsapp(number, country_code=None):
    if not number:
        return None
    if number.startswith(WHATSAPP_PREFIX):
        return number
    return WHATSAPP_PREFIX + normalize(number, country_code)


def validate(number):
    return bool(number) and E164_REGEX.match(number) is not None


def matches_country(number, country=None):
    return re.match(country_rules(country)['regex'], number or '') is not None


def extract_country_code(number):
    """Best effort country code from a normalized number, ``None`` when unknown."""
    if not number or not number.startswith('+'):
        return None
    for rules in current_app.config.get('PHONE_RULES', {}).values():
        if number.startswith(rules['country_code']):
            return rules['country_code']
    match = re.match(r'^\+(\d{1,3})', number)
    return '+' + match.group(1) if match else None


def without_country_code(number):
    code = extract_country_code(number)
    if code is None:
        return number
    return number[len(code):]
