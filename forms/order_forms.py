import re

from flask import current_app
from flask_wtf import FlaskForm
from wtforms import StringField, FloatField, TextAreaField, IntegerField, DateField
from wtforms.validators import DataRequired, Email, Length, Optional, Regexp, AnyOf, NumberRange, ValidationError

from forms.base import JsonForm, strip_filter, blank_to_none
from models.order import ORDER_STATUSES, PAYMENT_STATUSES


class ConfirmOrderForm(FlaskForm):
    customer_name = StringField('Full name', filters=[strip_filter], validators=[
        DataRequired(), Length(min=3, max=100),
        Regexp(r'^[a-zA-Z\s]+$', message='The name may only contain letters and spaces.'),
    ])
    whatsapp = StringField('WhatsApp number', filters=[strip_filter], validators=[
        DataRequired(),
        Regexp(r'^[0-9+\-\s]+$', message='The WhatsApp number may only contain digits, spaces, dashes and +.'),
    ])
    email = StringField('Email', filters=[strip_filter, blank_to_none], validators=[Optional(), Email(), Length(max=255)])
    address = TextAreaField('Delivery address', filters=[strip_filter], validators=[DataRequired(), Length(max=1000)])
    grand_total = FloatField('Grand total', validators=[Optional(), NumberRange(min=0)])
    notes = TextAreaField('Notes', filters=[strip_filter, blank_to_none], validators=[Optional(), Length(max=1000)])

    def validate_whatsapp(self, field):
        compact = re.sub(r'[\s\-]', '', field.data)
        if not re.match(current_app.config['ORDER_PHONE_REGEX'], compact):
            raise ValidationError('Please enter a valid Indian or UAE WhatsApp number.')

    def validate_address(self, field):
        keyword = current_app.config.get('ORDER_ADDRESS_KEYWORD')
        if keyword and keyword.lower() not in field.data.lower():
            raise ValidationError(f'We currently deliver only within {keyword.title()}. Please include it in your address.')


class OrderStatusForm(JsonForm):
    status = StringField('Status', filters=[strip_filter], validators=[DataRequired(), AnyOf(ORDER_STATUSES)])
    payment_status = StringField('Payment status', filters=[strip_filter, blank_to_none],
                                 validators=[Optional(), AnyOf(PAYMENT_STATUSES)])
    admin_notes = StringField('Admin notes', filters=[strip_filter, blank_to_none], validators=[Optional(), Length(max=1000)])


class CancelOrderForm(JsonForm):
    reason = StringField('Reason', filters=[strip_filter, blank_to_none], validators=[Optional(), Length(max=500)])


class OrderIndexForm(JsonForm):
    status = StringField('Status', filters=[blank_to_none], validators=[Optional(), AnyOf(ORDER_STATUSES)])
    customer_id = IntegerField('Customer', validators=[Optional()])
    search = StringField('Search', filters=[strip_filter, blank_to_none])
    date_from = DateField('From', validators=[Optional()])
    date_to = DateField('To', validators=[Optional()])
    page = IntegerField('Page', default=1, validators=[Optional(), NumberRange(min=1)])
    per_page = IntegerField('Per page', default=15, validators=[Optional(), NumberRange(min=1, max=100)])

    def validate_date_to(self, field):
        if self.date_from.data and field.data < self.date_from.data:
            raise ValidationError('The end date must be on or after the start date.')
