from wtforms import StringField, IntegerField
from wtforms.validators import DataRequired, Length, Optional, AnyOf, NumberRange, Regexp, ValidationError

from forms.base import JsonForm, strip_filter, blank_to_none
from helpers import phone
from models.customer import Customer

NAME_REGEX = r"^[A-Za-z\s\-']+$"


class CustomerStoreForm(JsonForm):
    name = StringField('Name', filters=[strip_filter], validators=[
        DataRequired(), Length(min=2, max=100),
        Regexp(NAME_REGEX, message='The name may only contain letters, spaces, hyphens and apostrophes.'),
    ])
    whatsapp_number = StringField('WhatsApp number', filters=[strip_filter], validators=[DataRequired()])
    address = StringField('Address', filters=[strip_filter, blank_to_none], validators=[Optional(), Length(max=1000)])
    landmark = StringField('Landmark', filters=[strip_filter, blank_to_none], validators=[Optional(), Length(max=255)])
    remarks = StringField('Remarks', filters=[strip_filter, blank_to_none], validators=[Optional(), Length(max=1000)])
    status = StringField('Status', filters=[strip_filter], default='active', validators=[Optional(), AnyOf(['active', 'inactive'])])

    def __init__(self, *args, customer=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.customer = customer

    def validate_whatsapp_number(self, field):
        field.data = phone.normalize(field.data)
        if not phone.matches_country(field.data):
            raise ValidationError(phone.country_rules()['error_message'])
        query = Customer.query.filter(Customer.whatsapp_number == field.data)
        if self.customer is not None:
            query = query.filter(Customer.id != self.customer.id)
        if query.first():
            raise ValidationError('The whatsapp number has already been taken.')


class CustomerUpdateForm(CustomerStoreForm):
    name = StringField('Name', filters=[strip_filter], validators=[
        Optional(), Length(min=2, max=100),
        Regexp(NAME_REGEX, message='The name may only contain letters, spaces, hyphens and apostrophes.'),
    ])
    whatsapp_number = StringField('WhatsApp number', filters=[strip_filter], validators=[Optional()])


class CustomerIndexForm(JsonForm):
    search = StringField('Search', filters=[strip_filter, blank_to_none])
    status = StringField('Status', filters=[blank_to_none], validators=[Optional(), AnyOf(['active', 'inactive'])])
    sort_by = StringField('Sort by', default='created_at', validators=[Optional(), AnyOf(['name', 'whatsapp_number', 'created_at'])])
    sort_order = StringField('Sort order', default='desc', validators=[Optional(), AnyOf(['asc', 'desc'])])
    page = IntegerField('Page', default=1, validators=[Optional(), NumberRange(min=1)])
    per_page = IntegerField('Per page', default=15, validators=[Optional(), NumberRange(min=1, max=100)])
