from flask_wtf.file import FileField, FileAllowed, FileSize
from wtforms import StringField, BooleanField
from wtforms.validators import DataRequired, Length, Optional, AnyOf, ValidationError

from forms.base import JsonForm, IntegerListField, StringListField, JsonObjectField, strip_filter, blank_to_none
from forms.category_forms import FALSE_VALUES
from models.product import Product, PRODUCT_TYPES

MAX_PDF_SIZE = 10 * 1024 * 1024


def _check_products_exist(product_ids):
    if not product_ids:
        return
    found = {pid for (pid,) in Product.query.with_entities(Product.id).filter(Product.id.in_(product_ids))}
    missing = [pid for pid in product_ids if pid not in found]
    if missing:
        raise ValidationError(f'The selected products are invalid: {", ".join(map(str, missing))}.')


class GeneratePriceListForm(JsonForm):
    product_ids = IntegerListField('Products')
    pdf_layout = StringField('Layout', filters=[blank_to_none], default='regular',
                             validators=[Optional(), AnyOf(['regular', 'catalog'])])

    def validate_product_ids(self, field):
        _check_products_exist(field.data)


class MessageFieldsMixin:
    message = StringField('Message', filters=[strip_filter, blank_to_none], validators=[Optional(), Length(max=1000)])
    message_template = StringField('Message template', filters=[strip_filter, blank_to_none],
                                   validators=[Optional(), Length(max=1000)])
    template_id = StringField('Template', filters=[strip_filter, blank_to_none], validators=[Optional(), Length(max=64)])
    content_variables = JsonObjectField('Content variables')
    include_pdf = BooleanField('Include PDF', false_values=FALSE_VALUES)
    pdf_layout = StringField('Layout', filters=[blank_to_none], default='regular',
                             validators=[Optional(), AnyOf(['regular', 'catalog'])])
    send_async = BooleanField('Queue', name='async', false_values=FALSE_VALUES)

    @property
    def message_text(self):
        return self.message_template.data or self.message.data

    def validate_template_id(self, field):
        if field.data and self.message_text:
            raise ValidationError('Cannot use a content template together with a plain text message.')


class SendMessageForm(MessageFieldsMixin, JsonForm):
    customer_ids = IntegerListField('Customers')
    send_to_all = BooleanField('Send to all', false_values=FALSE_VALUES)
    pdf_type = StringField('PDF type', filters=[blank_to_none], default='regular',
                           validators=[Optional(), AnyOf(['regular', 'custom'])])
    product_ids = IntegerListField('Products')
    custom_pdf = FileField('Custom PDF', validators=[
        FileAllowed(['pdf'], 'Only PDF files are allowed.'),
        FileSize(MAX_PDF_SIZE, message='PDF file size must not exceed 10MB.'),
    ])

    def validate_customer_ids(self, field):
        if not self.send_to_all.data and not field.data:
            raise ValidationError('Please select at least one customer or enable "send to all".')

    def validate_product_ids(self, field):
        if self.include_pdf.data and (self.pdf_type.data or 'regular') == 'regular' and not field.data:
            raise ValidationError('Please select at least one product for the price list.')
        _check_products_exist(field.data)

    def validate_custom_pdf(self, field):
        if not self.include_pdf.data or self.pdf_type.data != 'custom':
            return
        if not field.data:
            raise ValidationError('Please upload a PDF file.')
        if field.data.mimetype != 'application/pdf':
            raise ValidationError('Only PDF files are allowed.')


class SendProductUpdateForm(MessageFieldsMixin, JsonForm):
    product_ids = IntegerListField('Products', validators=[DataRequired(message='Please select at least one product.')])
    product_types = StringListField('Product types')

    def validate_product_ids(self, field):
        _check_products_exist(field.data)

    def validate_product_types(self, field):
        invalid = [t for t in field.data if t not in PRODUCT_TYPES]
        if invalid:
            raise ValidationError('The selected product types are invalid.')
        if not field.data or not self.product_ids.data:
            return
        mismatched = Product.query.filter(Product.id.in_(self.product_ids.data), Product.product_type.notin_(field.data)).count()
        if mismatched:
            raise ValidationError('Selected products must match the selected product types.')


class ValidateNumberForm(JsonForm):
    phone_number = StringField('Phone number', filters=[strip_filter, blank_to_none])
    whatsapp_number = StringField('WhatsApp number', filters=[strip_filter, blank_to_none])

    @property
    def number(self):
        return self.phone_number.data or self.whatsapp_number.data

    def validate_phone_number(self, field):
        if not self.number:
            raise ValidationError('The phone number field is required.')


class SingleMessageForm(JsonForm):
    message = StringField('Message', filters=[strip_filter, blank_to_none], validators=[Optional(), Length(max=1000)])
