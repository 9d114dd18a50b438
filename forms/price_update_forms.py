from wtforms import StringField, IntegerField, DateField
from wtforms.validators import DataRequired, Optional, AnyOf, NumberRange, ValidationError

from forms.base import JsonForm, JsonListField, IntegerListField, strip_filter, blank_to_none
from models.product import PRODUCT_TYPES


class PriceProductsForm(JsonForm):
    search = StringField('Search', filters=[strip_filter, blank_to_none])
    category_id = IntegerListField('Categories')
    product_type = StringField('Product type', filters=[blank_to_none], validators=[Optional(), AnyOf(PRODUCT_TYPES)])


class BulkUpdateForm(JsonForm):
    updates = JsonListField('Updates', validators=[DataRequired(message='At least one update is required.')])


class HistoryForm(JsonForm):
    limit = IntegerField('Limit', default=50, validators=[Optional(), NumberRange(min=1, max=500)])


class RecentForm(JsonForm):
    limit = IntegerField('Limit', default=20, validators=[Optional(), NumberRange(min=1, max=100)])


class DateRangeForm(JsonForm):
    start_date = DateField('Start date', validators=[DataRequired()])
    end_date = DateField('End date', validators=[DataRequired()])

    def validate_end_date(self, field):
        if self.start_date.data and field.data < self.start_date.data:
            raise ValidationError('The end date must be on or after the start date.')
