from flask_wtf.file import FileField, FileAllowed, FileSize
from wtforms import StringField, IntegerField, FloatField, DateField, BooleanField
from wtforms.validators import DataRequired, InputRequired, Length, NumberRange, Optional, AnyOf, ValidationError

from forms.base import JsonForm, strip_filter, upper_filter, blank_to_none
from forms.category_forms import IMAGE_EXTENSIONS, MAX_IMAGE_SIZE, FALSE_VALUES
from models.category import Category
from models.product import Product, STOCK_UNITS, DISCOUNT_TYPES, PRODUCT_TYPES

MAX_AMOUNT = 999999.99
SORT_FIELDS = ['name', 'regular_price', 'selling_price', 'stock_quantity', 'created_at', 'product_type']


class ProductStoreForm(JsonForm):
    name = StringField('Name', filters=[strip_filter], validators=[DataRequired(), Length(max=255)])
    item_code = StringField('Item code', filters=[strip_filter, upper_filter], validators=[DataRequired(), Length(max=100)])
    category_id = IntegerField('Category', validators=[Optional()])
    image = FileField('Image', validators=[FileAllowed(IMAGE_EXTENSIONS), FileSize(MAX_IMAGE_SIZE)])
    regular_price = FloatField('Regular price', validators=[InputRequired(), NumberRange(min=0, max=MAX_AMOUNT)])
    discount_type = StringField('Discount type', filters=[strip_filter], default='none',
                                validators=[Optional(), AnyOf(DISCOUNT_TYPES)])
    discount_value = FloatField('Discount value', validators=[Optional(), NumberRange(min=0)])
    discount_start_date = DateField('Discount start date', validators=[Optional()])
    discount_end_date = DateField('Discount end date', validators=[Optional()])
    stock_quantity = FloatField('Stock quantity', default=0, validators=[Optional(), NumberRange(min=0, max=MAX_AMOUNT)])
    stock_unit = StringField('Stock unit', filters=[strip_filter], default='Kg', validators=[Optional(), AnyOf(STOCK_UNITS)])
    status = StringField('Status', filters=[strip_filter], default='active', validators=[Optional(), AnyOf(['active', 'inactive'])])
    product_type = StringField('Product type', filters=[strip_filter], default='daily',
                               validators=[Optional(), AnyOf(PRODUCT_TYPES)])

    def __init__(self, *args, product=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.product = product

    def validate_item_code(self, field):
        query = Product.query.filter(Product.item_code == field.data)
        if self.product is not None:
            query = query.filter(Product.id != self.product.id)
        if query.first():
            raise ValidationError('The item code has already been taken.')

    def validate_category_id(self, field):
        if field.data is not None and Category.query.get(field.data) is None:
            raise ValidationError('The selected category is invalid.')

    def _effective(self, name):
        """Submitted value, falling back to the stored product on partial updates."""
        if self.submitted(name) or self.product is None:
            return self[name].data
        return getattr(self.product, name)

    def validate(self, extra_validators=None):
        if not super().validate(extra_validators=extra_validators):
            return False
        return self._validate_discount()

    def _validate_discount(self):
        discount_type = self._effective('discount_type') or 'none'
        value = self._effective('discount_value')
        regular_price = self._effective('regular_price')
        start = self._effective('discount_start_date')
        end = self._effective('discount_end_date')
        errors = self.discount_value.errors
        if discount_type != 'none':
            if value is None:
                errors.append('The discount value is required when a discount type is selected.')
            elif discount_type == 'percentage' and value > 100:
                errors.append('The percentage discount cannot exceed 100.')
            elif discount_type == 'fixed' and regular_price is not None and value >= regular_price:
                errors.append('The fixed discount must be less than the regular price.')
        if start is not None and end is not None and end < start:
            self.discount_end_date.errors.append('The discount end date must be on or after the start date.')
        return not (errors or self.discount_end_date.errors)


class ProductUpdateForm(ProductStoreForm):
    name = StringField('Name', filters=[strip_filter], validators=[Optional(), Length(max=255)])
    item_code = StringField('Item code', filters=[strip_filter, upper_filter], validators=[Optional(), Length(max=100)])
    regular_price = FloatField('Regular price', validators=[Optional(), NumberRange(min=0, max=MAX_AMOUNT)])
    image_removed = BooleanField('Remove image', false_values=FALSE_VALUES)


class ProductIndexForm(JsonForm):
    search = StringField('Search', filters=[strip_filter, blank_to_none])
    category = StringField('Category', filters=[strip_filter, blank_to_none])
    category_id = IntegerField('Category', validators=[Optional()])
    status = StringField('Status', filters=[blank_to_none], validators=[Optional(), AnyOf(['active', 'inactive'])])
    product_type = StringField('Product type', filters=[blank_to_none], validators=[Optional(), AnyOf(PRODUCT_TYPES)])
    has_discount = StringField('Has discount', filters=[blank_to_none],
                               validators=[Optional(), AnyOf(['true', 'false', '1', '0'])])
    stock_status = StringField('Stock status', filters=[blank_to_none],
                               validators=[Optional(), AnyOf(['in_stock', 'low_stock', 'out_of_stock'])])
    sort_by = StringField('Sort by', filters=[blank_to_none], validators=[Optional(), AnyOf(SORT_FIELDS)])
    orderby = StringField('Order by', filters=[blank_to_none], validators=[Optional(), AnyOf(SORT_FIELDS)])
    sort_order = StringField('Sort order', filters=[blank_to_none], validators=[Optional(), AnyOf(['asc', 'desc'])])
    sort = StringField('Sort', filters=[blank_to_none], validators=[Optional(), AnyOf(['asc', 'desc'])])
    page = IntegerField('Page', default=1, validators=[Optional(), NumberRange(min=1)])
    per_page = IntegerField('Per page', validators=[Optional(), NumberRange(min=1, max=100)])
    limit = IntegerField('Limit', validators=[Optional(), NumberRange(min=1, max=100)])

    def options(self):
        """Normalized listing options with the query string aliases resolved."""
        has_discount = self.has_discount.data
        return {
            'search': self.search.data,
            'category': self.category.data,
            'category_id': self.category_id.data,
            'status': self.status.data,
            'product_type': self.product_type.data,
            'has_discount': None if has_discount is None else has_discount in ('true', '1'),
            'stock_status': self.stock_status.data,
            'sort_by': self.sort_by.data or self.orderby.data or 'created_at',
            'sort_order': self.sort_order.data or self.sort.data or 'desc',
            'page': self.page.data or 1,
            'per_page': self.per_page.data or self.limit.data or 15,
        }
