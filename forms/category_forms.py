from flask_wtf.file import FileField, FileAllowed, FileSize
from wtforms import StringField, IntegerField, BooleanField
from wtforms.validators import DataRequired, Length, Optional, AnyOf, NumberRange, ValidationError

from forms.base import JsonForm, JsonListField, strip_filter, blank_to_none
from models.category import Category

IMAGE_EXTENSIONS = ['jpeg', 'png', 'jpg', 'webp']
MAX_IMAGE_SIZE = 2 * 1024 * 1024
FALSE_VALUES = ('false', '', '0', 'off')


class CategoryStoreForm(JsonForm):
    name = StringField('Name', filters=[strip_filter], validators=[DataRequired(), Length(min=2, max=255)])
    description = StringField('Description', filters=[strip_filter, blank_to_none], validators=[Optional(), Length(max=1000)])
    image = FileField('Image', validators=[FileAllowed(IMAGE_EXTENSIONS), FileSize(MAX_IMAGE_SIZE)])
    status = StringField('Status', filters=[strip_filter], default='active',
                         validators=[Optional(), AnyOf(['active', 'inactive'])])
    parent_id = IntegerField('Parent', validators=[Optional()])
    display_order = IntegerField('Display order', validators=[Optional(), NumberRange(min=0)])

    def __init__(self, *args, category=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.category = category

    def validate_name(self, field):
        query = Category.query.filter(Category.name == field.data)
        if self.category is not None:
            query = query.filter(Category.id != self.category.id)
        if query.first():
            raise ValidationError('The name has already been taken.')

    def validate_parent_id(self, field):
        if field.data is None:
            return
        parent = Category.query.get(field.data)
        if parent is None:
            raise ValidationError('The selected parent category is invalid.')
        if self.category is not None:
            if parent.id == self.category.id or self.category.id in parent.ancestor_ids():
                raise ValidationError('A category cannot be its own parent or descendant.')


class CategoryUpdateForm(CategoryStoreForm):
    name = StringField('Name', filters=[strip_filter], validators=[Optional(), Length(min=2, max=255)])
    image_removed = BooleanField('Remove image', false_values=FALSE_VALUES)


class CategoryIndexForm(JsonForm):
    search = StringField('Search', filters=[strip_filter])
    status = StringField('Status', validators=[Optional(), AnyOf(['active', 'inactive'])])
    parent_id = StringField('Parent', filters=[strip_filter])
    sort_by = StringField('Sort by', default='display_order',
                          validators=[Optional(), AnyOf(['display_order', 'name', 'created_at'])])
    sort_order = StringField('Sort order', default='asc', validators=[Optional(), AnyOf(['asc', 'desc'])])
    page = IntegerField('Page', default=1, validators=[Optional(), NumberRange(min=1)])
    per_page = IntegerField('Per page', default=15, validators=[Optional(), NumberRange(min=1, max=100)])

    def validate_parent_id(self, field):
        if field.data and field.data != 'null' and not field.data.isdigit():
            raise ValidationError('The parent id must be an integer or null.')


class CategoryReorderForm(JsonForm):
    orders = JsonListField('Orders', validators=[DataRequired()])

    def validate_orders(self, field):
        for entry in field.data:
            if not isinstance(entry.get('id'), int) or not isinstance(entry.get('display_order'), int):
                raise ValidationError('Each entry needs an integer id and display_order.')
            if entry['display_order'] < 0:
                raise ValidationError('The display order must be at least 0.')
