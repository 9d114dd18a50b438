from wtforms import StringField, PasswordField
from wtforms.validators import DataRequired, Length, EqualTo, Email, Optional, ValidationError

from forms.base import JsonForm, strip_filter
from models.user import User


class LoginForm(JsonForm):
    username = StringField('Username', filters=[strip_filter], validators=[DataRequired()])
    password = PasswordField('Password', validators=[DataRequired()])


class RegisterForm(JsonForm):
    username = StringField('Username', filters=[strip_filter], validators=[DataRequired(), Length(min=4, max=25)])
    email = StringField('Email', filters=[strip_filter], validators=[Optional(), Email(), Length(max=255)])
    password = PasswordField('Password', validators=[DataRequired(), Length(min=6)])
    password_confirmation = PasswordField('Confirm password', validators=[DataRequired(), EqualTo('password', message='Passwords do not match')])

    def validate_username(self, field):
        if User.query.filter_by(username=field.data).first():
            raise ValidationError('The username has already been taken.')
