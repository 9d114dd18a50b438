import json

from flask import request
from flask_wtf import FlaskForm
from werkzeug.datastructures import CombinedMultiDict, MultiDict
from wtforms import Field
from wtforms.widgets import HiddenInput

from exceptions import ValidationException


def strip_filter(value):
    return value.strip() if isinstance(value, str) else value


def upper_filter(value):
    return value.upper() if isinstance(value, str) else value


def blank_to_none(value):
    return value or None


def _stringify(value):
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def flatten_json(payload):
    """Turn a JSON object into form data; lists become repeated keys and null an empty value."""
    data = MultiDict()
    for key, value in (payload or {}).items():
        if value is None:
            data.add(key, '')
            continue
        for item in (value if isinstance(value, list) else [value]):
            if item is None:
                continue
            data.add(key, _stringify(item))
    return data


def request_formdata():
    if request.is_json:
        payload = request.get_json(silent=True)
        return flatten_json(payload if isinstance(payload, dict) else {})
    return CombinedMultiDict((request.files, request.form))


class IntegerListField(Field):
    """Accepts repeated values, a comma separated string or a JSON encoded list."""
    widget = HiddenInput()
    coerce = int
    error_message = 'Not a valid list of integers.'

    def __init__(self, label=None, validators=None, **kwargs):
        kwargs.setdefault('default', list)
        super().__init__(label, validators, **kwargs)

    def _value(self):
        return json.dumps(self.data or [])

    def process_formdata(self, valuelist):
        self.data = []
        values = valuelist
        if len(valuelist) == 1 and str(valuelist[0]).strip().startswith('['):
            try:
                values = json.loads(valuelist[0])
            except ValueError:
                raise ValueError(self.gettext(self.error_message))
        elif len(valuelist) == 1 and ',' in str(valuelist[0]):
            values = [v.strip() for v in valuelist[0].split(',')]
        try:
            self.data = [self.coerce(v) for v in values if v not in ('', None)]
        except (TypeError, ValueError):
            self.data = []
            raise ValueError(self.gettext(self.error_message))


class StringListField(IntegerListField):
    coerce = str
    error_message = 'Not a valid list of strings.'


class JsonListField(Field):
    """List of JSON objects, one per value or a single JSON encoded list."""
    widget = HiddenInput()

    def __init__(self, label=None, validators=None, **kwargs):
        kwargs.setdefault('default', list)
        super().__init__(label, validators, **kwargs)

    def _value(self):
        return json.dumps(self.data or [])

    def process_formdata(self, valuelist):
        self.data = []
        for raw in valuelist:
            if not str(raw).strip():
                continue
            try:
                value = json.loads(raw)
            except (TypeError, ValueError):
                self.data = []
                raise ValueError(self.gettext('Not a valid JSON value.'))
            items = value if isinstance(value, list) else [value]
            if not all(isinstance(item, dict) for item in items):
                self.data = []
                raise ValueError(self.gettext('Each entry must be an object.'))
            self.data.extend(items)


class JsonObjectField(Field):
    widget = HiddenInput()

    def _value(self):
        return json.dumps(self.data) if self.data is not None else ''

    def process_formdata(self, valuelist):
        self.data = None
        if not valuelist or not str(valuelist[0]).strip():
            return
        try:
            value = json.loads(valuelist[0])
        except (TypeError, ValueError):
            raise ValueError(self.gettext('Not a valid JSON object.'))
        if not isinstance(value, dict):
            raise ValueError(self.gettext('Not a valid JSON object.'))
        self.data = value


class JsonForm(FlaskForm):
    """Form for API requests: JSON, urlencoded and multipart bodies validate alike."""

    class Meta:
        csrf = False

    @classmethod
    def from_request(cls, formdata=None, **kwargs):
        if formdata is None:
            formdata = request_formdata()
        return cls(formdata=formdata, **kwargs)

    @classmethod
    def from_query(cls, **kwargs):
        return cls(formdata=request.args, **kwargs)

    def validate_or_raise(self, extra_validators=None):
        if not self.validate(extra_validators=extra_validators):
            raise ValidationException('The given data was invalid.', self.errors)
        return self

    def submitted(self, name):
        return bool(getattr(self._fields[name], 'raw_data', None))

    def payload(self, partial=False):
        """Field data by name; with ``partial`` only the fields present in the request."""
        return {
            name: field.data
            for name, field in self._fields.items()
            if not partial or self.submitted(name)
        }
