import json

import structlog
from flask import current_app
from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

from exceptions import BusinessException, ServiceException
from helpers import phone
from services import pdf_service, storage
from services.customer_service import select_customers

logger = structlog.get_logger()

TEST_MESSAGE = 'Hello {{name}}, this is a test message from the grocery ordering service.'

TWILIO_ERRORS = {
    21211: "Invalid recipient phone number. Please check the customer's WhatsApp number format.",
    21608: 'Recipient has not joined the Twilio WhatsApp sandbox yet.',
    21614: 'WhatsApp number is not registered with Twilio. Please verify your Twilio WhatsApp configuration.',
    21217: 'Invalid "from" phone number. Please check your Twilio WhatsApp number configuration.',
    20003: 'Twilio authentication failed. Please check your Account SID and Auth Token.',
    63038: 'Daily message limit exceeded for this Twilio account.',
}


def twilio_error_message(code, default):
    return TWILIO_ERRORS.get(code, default)


def render_message(template, customer):
    return template.replace('{{name}}', customer.name)


def summarize(results):
    successful = sum(1 for result in results if result['success'])
    return {
        'total': len(results),
        'successful': successful,
        'failed': len(results) - successful,
        'results': results,
    }


class WhatsAppService:
    """Sends WhatsApp messages through the Twilio REST API."""

    def __init__(self, account_sid=None, auth_token=None, from_number=None, default_message=None, client=None):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.default_message = default_message or "Hello {{name}}, here is today's price list."
        self._client = client

    @classmethod
    def from_config(cls, config):
        return cls(
            account_sid=config.get('TWILIO_ACCOUNT_SID'),
            auth_token=config.get('TWILIO_AUTH_TOKEN'),
            from_number=config.get('TWILIO_WHATSAPP_NUMBER'),
            default_message=config.get('TWILIO_DEFAULT_MESSAGE'),
        )

    @property
    def configured(self):
        return bool(self.account_sid and self.auth_token and self.from_number)

    @property
    def client(self):
        if self._client is None:
            if not self.configured:
                raise ServiceException('WhatsApp service is not configured. Please set the Twilio credentials.')
            self._client = Client(self.account_sid, self.auth_token)
        return self._client

    def build_message(self, customer, message=None, media_url=None, template_id=None, content_variables=None):
        data = {'from_': phone.format_for_whatsapp(self.from_number)}
        if template_id:
            data['content_sid'] = template_id
            if content_variables:
                data['content_variables'] = json.dumps(content_variables)
        else:
            data['body'] = render_message(message or self.default_message, customer)
        if media_url:
            data['media_url'] = [media_url]
        return data

    def send(self, customer, message=None, media_url=None, template_id=None, content_variables=None):
        """Send to one customer; failures are returned, never raised."""
        client = self.client
        to_number = phone.format_for_whatsapp(customer.whatsapp_number)
        result = {'customer_id': customer.id, 'customer_name': customer.name}
        logger.info('whatsapp_sending', customer_id=customer.id, to=to_number,
                    template_id=template_id, has_pdf=bool(media_url))
        try:
            sent = client.messages.create(
                to=to_number,
                **self.build_message(customer, message, media_url, template_id, content_variables),
            )
        except TwilioRestException as exc:
            logger.error('whatsapp_failed', customer_id=customer.id, to=to_number,
                         error_code=exc.code, error=exc.msg)
            result.update(success=False, error=twilio_error_message(exc.code, exc.msg),
                          error_code=exc.code, twilio_error=exc.msg)
            return result
        except Exception as exc:
            logger.error('whatsapp_failed', customer_id=customer.id, to=to_number, error=str(exc))
            result.update(success=False, error=str(exc), error_code=None)
            return result
        logger.info('whatsapp_sent', customer_id=customer.id, message_sid=sent.sid, status=sent.status)
        result.update(success=True, message_sid=sent.sid, status=sent.status)
        return result

    def send_many(self, customers, **kwargs):
        return summarize([self.send(customer, **kwargs) for customer in customers])

    def send_test(self, customer, message=None):
        result = self.send(customer, message or render_message(TEST_MESSAGE, customer))
        if not result['success']:
            raise BusinessException(result['error'])
        return result


def get_service():
    return current_app.extensions['whatsapp']


def validate_number(number):
    normalized = phone.normalize(number)
    valid = phone.validate(normalized)
    return {
        'valid': valid,
        'whatsapp_number': number,
        'formatted': phone.format_for_whatsapp(normalized) if valid else None,
    }


def generate_price_list(product_ids=None, layout='regular'):
    path = pdf_service.generate_price_list(product_ids, layout)
    return {'pdf_path': path, 'pdf_url': pdf_service.pdf_url(path)}


def prepare_pdf_url(include_pdf, pdf_type='regular', custom_pdf=None, product_ids=None, layout='regular'):
    if not include_pdf:
        return None
    if pdf_type == 'custom' and custom_pdf is not None:
        return storage.media_url(storage.save_custom_pdf(custom_pdf))
    if product_ids:
        return pdf_service.pdf_url(pdf_service.generate_price_list(product_ids, layout))
    return None


def send_message(data, custom_pdf=None, service=None):
    service = service or get_service()
    if not service.configured:
        raise ServiceException('WhatsApp service is not configured. Please set the Twilio credentials.')
    media_url = prepare_pdf_url(data.get('include_pdf'), data.get('pdf_type') or 'regular', custom_pdf,
                                data.get('product_ids'), data.get('pdf_layout') or 'regular')
    customers = select_customers(data.get('customer_ids'), data.get('send_to_all'))
    if not customers:
        raise BusinessException('No customers selected', {'customer_ids': ['No matching customers were found.']})
    return service.send_many(
        customers,
        message=data.get('message'),
        media_url=media_url,
        template_id=data.get('template_id'),
        content_variables=data.get('content_variables'),
    )


def send_product_update(data, service=None):
    service = service or get_service()
    if not service.configured:
        raise ServiceException('WhatsApp service is not configured. Please set the Twilio credentials.')
    media_url = prepare_pdf_url(data.get('include_pdf'), 'regular', None,
                                data.get('product_ids'), data.get('pdf_layout') or 'regular')
    customers = select_customers(send_to_all=True)
    return service.send_many(
        customers,
        message=data.get('message'),
        media_url=media_url,
        template_id=data.get('template_id'),
        content_variables=data.get('content_variables'),
    )
