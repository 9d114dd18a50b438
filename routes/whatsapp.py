import structlog
from flask import Blueprint

from flask_login import login_required

from forms.whatsapp_forms import (
    GeneratePriceListForm, SendMessageForm, SendProductUpdateForm, ValidateNumberForm, SingleMessageForm,
)
from helpers import api_response
from jobs.whatsapp import dispatch_batch
from services import whatsapp_service
from services.customer_service import get_customer

logger = structlog.get_logger()

whatsapp_bp = Blueprint('whatsapp', __name__, url_prefix='/api/v1/whatsapp')


def _message_args(form, media_url):
    return dict(
        message=form.message_text,
        media_url=media_url,
        template_id=form.template_id.data,
        content_variables=form.content_variables.data,
    )


@whatsapp_bp.route('/generate-price-list', methods=['POST'])
@login_required
def generate_price_list():
    form = GeneratePriceListForm.from_request().validate_or_raise()
    data = whatsapp_service.generate_price_list(form.product_ids.data, form.pdf_layout.data or 'regular')
    return api_response.success(data, 'Price list generated successfully')


@whatsapp_bp.route('/send-message', methods=['POST'])
@login_required
def send_message():
    form = SendMessageForm.from_request().validate_or_raise()
    custom_pdf = form.custom_pdf.data if form.pdf_type.data == 'custom' else None
    if form.send_async.data:
        media_url = whatsapp_service.prepare_pdf_url(form.include_pdf.data, form.pdf_type.data or 'regular',
                                                     custom_pdf, form.product_ids.data,
                                                     form.pdf_layout.data or 'regular')
        customer_ids = None if form.send_to_all.data else form.customer_ids.data
        result = dispatch_batch(customer_ids, **_message_args(form, media_url))
        return api_response.success(result, 'WhatsApp messages queued for delivery', 202)

    result = whatsapp_service.send_message({
        'customer_ids': form.customer_ids.data,
        'send_to_all': form.send_to_all.data,
        'message': form.message_text,
        'template_id': form.template_id.data,
        'content_variables': form.content_variables.data,
        'include_pdf': form.include_pdf.data,
        'pdf_type': form.pdf_type.data,
        'product_ids': form.product_ids.data,
        'pdf_layout': form.pdf_layout.data,
    }, custom_pdf=custom_pdf)
    return api_response.success(result, f"Messages sent: {result['successful']} successful, {result['failed']} failed")


@whatsapp_bp.route('/send-product-update', methods=['POST'])
@login_required
def send_product_update():
    form = SendProductUpdateForm.from_request().validate_or_raise()
    if form.send_async.data:
        media_url = whatsapp_service.prepare_pdf_url(form.include_pdf.data, 'regular', None,
                                                     form.product_ids.data, form.pdf_layout.data or 'regular')
        result = dispatch_batch(None, **_message_args(form, media_url))
        return api_response.success(result, 'Product update queued for delivery', 202)

    result = whatsapp_service.send_product_update({
        'product_ids': form.product_ids.data,
        'message': form.message_text,
        'template_id': form.template_id.data,
        'content_variables': form.content_variables.data,
        'include_pdf': form.include_pdf.data,
        'pdf_layout': form.pdf_layout.data,
    })
    return api_response.success(result, f"Product update sent: {result['successful']} successful, {result['failed']} failed")


@whatsapp_bp.route('/test-message/<int:customer_id>', methods=['POST'])
@login_required
def test_message(customer_id):
    customer = get_customer(customer_id)
    form = SingleMessageForm.from_request().validate_or_raise()
    result = whatsapp_service.get_service().send_test(customer, form.message.data)
    return api_response.success(result, 'Test message sent successfully')


@whatsapp_bp.route('/validate-number', methods=['POST'])
@login_required
def validate_number():
    form = ValidateNumberForm.from_request().validate_or_raise()
    return api_response.success(whatsapp_service.validate_number(form.number))
