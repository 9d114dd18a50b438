from datetime import datetime
from io import BytesIO

import structlog
from flask import Blueprint, render_template, redirect, url_for, flash, request, session, send_file, jsonify

from exceptions import ValidationException
from forms.base import request_formdata
from forms.order_forms import ConfirmOrderForm
from helpers.resources import order_resource
from models.order import Order
from services import order_service, pdf_service, pricing
from services.product_service import active_products_by_category

logger = structlog.get_logger()

order_form_bp = Blueprint('order_form', __name__)

SELECTION_KEY = 'order_selection'
LAST_ORDER_KEY = 'last_order_number'


def wants_json():
    accept = request.accept_mimetypes
    return request.is_json or (accept.accept_json and not accept.accept_html)


def _stored_selection():
    return {int(pid): qty for pid, qty in (session.get(SELECTION_KEY) or {}).items()}


def _review_context(selection, form=None):
    lines = order_service.review_lines(selection)
    return {
        'lines': lines,
        'totals': pricing.order_totals(lines),
        'form': form or ConfirmOrderForm(formdata=None),
    }


@order_form_bp.route('/')
def order_form():
    groups = active_products_by_category()
    return render_template('order/form.html', groups=groups, selection=_stored_selection())


@order_form_bp.route('/order-review', methods=['POST'])
def submit_review():
    if request.is_json:
        selection = order_service.parse_selection(payload=request.get_json(silent=True) or {})
    else:
        selection = order_service.parse_selection(formdata=request.form)
    try:
        context = _review_context(selection)
    except ValidationException as exc:
        if wants_json():
            raise
        flash(exc.message, 'danger')
        return redirect(url_for('order_form.order_form'))
    session[SELECTION_KEY] = {str(pid): qty for pid, qty in selection.items()}
    if wants_json():
        return jsonify({'success': True, 'data': {'items': context['lines'], 'totals': context['totals']}})
    return render_template('order/review.html', **context)


@order_form_bp.route('/order-review', methods=['GET'])
def show_review():
    selection = _stored_selection()
    if not selection:
        flash('Please select at least one product.', 'warning')
        return redirect(url_for('order_form.order_form'))
    try:
        context = _review_context(selection)
    except ValidationException as exc:
        session.pop(SELECTION_KEY, None)
        flash(exc.message, 'danger')
        return redirect(url_for('order_form.order_form'))
    return render_template('order/review.html', **context)


@order_form_bp.route('/order-form/pdf', methods=['POST'])
def download_order_pdf():
    selection = order_service.parse_selection(formdata=request.form) or _stored_selection()
    lines = order_service.review_lines(selection)
    content = pdf_service.render_order(lines, pricing.order_totals(lines))
    filename = f"order-{datetime.now().strftime('%Y-%m-%d-%H-%M-%S')}.pdf"
    return send_file(BytesIO(content), mimetype='application/pdf', as_attachment=True, download_name=filename)


@order_form_bp.route('/order/confirmation', methods=['POST'])
def confirm_order():
    selection = _stored_selection()
    form = ConfirmOrderForm(formdata=request_formdata())
    if not selection:
        if wants_json():
            raise ValidationException('Your order is empty.', {'products': ['Please select at least one product.']})
        flash('Your order is empty. Please select at least one product.', 'warning')
        return redirect(url_for('order_form.order_form'))
    if not form.validate():
        if wants_json():
            raise ValidationException('The given data was invalid.', form.errors)
        return render_template('order/review.html', **_review_context(selection, form)), 422

    data = {
        'customer_name': form.customer_name.data,
        'whatsapp': form.whatsapp.data,
        'email': form.email.data,
        'address': form.address.data,
        'grand_total': form.grand_total.data,
        'notes': form.notes.data,
    }
    try:
        order = order_service.confirm_order(data, selection)
    except ValidationException as exc:
        if wants_json():
            raise
        flash(exc.message, 'danger')
        return redirect(url_for('order_form.show_review'))

    session.pop(SELECTION_KEY, None)
    session[LAST_ORDER_KEY] = order.order_number
    if wants_json():
        return jsonify({'success': True, 'message': 'Order placed successfully', 'data': order_resource(order)}), 201
    return redirect(url_for('order_form.show_confirmation'))


@order_form_bp.route('/order/confirmation', methods=['GET'])
def show_confirmation():
    number = session.get(LAST_ORDER_KEY)
    order = Order.query.filter_by(order_number=number).first() if number else None
    if order is None:
        return redirect(url_for('order_form.order_form'))
    return render_template('order/confirmation.html', order=order)
