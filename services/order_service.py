import re
import secrets
from datetime import date, datetime, time

import structlog
from sqlalchemy import func, or_

from exceptions import ResourceNotFoundException, ValidationException
from helpers import phone
from models import db
from models.order import Order, OrderItem, ORDER_STATUSES
from models.product import Product
from services import pricing
from services.base import transaction, paginate
from services.customer_service import find_or_create_by_number

logger = structlog.get_logger()

PRODUCT_KEY = re.compile(r'^products\[(\d+)\]\[qty\]$')
INDIAN_MOBILE = re.compile(r'^(\+91|91)?([6-9]\d{9})$')


def parse_selection(formdata=None, payload=None):
    """Product id to quantity from ``products[<id>][qty]`` form keys or a JSON ``products`` object."""
    selection = {}
    raw = {}
    if payload is not None:
        for key, value in (payload.get('products') or {}).items():
            raw[key] = value.get('qty') if isinstance(value, dict) else value
    elif formdata is not None:
        for key in formdata:
            match = PRODUCT_KEY.match(key)
            if match:
                raw[match.group(1)] = formdata.get(key)
    for key, value in raw.items():
        try:
            product_id, quantity = int(key), float(value)
        except (TypeError, ValueError):
            continue
        if quantity > 0:
            selection[product_id] = quantity
    return selection


def order_phone(number):
    """Normalize a number typed on the order form, which takes Indian and UAE mobiles."""
    compact = re.sub(r'[\s\-]', '', number or '')
    match = INDIAN_MOBILE.match(compact)
    if match:
        return '+91' + match.group(2)
    return phone.normalize(compact, '+971')


def review_lines(selection):
    """Priced order lines for the active products in ``selection``."""
    if not selection:
        raise ValidationException('Please select at least one product.',
                                  {'products': ['Please select at least one product.']})
    products = (Product.query
                .filter(Product.id.in_(list(selection)), Product.status == 'active')
                .order_by(Product.name)
                .all())
    if not products:
        raise ValidationException('The selected products are no longer available.',
                                  {'products': ['The selected products are no longer available.']})
    return [pricing.order_line(product, selection[product.id]) for product in products]


def generate_order_number(today=None):
    today = today or date.today()
    while True:
        number = f"ORD-{today.strftime('%Y%m%d')}-{secrets.token_hex(3).upper()}"
        if not Order.query.filter_by(order_number=number).first():
            return number


def confirm_order(data, selection, user_id=None):
    lines = review_lines(selection)
    totals = pricing.order_totals(lines)
    grand_total = data.get('grand_total')
    if grand_total is not None and abs(round(grand_total, 2) - totals['total_amount']) > 0.01:
        raise ValidationException('The order total has changed, please review your order again.',
                                  {'grand_total': ['The submitted total does not match the current prices.']})
    with transaction('Failed to place order'):
        customer = find_or_create_by_number(data['customer_name'], order_phone(data['whatsapp']),
                                            data.get('address'))
        order = Order(
            order_number=generate_order_number(),
            customer=customer,
            customer_name=data['customer_name'],
            customer_email=data.get('email'),
            customer_phone=customer.whatsapp_number,
            customer_address=data.get('address'),
            order_date=date.today(),
            subtotal=totals['subtotal'],
            discount_amount=totals['discount_amount'],
            total_amount=totals['total_amount'],
            status='pending',
            payment_status='unpaid',
            notes=data.get('notes'),
            created_by=user_id,
        )
        for line in lines:
            order.items.append(OrderItem(
                product_id=line['product_id'],
                product_name=line['product_name'],
                product_code=line['product_code'],
                quantity=line['quantity'],
                unit=line['unit'],
                price=line['price'],
                discount_type=line['discount_type'],
                discount_value=line['discount_value'],
                discount_amount=line['discount_amount'],
                subtotal=line['subtotal'],
                total=line['total'],
            ))
        db.session.add(order)
    logger.info('order_placed', order_id=order.id, order_number=order.order_number,
                items=len(lines), total=order.total_amount)
    return order


def get_order(order_id):
    order = Order.query.get(order_id)
    if order is None:
        raise ResourceNotFoundException('Order')
    return order


def list_orders(status=None, customer_id=None, search=None, date_from=None, date_to=None, page=1, per_page=15):
    query = Order.query
    if status:
        query = query.filter(Order.status == status)
    if customer_id:
        query = query.filter(Order.customer_id == customer_id)
    if search:
        like = f'%{search}%'
        query = query.filter(or_(Order.order_number.ilike(like), Order.customer_name.ilike(like),
                                 Order.customer_phone.ilike(like)))
    if date_from:
        query = query.filter(Order.order_date >= date_from)
    if date_to:
        query = query.filter(Order.order_date <= date_to)
    query = query.order_by(Order.created_at.desc(), Order.id.desc())
    return paginate(query, page, per_page)


def update_status(order, status, payment_status=None, admin_notes=None, user_id=None):
    if status == 'cancelled':
        return cancel_order(order, admin_notes, user_id=user_id)
    if order.status == 'cancelled':
        raise ValidationException('A cancelled order cannot be reopened.',
                                  {'status': ['The order has been cancelled.']})
    previous = order.status
    with transaction('Failed to update order status'):
        order.status = status
        if payment_status:
            order.payment_status = payment_status
        if admin_notes:
            order.admin_notes = admin_notes
        if status == 'delivered' and order.delivery_date is None:
            order.delivery_date = date.today()
        order.updated_by = user_id
    logger.info('order_status_updated', order_id=order.id, previous=previous, status=status)
    return order


def cancel_order(order, reason=None, user_id=None):
    if not order.can_cancel():
        raise ValidationException(f'Orders that are {order.status} cannot be cancelled.',
                                  {'status': [f'The order is already {order.status}.']})
    with transaction('Failed to cancel order'):
        order.status = 'cancelled'
        if reason:
            note = f'Cancelled: {reason}'
            order.admin_notes = f'{order.admin_notes}\n{note}' if order.admin_notes else note
        order.updated_by = user_id
    logger.info('order_cancelled', order_id=order.id, reason=reason)
    return order


def delete_order(order):
    with transaction('Failed to delete order'):
        db.session.delete(order)
    logger.info('order_deleted', order_id=order.id)


def statistics(today=None):
    today = today or date.today()
    counts = dict(db.session.query(Order.status, func.count(Order.id)).group_by(Order.status).all())
    revenue = (db.session.query(func.coalesce(func.sum(Order.total_amount), 0))
               .filter(Order.status != 'cancelled').scalar())
    today_orders = Order.query.filter(Order.order_date == today)
    today_revenue = (db.session.query(func.coalesce(func.sum(Order.total_amount), 0))
                     .filter(Order.order_date == today, Order.status != 'cancelled').scalar())
    start = datetime.combine(today.replace(day=1), time.min)
    month_orders = Order.query.filter(Order.created_at >= start).count()
    return {
        'total_orders': sum(counts.values()),
        'by_status': {status: counts.get(status, 0) for status in ORDER_STATUSES},
        'total_revenue': round(float(revenue), 2),
        'today_orders': today_orders.count(),
        'today_revenue': round(float(today_revenue), 2),
        'month_orders': month_orders,
    }
