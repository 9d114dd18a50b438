from io import BytesIO

import pandas as pd
import structlog
from sqlalchemy import asc, desc

from exceptions import ResourceNotFoundException
from helpers import phone
from models import db
from models.customer import Customer
from models.order import Order
from services.base import transaction, paginate

logger = structlog.get_logger()

CHUNK_SIZE = 100


def get_customer(customer_id):
    customer = Customer.query.get(customer_id)
    if customer is None:
        raise ResourceNotFoundException('Customer')
    return customer


def list_customers(search=None, status=None, sort_by='created_at', sort_order='desc', page=1, per_page=15):
    query = Customer.query
    if search:
        query = query.filter(Customer.search_clause(search))
    if status:
        query = query.filter(Customer.status == status)
    direction = asc if sort_order == 'asc' else desc
    query = query.order_by(direction(getattr(Customer, sort_by or 'created_at')), Customer.id)
    return paginate(query, page, per_page)


def create_customer(data, user_id=None):
    with transaction('Failed to create customer'):
        customer = Customer(
            name=data['name'],
            whatsapp_number=phone.normalize(data['whatsapp_number']),
            address=data.get('address'),
            landmark=data.get('landmark'),
            remarks=data.get('remarks'),
            status=data.get('status') or 'active',
            created_by=user_id,
            updated_by=user_id,
        )
        db.session.add(customer)
    logger.info('customer_created', customer_id=customer.id)
    return customer


def update_customer(customer, data, user_id=None):
    with transaction('Failed to update customer'):
        for field in ('name', 'status'):
            if data.get(field):
                setattr(customer, field, data[field])
        for field in ('address', 'landmark', 'remarks'):
            if field in data:
                setattr(customer, field, data[field])
        if data.get('whatsapp_number'):
            customer.whatsapp_number = phone.normalize(data['whatsapp_number'])
        customer.updated_by = user_id
    logger.info('customer_updated', customer_id=customer.id)
    return customer


def delete_customer(customer):
    with transaction('Failed to delete customer'):
        db.session.delete(customer)
    logger.info('customer_deleted', customer_id=customer.id)


def toggle_status(customer, user_id=None):
    with transaction('Failed to update customer status'):
        customer.status = 'inactive' if customer.status == 'active' else 'active'
        customer.updated_by = user_id
    logger.info('customer_status_toggled', customer_id=customer.id, status=customer.status)
    return customer


def customer_orders(customer, page=1, per_page=15):
    query = Order.query.filter(Order.customer_id == customer.id).order_by(Order.created_at.desc(), Order.id.desc())
    return paginate(query, page, per_page)


def find_or_create_by_number(name, number, address=None):
    """Customer with the normalized ``number``, created on first order."""
    normalized = phone.normalize(number)
    customer = Customer.query.filter_by(whatsapp_number=normalized).first()
    if customer is None:
        customer = Customer(name=name, whatsapp_number=normalized, address=address, status='active')
        db.session.add(customer)
        db.session.flush()
        logger.info('customer_created_from_order', customer_id=customer.id)
    return customer


def select_customers(customer_ids=None, send_to_all=False):
    if send_to_all:
        return Customer.query.order_by(Customer.id).all()
    if not customer_ids:
        return []
    return Customer.query.filter(Customer.id.in_(customer_ids)).order_by(Customer.id).all()


def iter_customer_chunks(customer_ids=None, size=CHUNK_SIZE):
    """Yield lists of customer ids in id order, all active customers when none are given."""
    query = Customer.query.with_entities(Customer.id)
    if customer_ids:
        query = query.filter(Customer.id.in_(customer_ids))
    else:
        query = query.filter(Customer.status == 'active')
    last_id = 0
    while True:
        chunk = [cid for (cid,) in query.filter(Customer.id > last_id).order_by(Customer.id).limit(size)]
        if not chunk:
            return
        yield chunk
        last_id = chunk[-1]


def export_customers():
    customers = Customer.query.order_by(Customer.created_at.desc()).all()
    data = [{
        'Name': c.name,
        'WhatsApp number': c.whatsapp_number,
        'Address': c.address or '',
        'Landmark': c.landmark or '',
        'Status': c.status,
        'Created at': c.created_at.strftime('%Y-%m-%d %H:%M') if c.created_at else '',
    } for c in customers]
    df = pd.DataFrame(data, columns=['Name', 'WhatsApp number', 'Address', 'Landmark', 'Status', 'Created at'])
    output = BytesIO()
    df.to_excel(output, index=False)
    output.seek(0)
    return output
