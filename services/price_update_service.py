from datetime import datetime, timedelta

import structlog
from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.price_update import PriceUpdate
from models.product import Product, DISCOUNT_TYPES
from services.base import transaction
from services.product_service import record_price_update, snapshot

logger = structlog.get_logger()

MAX_AMOUNT = 999999.99


def editable_products(search=None, category_ids=None, product_type=None):
    query = Product.query.filter(Product.status == 'active')
    if search:
        query = query.filter(Product.search_clause(search))
    if category_ids:
        query = query.filter(Product.category_id.in_(category_ids))
    if product_type:
        query = query.filter(Product.product_type == product_type)
    return query.order_by(Product.name).all()


def _number(item, key, errors):
    if item.get(key) is None:
        return None
    try:
        value = float(item[key])
    except (TypeError, ValueError):
        errors.append(f'{key} must be a number')
        return None
    if value < 0 or value > MAX_AMOUNT:
        errors.append(f'{key} must be between 0 and {MAX_AMOUNT}')
    return value


def validate_item(item, product):
    """Changes requested by ``item`` and the list of problems with them."""
    errors = []
    regular_price = _number(item, 'regular_price', errors)
    stock_quantity = _number(item, 'stock_quantity', errors)
    discount_value = _number(item, 'discount_value', errors)
    discount_type = item.get('discount_type')
    if discount_type is not None and discount_type not in DISCOUNT_TYPES:
        errors.append('discount_type is invalid')
    if errors:
        return {}, errors

    changes = {}
    if regular_price is not None:
        changes['regular_price'] = regular_price
    if stock_quantity is not None:
        changes['stock_quantity'] = stock_quantity
    if discount_type is not None:
        changes['discount_type'] = discount_type
    if 'discount_value' in item:
        changes['discount_value'] = discount_value

    effective_type = changes.get('discount_type', product.discount_type) or 'none'
    effective_value = changes.get('discount_value', product.discount_value)
    effective_price = changes.get('regular_price', product.regular_price)
    if effective_type != 'none':
        if effective_value is None:
            errors.append('discount_value is required when a discount type is set')
        elif effective_type == 'percentage' and effective_value > 100:
            errors.append('percentage discount cannot exceed 100')
        elif effective_type == 'fixed' and effective_value >= effective_price:
            errors.append('fixed discount must be less than the regular price')
    return changes, errors


def _apply(product, changes):
    for field, value in changes.items():
        setattr(product, field, value)
    if (product.discount_type or 'none') == 'none':
        product.discount_type = 'none'
        product.discount_value = None


def _update_one(index, item, user_id):
    product_id = item.get('product_id')
    if not isinstance(product_id, int) or isinstance(product_id, bool):
        return None, {'index': index, 'product_id': product_id, 'errors': ['product_id must be an integer']}
    product = Product.query.filter_by(id=product_id).with_for_update().first()
    if product is None:
        return None, {'index': index, 'product_id': product_id, 'errors': ['Product not found']}
    changes, item_errors = validate_item(item, product)
    if item_errors:
        return None, {'index': index, 'product_id': product_id, 'errors': item_errors}

    before = snapshot(product)
    try:
        with db.session.begin_nested():
            _apply(product, changes)
            audit = record_price_update(product, before, user_id)
            if audit is not None:
                product.updated_by = user_id
    except SQLAlchemyError as exc:
        logger.error('price_update_item_failed', product_id=product_id, error=str(exc))
        return None, {'index': index, 'product_id': product_id, 'errors': ['Failed to update product']}

    return {
        'product_id': product.id,
        'product_name': product.name,
        'updated': audit is not None,
        'changes': {
            'price': before['regular_price'] != product.regular_price,
            'stock': before['stock_quantity'] != product.stock_quantity,
            'discount': (before['discount_type'], before['discount_value'])
                        != (product.discount_type, product.discount_value),
        },
    }, None


def bulk_update(updates, user_id=None):
    """Apply each update in its own savepoint; failures are reported per item."""
    results = []
    errors = []
    with transaction('Failed to save price updates'):
        for index, item in enumerate(updates):
            result, error = _update_one(index, item, user_id)
            if error is not None:
                errors.append(error)
            else:
                results.append(result)
    updated = sum(1 for result in results if result['updated'])
    logger.info('bulk_price_update', updated=updated, failed=len(errors))
    return {'updated': updated, 'errors': errors, 'results': results}


def product_history(product_id, limit=50):
    return (PriceUpdate.query
            .filter(PriceUpdate.product_id == product_id)
            .order_by(PriceUpdate.created_at.desc(), PriceUpdate.id.desc())
            .limit(limit).all())


def updates_between(start_date, end_date):
    return (PriceUpdate.query
            .filter(PriceUpdate.date_range_clause(start_date, end_date))
            .order_by(PriceUpdate.created_at.desc(), PriceUpdate.id.desc())
            .all())


def recent_updates(limit=20):
    return PriceUpdate.query.order_by(PriceUpdate.created_at.desc(), PriceUpdate.id.desc()).limit(limit).all()


def count_since(days=7, now=None):
    since = (now or datetime.utcnow()) - timedelta(days=days)
    return PriceUpdate.query.filter(PriceUpdate.created_at >= since).count()
