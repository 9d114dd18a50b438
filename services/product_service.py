import structlog
from flask import current_app
from sqlalchemy import asc, desc

from exceptions import ResourceNotFoundException, ValidationException
from models import db
from models.category import Category
from models.order import OrderItem
from models.price_update import PriceUpdate
from models.product import Product
from services import storage
from services.base import transaction, paginate

logger = structlog.get_logger()

IMAGE_FOLDER = 'product'
PRICE_FIELDS = ('regular_price', 'discount_type', 'discount_value')
NULLABLE_FIELDS = ('category_id', 'discount_value', 'discount_start_date', 'discount_end_date')


def get_product(product_id):
    product = Product.query.get(product_id)
    if product is None:
        raise ResourceNotFoundException('Product')
    return product


def filtered_query(search=None, category=None, category_id=None, status=None, product_type=None,
                   has_discount=None, stock_status=None, **_):
    query = Product.query
    if search:
        query = query.filter(Product.search_clause(search))
    if category_id:
        query = query.filter(Product.category_id == category_id)
    elif category:
        if category.isdigit():
            query = query.filter(Product.category_id == int(category))
        else:
            query = query.join(Category).filter(Category.name.ilike(category))
    if status:
        query = query.filter(Product.status == status)
    if product_type:
        query = query.filter(Product.product_type == product_type)
    if has_discount is True:
        query = query.filter(Product.active_discount_clause())
    elif has_discount is False:
        query = query.filter(~Product.active_discount_clause())
    if stock_status:
        threshold = current_app.config.get('LOW_STOCK_THRESHOLD', 10)
        query = query.filter(Product.stock_status_clause(stock_status, threshold))
    return query


def list_products(options):
    query = filtered_query(**options)
    sort_by = options.get('sort_by') or 'created_at'
    if sort_by == 'selling_price':
        column = Product.selling_price_expression()
    else:
        column = getattr(Product, sort_by)
    direction = asc if options.get('sort_order') == 'asc' else desc
    query = query.order_by(direction(column), Product.id)
    return paginate(query, options.get('page') or 1, options.get('per_page') or 15)


def _clean_discount(product):
    if not product.discount_type or product.discount_type == 'none':
        product.discount_type = 'none'
        product.discount_value = None
        product.discount_start_date = None
        product.discount_end_date = None


def snapshot(product):
    return {
        'regular_price': product.regular_price,
        'discount_type': product.discount_type,
        'discount_value': product.discount_value,
        'stock_quantity': product.stock_quantity,
        'selling_price': product.selling_price if product.regular_price is not None else None,
    }


def record_price_update(product, before, user_id=None):
    """Write an audit row when price, discount or stock changed; returns it or ``None``."""
    after = snapshot(product)
    keys = PRICE_FIELDS + ('stock_quantity',)
    if before is not None and all(before[k] == after[k] for k in keys):
        return None
    before = before or {}
    update = PriceUpdate(
        product=product,
        old_regular_price=before.get('regular_price'),
        new_regular_price=after['regular_price'],
        old_discount_type=before.get('discount_type'),
        new_discount_type=after['discount_type'],
        old_discount_value=before.get('discount_value'),
        new_discount_value=after['discount_value'],
        old_stock_quantity=before.get('stock_quantity'),
        new_stock_quantity=after['stock_quantity'],
        old_selling_price=before.get('selling_price'),
        new_selling_price=after['selling_price'],
        updated_by=user_id,
    )
    db.session.add(update)
    return update


def create_product(data, image=None, user_id=None):
    with transaction('Failed to create product'):
        product = Product(
            name=data['name'],
            item_code=data['item_code'],
            category_id=data.get('category_id'),
            regular_price=data['regular_price'],
            discount_type=data.get('discount_type') or 'none',
            discount_value=data.get('discount_value'),
            discount_start_date=data.get('discount_start_date'),
            discount_end_date=data.get('discount_end_date'),
            stock_quantity=data.get('stock_quantity') or 0,
            stock_unit=data.get('stock_unit') or 'Kg',
            status=data.get('status') or 'active',
            product_type=data.get('product_type') or 'daily',
            created_by=user_id,
            updated_by=user_id,
        )
        _clean_discount(product)
        if image:
            product.image = storage.save_image(image, IMAGE_FOLDER)
        db.session.add(product)
        record_price_update(product, None, user_id)
    logger.info('product_created', product_id=product.id, item_code=product.item_code)
    return product


def update_product(product, data, image=None, image_removed=False, user_id=None):
    before = snapshot(product)
    old_image = product.image
    with transaction('Failed to update product'):
        for field, value in data.items():
            if field in ('image', 'image_removed') or not hasattr(product, field):
                continue
            if value is None and field not in NULLABLE_FIELDS:
                continue
            setattr(product, field, value)
        _clean_discount(product)
        if image:
            product.image = storage.save_image(image, IMAGE_FOLDER)
        elif image_removed:
            product.image = None
        product.updated_by = user_id
        record_price_update(product, before, user_id)
    if old_image and old_image != product.image:
        storage.delete_file(old_image)
    logger.info('product_updated', product_id=product.id)
    return product


def delete_product(product):
    if OrderItem.query.filter_by(product_id=product.id).count():
        raise ValidationException('Cannot delete a product that has been ordered.',
                                  {'product': ['The product is referenced by existing orders.']})
    image = product.image
    with transaction('Failed to delete product'):
        db.session.delete(product)
    storage.delete_file(image)
    logger.info('product_deleted', product_id=product.id)


def toggle_status(product, user_id=None):
    with transaction('Failed to update product status'):
        product.status = 'inactive' if product.status == 'active' else 'active'
        product.updated_by = user_id
    logger.info('product_status_toggled', product_id=product.id, status=product.status)
    return product


def active_products_by_category():
    """Active products grouped by category name, for the order form."""
    products = (Product.query
                .outerjoin(Category)
                .filter(Product.status == 'active')
                .order_by(Category.display_order, Category.name, Product.name)
                .all())
    groups = {}
    for product in products:
        name = product.category.name if product.category else 'Other'
        groups.setdefault(name, []).append(product)
    return groups
