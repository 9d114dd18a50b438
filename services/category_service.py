import structlog
from sqlalchemy import asc, desc

from exceptions import ResourceNotFoundException, ValidationException
from models import db
from models.category import Category
from models.product import Product
from services import storage
from services.base import transaction, paginate

logger = structlog.get_logger()

IMAGE_FOLDER = 'category'


def get_category(category_id):
    category = Category.query.get(category_id)
    if category is None:
        raise ResourceNotFoundException('Category')
    return category


def list_categories(search=None, status=None, parent_id=None, sort_by='display_order', sort_order='asc',
                    page=1, per_page=15):
    query = Category.query
    if search:
        query = query.filter(Category.name.ilike(f'%{search}%'))
    if status:
        query = query.filter(Category.status == status)
    if parent_id == 'null':
        query = query.filter(Category.parent_id.is_(None))
    elif parent_id:
        query = query.filter(Category.parent_id == int(parent_id))
    column = getattr(Category, sort_by or 'display_order')
    direction = desc if sort_order == 'desc' else asc
    query = query.order_by(direction(column), Category.id)
    return paginate(query, page, per_page)


def search_categories(term, limit=20):
    return (Category.query
            .filter(Category.name.ilike(f'%{term}%'))
            .order_by(Category.display_order, Category.name)
            .limit(limit).all())


def category_tree(active_only=False):
    query = Category.query.filter(Category.parent_id.is_(None))
    if active_only:
        query = query.filter(Category.status == 'active')
    return query.order_by(Category.display_order, Category.name).all()


def create_category(data, image=None):
    with transaction('Failed to create category'):
        category = Category(
            name=data['name'],
            description=data.get('description'),
            status=data.get('status') or 'active',
            parent_id=data.get('parent_id'),
            display_order=data.get('display_order') or 0,
        )
        if image:
            category.image = storage.save_image(image, IMAGE_FOLDER)
        db.session.add(category)
    logger.info('category_created', category_id=category.id, name=category.name)
    return category


def update_category(category, data, image=None, image_removed=False):
    old_image = category.image
    with transaction('Failed to update category'):
        for field in ('name', 'status', 'display_order'):
            if data.get(field) is not None:
                setattr(category, field, data[field])
        for field in ('description', 'parent_id'):
            if field in data:
                setattr(category, field, data[field])
        if image:
            category.image = storage.save_image(image, IMAGE_FOLDER)
        elif image_removed:
            category.image = None
    if old_image and old_image != category.image:
        storage.delete_file(old_image)
    logger.info('category_updated', category_id=category.id)
    return category


def delete_category(category):
    if category.products.count():
        raise ValidationException('Cannot delete a category that has products.',
                                  {'category': ['The category still has products assigned.']})
    if Category.query.filter_by(parent_id=category.id).count():
        raise ValidationException('Cannot delete a category that has child categories.',
                                  {'category': ['The category still has child categories.']})
    image = category.image
    with transaction('Failed to delete category'):
        db.session.delete(category)
    storage.delete_file(image)
    logger.info('category_deleted', category_id=category.id)


def toggle_status(category):
    with transaction('Failed to update category status'):
        category.status = 'inactive' if category.status == 'active' else 'active'
    logger.info('category_status_toggled', category_id=category.id, status=category.status)
    return category


def reorder(entries):
    ids = [entry['id'] for entry in entries]
    categories = {c.id: c for c in Category.query.filter(Category.id.in_(ids))}
    missing = [cid for cid in ids if cid not in categories]
    if missing:
        raise ValidationException('Some categories do not exist.',
                                  {'orders': [f'Unknown category ids: {", ".join(map(str, missing))}']})
    with transaction('Failed to reorder categories'):
        for entry in entries:
            categories[entry['id']].display_order = entry['display_order']
    logger.info('categories_reordered', count=len(entries))
    return [categories[cid] for cid in ids]


def category_products(category, page=1, per_page=15):
    query = Product.query.filter(Product.category_id == category.id).order_by(Product.name)
    return paginate(query, page, per_page)
