from flask import Blueprint
from flask_login import login_required

from forms.category_forms import CategoryStoreForm, CategoryUpdateForm, CategoryIndexForm, CategoryReorderForm
from forms.product_forms import ProductIndexForm
from helpers import api_response
from helpers.resources import category_resource, product_resource
from routes.auth import admin_required
from services import category_service

categories_bp = Blueprint('categories', __name__, url_prefix='/api/v1/categories')


@categories_bp.route('', methods=['GET'])
@login_required
def list_categories():
    form = CategoryIndexForm.from_query().validate_or_raise()
    pagination = category_service.list_categories(
        search=form.search.data,
        status=form.status.data,
        parent_id=form.parent_id.data,
        sort_by=form.sort_by.data or 'display_order',
        sort_order=form.sort_order.data or 'asc',
        page=form.page.data or 1,
        per_page=form.per_page.data or 15,
    )
    return api_response.paginated(pagination, [category_resource(c) for c in pagination.items])


@categories_bp.route('', methods=['POST'])
@login_required
def create_category():
    form = CategoryStoreForm.from_request().validate_or_raise()
    category = category_service.create_category(form.payload(), image=form.image.data)
    return api_response.created(category_resource(category), 'Category created successfully')


@categories_bp.route('/reorder', methods=['POST'])
@login_required
def reorder_categories():
    form = CategoryReorderForm.from_request().validate_or_raise()
    categories = category_service.reorder(form.orders.data)
    return api_response.success([category_resource(c) for c in categories], 'Categories reordered successfully')


@categories_bp.route('/search/<path:query>')
@login_required
def search_categories(query):
    categories = category_service.search_categories(query.strip())
    return api_response.success([category_resource(c) for c in categories])


@categories_bp.route('/tree')
@login_required
def category_tree():
    roots = category_service.category_tree()
    return api_response.success([category_resource(c, with_children=True) for c in roots])


@categories_bp.route('/<int:category_id>')
@login_required
def show_category(category_id):
    category = category_service.get_category(category_id)
    return api_response.success(category_resource(category, with_children=True))


@categories_bp.route('/<int:category_id>', methods=['PUT', 'PATCH'])
@login_required
def update_category(category_id):
    category = category_service.get_category(category_id)
    form = CategoryUpdateForm.from_request(category=category).validate_or_raise()
    data = form.payload(partial=True)
    category = category_service.update_category(
        category, data, image=form.image.data, image_removed=form.image_removed.data,
    )
    return api_response.success(category_resource(category), 'Category updated successfully')


@categories_bp.route('/<int:category_id>', methods=['DELETE'])
@login_required
@admin_required
def delete_category(category_id):
    category = category_service.get_category(category_id)
    category_service.delete_category(category)
    return api_response.success(message='Category deleted successfully')


@categories_bp.route('/<int:category_id>/toggle-status', methods=['POST'])
@login_required
def toggle_category_status(category_id):
    category = category_service.toggle_status(category_service.get_category(category_id))
    return api_response.success(category_resource(category), f'Category marked {category.status}')


@categories_bp.route('/<int:category_id>/products')
@login_required
def category_products(category_id):
    category = category_service.get_category(category_id)
    form = ProductIndexForm.from_query().validate_or_raise()
    options = form.options()
    pagination = category_service.category_products(category, options['page'], options['per_page'])
    return api_response.paginated(pagination, [product_resource(p) for p in pagination.items],
                                  extra_meta={'category': {'id': category.id, 'name': category.name}})
