from flask import Blueprint
from flask_login import login_required, current_user

from forms.price_update_forms import PriceProductsForm, BulkUpdateForm, HistoryForm, RecentForm, DateRangeForm
from helpers import api_response
from helpers.resources import product_resource, price_update_resource
from services import price_update_service, product_service

price_updates_bp = Blueprint('price_updates', __name__, url_prefix='/api/v1/price-updates')


@price_updates_bp.route('/products')
@login_required
def editable_products():
    form = PriceProductsForm.from_query().validate_or_raise()
    products = price_update_service.editable_products(
        search=form.search.data,
        category_ids=form.category_id.data,
        product_type=form.product_type.data,
    )
    return api_response.success([product_resource(p) for p in products])


@price_updates_bp.route('/bulk-update', methods=['POST'])
@login_required
def bulk_update():
    form = BulkUpdateForm.from_request().validate_or_raise()
    result = price_update_service.bulk_update(form.updates.data, user_id=current_user.id)
    message = f"{result['updated']} product(s) updated"
    if result['errors']:
        message += f", {len(result['errors'])} failed"
    return api_response.success(result, message)


@price_updates_bp.route('/product/<int:product_id>/history')
@login_required
def product_history(product_id):
    product = product_service.get_product(product_id)
    form = HistoryForm.from_query().validate_or_raise()
    updates = price_update_service.product_history(product.id, form.limit.data or 50)
    return api_response.success({
        'product': product_resource(product),
        'history': [price_update_resource(u) for u in updates],
    })


@price_updates_bp.route('/by-date-range')
@login_required
def by_date_range():
    form = DateRangeForm.from_query().validate_or_raise()
    updates = price_update_service.updates_between(form.start_date.data, form.end_date.data)
    return api_response.success([price_update_resource(u) for u in updates])


@price_updates_bp.route('/recent')
@login_required
def recent():
    form = RecentForm.from_query().validate_or_raise()
    updates = price_update_service.recent_updates(form.limit.data or 20)
    return api_response.success([price_update_resource(u) for u in updates])
