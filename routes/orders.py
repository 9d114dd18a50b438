from flask import Blueprint
from flask_login import login_required, current_user

from forms.order_forms import OrderIndexForm, OrderStatusForm, CancelOrderForm
from helpers import api_response
from helpers.resources import order_resource
from routes.auth import admin_required
from services import order_service

orders_bp = Blueprint('orders', __name__, url_prefix='/api/v1/orders')


@orders_bp.route('', methods=['GET'])
@login_required
def list_orders():
    form = OrderIndexForm.from_query().validate_or_raise()
    pagination = order_service.list_orders(
        status=form.status.data,
        customer_id=form.customer_id.data,
        search=form.search.data,
        date_from=form.date_from.data,
        date_to=form.date_to.data,
        page=form.page.data or 1,
        per_page=form.per_page.data or 15,
    )
    return api_response.paginated(pagination, [order_resource(o, with_items=False) for o in pagination.items])


@orders_bp.route('/statistics')
@login_required
def order_statistics():
    return api_response.success(order_service.statistics())


@orders_bp.route('/<int:order_id>')
@login_required
def show_order(order_id):
    return api_response.success(order_resource(order_service.get_order(order_id)))


@orders_bp.route('/<int:order_id>/status', methods=['POST'])
@login_required
def update_order_status(order_id):
    order = order_service.get_order(order_id)
    form = OrderStatusForm.from_request().validate_or_raise()
    order = order_service.update_status(order, form.status.data, form.payment_status.data,
                                        form.admin_notes.data, user_id=current_user.id)
    return api_response.success(order_resource(order), 'Order status updated successfully')


@orders_bp.route('/<int:order_id>/cancel', methods=['POST'])
@login_required
def cancel_order(order_id):
    order = order_service.get_order(order_id)
    form = CancelOrderForm.from_request().validate_or_raise()
    order = order_service.cancel_order(order, form.reason.data, user_id=current_user.id)
    return api_response.success(order_resource(order), 'Order cancelled successfully')


@orders_bp.route('/<int:order_id>', methods=['DELETE'])
@login_required
@admin_required
def delete_order(order_id):
    order_service.delete_order(order_service.get_order(order_id))
    return api_response.success(message='Order deleted successfully')
