from datetime import datetime

from flask import Blueprint, send_file
from flask_login import login_required, current_user

from forms.customer_forms import CustomerStoreForm, CustomerUpdateForm, CustomerIndexForm
from forms.order_forms import OrderIndexForm
from helpers import api_response
from helpers.resources import customer_resource, order_resource
from routes.auth import admin_required
from services import customer_service

customers_bp = Blueprint('customers', __name__, url_prefix='/api/v1/customers')


@customers_bp.route('', methods=['GET'])
@login_required
def list_customers():
    form = CustomerIndexForm.from_query().validate_or_raise()
    pagination = customer_service.list_customers(
        search=form.search.data,
        status=form.status.data,
        sort_by=form.sort_by.data or 'created_at',
        sort_order=form.sort_order.data or 'desc',
        page=form.page.data or 1,
        per_page=form.per_page.data or 15,
    )
    return api_response.paginated(pagination, [customer_resource(c) for c in pagination.items])


@customers_bp.route('', methods=['POST'])
@login_required
def create_customer():
    form = CustomerStoreForm.from_request().validate_or_raise()
    customer = customer_service.create_customer(form.payload(), user_id=current_user.id)
    return api_response.created(customer_resource(customer), 'Customer created successfully')


@customers_bp.route('/export')
@login_required
def export_customers():
    output = customer_service.export_customers()
    filename = f"customers-{datetime.now().strftime('%Y-%m-%d')}.xlsx"
    return send_file(output, as_attachment=True, download_name=filename,
                     mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet')


@customers_bp.route('/<int:customer_id>')
@login_required
def show_customer(customer_id):
    return api_response.success(customer_resource(customer_service.get_customer(customer_id)))


@customers_bp.route('/<int:customer_id>', methods=['PUT', 'PATCH'])
@login_required
def update_customer(customer_id):
    customer = customer_service.get_customer(customer_id)
    form = CustomerUpdateForm.from_request(customer=customer).validate_or_raise()
    customer = customer_service.update_customer(customer, form.payload(partial=True), user_id=current_user.id)
    return api_response.success(customer_resource(customer), 'Customer updated successfully')


@customers_bp.route('/<int:customer_id>', methods=['DELETE'])
@login_required
@admin_required
def delete_customer(customer_id):
    customer_service.delete_customer(customer_service.get_customer(customer_id))
    return api_response.success(message='Customer deleted successfully')


@customers_bp.route('/<int:customer_id>/toggle-status', methods=['POST'])
@login_required
def toggle_customer_status(customer_id):
    customer = customer_service.toggle_status(customer_service.get_customer(customer_id), user_id=current_user.id)
    return api_response.success(customer_resource(customer), f'Customer marked {customer.status}')


@customers_bp.route('/<int:customer_id>/orders')
@login_required
def customer_orders(customer_id):
    customer = customer_service.get_customer(customer_id)
    form = OrderIndexForm.from_query().validate_or_raise()
    pagination = customer_service.customer_orders(customer, form.page.data or 1, form.per_page.data or 15)
    return api_response.paginated(pagination, [order_resource(o, with_items=False) for o in pagination.items])
