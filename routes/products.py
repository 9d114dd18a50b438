from io import BytesIO

import barcode
from barcode.writer import SVGWriter
from flask import Blueprint, Response
from flask_login import login_required, current_user

from forms.product_forms import ProductStoreForm, ProductUpdateForm, ProductIndexForm
from helpers import api_response
from helpers.resources import product_resource
from routes.auth import admin_required
from services import product_service

products_bp = Blueprint('products', __name__, url_prefix='/api/v1/products')


@products_bp.route('', methods=['GET'])
@login_required
def list_products():
    form = ProductIndexForm.from_query().validate_or_raise()
    pagination = product_service.list_products(form.options())
    return api_response.paginated(pagination, [product_resource(p) for p in pagination.items])


@products_bp.route('', methods=['POST'])
@login_required
def create_product():
    form = ProductStoreForm.from_request().validate_or_raise()
    product = product_service.create_product(form.payload(), image=form.image.data, user_id=current_user.id)
    return api_response.created(product_resource(product), 'Product created successfully')


@products_bp.route('/<int:product_id>')
@login_required
def show_product(product_id):
    return api_response.success(product_resource(product_service.get_product(product_id)))


@products_bp.route('/<int:product_id>', methods=['PUT', 'PATCH'])
@login_required
def update_product(product_id):
    product = product_service.get_product(product_id)
    form = ProductUpdateForm.from_request(product=product).validate_or_raise()
    product = product_service.update_product(
        product, form.payload(partial=True),
        image=form.image.data, image_removed=form.image_removed.data, user_id=current_user.id,
    )
    return api_response.success(product_resource(product), 'Product updated successfully')


@products_bp.route('/<int:product_id>', methods=['DELETE'])
@login_required
@admin_required
def delete_product(product_id):
    product_service.delete_product(product_service.get_product(product_id))
    return api_response.success(message='Product deleted successfully')


@products_bp.route('/<int:product_id>/toggle-status', methods=['POST'])
@login_required
def toggle_product_status(product_id):
    product = product_service.toggle_status(product_service.get_product(product_id), user_id=current_user.id)
    return api_response.success(product_resource(product), f'Product marked {product.status}')


@products_bp.route('/<int:product_id>/barcode')
@login_required
def product_barcode(product_id):
    product = product_service.get_product(product_id)
    writer_options = {'module_width': 0.2, 'module_height': 15.0, 'font_size': 10, 'text_distance': 4, 'quiet_zone': 2}
    code = barcode.get('code128', product.item_code, writer=SVGWriter())
    output = BytesIO()
    code.write(output, options=writer_options)
    return Response(output.getvalue(), mimetype='image/svg+xml')
