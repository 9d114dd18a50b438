"""Serialization of models into API payloads."""
from flask import current_app

from services.storage import media_url


def _iso(value):
    return value.isoformat() if value is not None else None


def category_resource(category, with_children=False):
    data = {
        'id': category.id,
        'name': category.name,
        'description': category.description,
        'image': category.image,
        'image_url': media_url(category.image),
        'status': category.status,
        'parent_id': category.parent_id,
        'display_order': category.display_order,
        'products_count': category.products_count,
        'created_at': _iso(category.created_at),
        'updated_at': _iso(category.updated_at),
    }
    if with_children:
        data['children'] = [category_resource(child, with_children=True) for child in category.children]
    return data


def product_resource(product):
    threshold = current_app.config.get('LOW_STOCK_THRESHOLD', 10)
    category = product.category
    return {
        'id': product.id,
        'name': product.name,
        'item_code': product.item_code,
        'category_id': product.category_id,
        'category': {'id': category.id, 'name': category.name} if category else None,
        'image': product.image,
        'image_url': media_url(product.image),
        'regular_price': product.regular_price,
        'discount_type': product.discount_type,
        'discount_value': product.discount_value,
        'discount_start_date': _iso(product.discount_start_date),
        'discount_end_date': _iso(product.discount_end_date),
        'selling_price': product.selling_price,
        'discount_amount': product.discount_amount,
        'discount_percentage': product.discount_percentage,
        'has_discount': product.has_discount,
        'stock_quantity': product.stock_quantity,
        'stock_unit': product.stock_unit,
        'stock_status': product.stock_status(threshold),
        'status': product.status,
        'product_type': product.product_type,
        'created_at': _iso(product.created_at),
        'updated_at': _iso(product.updated_at),
    }


def customer_resource(customer):
    return {
        'id': customer.id,
        'name': customer.name,
        'whatsapp_number': customer.whatsapp_number,
        'address': customer.address,
        'landmark': customer.landmark,
        'remarks': customer.remarks,
        'status': customer.status,
        'created_at': _iso(customer.created_at),
        'updated_at': _iso(customer.updated_at),
    }


def order_item_resource(item):
    return {
        'id': item.id,
        'product_id': item.product_id,
        'product_name': item.product_name,
        'product_code': item.product_code,
        'quantity': item.quantity,
        'unit': item.unit,
        'price': item.price,
        'discount_type': item.discount_type,
        'discount_value': item.discount_value,
        'discount_amount': item.discount_amount,
        'subtotal': item.subtotal,
        'total': item.total,
    }


def order_resource(order, with_items=True):
    data = {
        'id': order.id,
        'order_number': order.order_number,
        'customer_id': order.customer_id,
        'customer_name': order.customer_name,
        'customer_email': order.customer_email,
        'customer_phone': order.customer_phone,
        'customer_address': order.customer_address,
        'order_date': _iso(order.order_date),
        'delivery_date': _iso(order.delivery_date),
        'subtotal': order.subtotal,
        'discount_amount': order.discount_amount,
        'total_amount': order.total_amount,
        'status': order.status,
        'payment_status': order.payment_status,
        'notes': order.notes,
        'admin_notes': order.admin_notes,
        'items_count': len(order.items),
        'created_at': _iso(order.created_at),
        'updated_at': _iso(order.updated_at),
    }
    if with_items:
        data['items'] = [order_item_resource(item) for item in order.items]
    return data


def price_update_resource(update):
    product = update.product
    return {
        'id': update.id,
        'product_id': update.product_id,
        'product': {'id': product.id, 'name': product.name, 'item_code': product.item_code} if product else None,
        'old_regular_price': update.old_regular_price,
        'new_regular_price': update.new_regular_price,
        'old_discount_type': update.old_discount_type,
        'new_discount_type': update.new_discount_type,
        'old_discount_value': update.old_discount_value,
        'new_discount_value': update.new_discount_value,
        'old_stock_quantity': update.old_stock_quantity,
        'new_stock_quantity': update.new_stock_quantity,
        'old_selling_price': update.old_selling_price,
        'new_selling_price': update.new_selling_price,
        'price_change_percentage': update.price_change_percentage,
        'updated_by': {'id': update.updater.id, 'username': update.updater.username} if update.updater else None,
        'created_at': _iso(update.created_at),
    }


def user_resource(user):
    return {
        'id': user.id,
        'username': user.username,
        'email': user.email,
        'role': user.role,
        'created_at': _iso(user.created_at),
    }
