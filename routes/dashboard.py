from datetime import date

from flask import Blueprint, current_app
from flask_login import login_required
from sqlalchemy import func

from helpers import api_response
from helpers.resources import product_resource, price_update_resource
from models import db
from models.category import Category
from models.customer import Customer
from models.order import Order
from models.product import Product
from services import price_update_service

dashboard_bp = Blueprint('dashboard', __name__, url_prefix='/api/v1/dashboard')


@dashboard_bp.route('')
@login_required
def dashboard():
    threshold = current_app.config.get('LOW_STOCK_THRESHOLD', 10)
    today = date.today()
    active_products = Product.query.filter(Product.status == 'active')

    low_stock_products = (active_products
                          .filter(Product.stock_status_clause('low_stock', threshold))
                          .order_by(Product.stock_quantity)
                          .limit(10).all())
    notifications = [
        f"'{p.name}' has only {p.stock_quantity:g} {p.stock_unit} left in stock"
        for p in low_stock_products
    ]
    today_revenue = (db.session.query(func.coalesce(func.sum(Order.total_amount), 0))
                     .filter(Order.order_date == today, Order.status != 'cancelled')
                     .scalar())

    data = {
        'products': {
            'total': Product.query.count(),
            'active': active_products.count(),
            'low_stock': active_products.filter(Product.stock_status_clause('low_stock', threshold)).count(),
            'out_of_stock': active_products.filter(Product.stock_status_clause('out_of_stock', threshold)).count(),
            'discounted': active_products.filter(Product.active_discount_clause(today)).count(),
            'daily': Product.query.filter(Product.product_type == 'daily').count(),
            'standard': Product.query.filter(Product.product_type == 'standard').count(),
        },
        'categories': {
            'total': Category.query.count(),
            'active': Category.query.filter(Category.status == 'active').count(),
        },
        'customers': {
            'total': Customer.query.count(),
            'active': Customer.query.filter(Customer.status == 'active').count(),
        },
        'orders': {
            'today': Order.query.filter(Order.order_date == today).count(),
            'pending': Order.query.filter(Order.status == 'pending').count(),
            'today_revenue': round(float(today_revenue), 2),
        },
        'price_updates': {
            'last_7_days': price_update_service.count_since(7),
        },
        'low_stock_products': [product_resource(p) for p in low_stock_products],
        'recent_price_changes': [price_update_resource(u) for u in price_update_service.recent_updates(10)],
        'notifications': notifications,
    }
    return api_response.success(data)
