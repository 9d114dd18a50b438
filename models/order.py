from models import db
from datetime import datetime, date

ORDER_STATUSES = ('pending', 'confirmed', 'processing', 'delivered', 'cancelled')
PAYMENT_STATUSES = ('unpaid', 'paid', 'refunded')


class Order(db.Model):
    __tablename__ = 'orders'
    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(50), unique=True, nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id', ondelete='SET NULL'), nullable=True, index=True)
    # customer details as entered on the order form
    customer_name = db.Column(db.String(255), nullable=True)
    customer_email = db.Column(db.String(255), nullable=True)
    customer_phone = db.Column(db.String(32), nullable=True)
    customer_address = db.Column(db.Text, nullable=True)
    order_date = db.Column(db.Date, nullable=False, default=date.today, index=True)
    delivery_date = db.Column(db.Date, nullable=True)
    subtotal = db.Column(db.Float, nullable=False, default=0)
    discount_amount = db.Column(db.Float, nullable=False, default=0)
    total_amount = db.Column(db.Float, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default='pending', index=True)
    payment_status = db.Column(db.String(16), nullable=False, default='unpaid')
    notes = db.Column(db.Text, nullable=True)
    admin_notes = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    updated_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = db.relationship('Customer', back_populates='orders')
    items = db.relationship('OrderItem', backref='order', cascade='all, delete-orphan')

    def can_cancel(self):
        return self.status not in ('delivered', 'cancelled')


class OrderItem(db.Model):
    __tablename__ = 'order_items'
    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey('orders.id'), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id'), nullable=False, index=True)
    # product snapshot at purchase time
    product_name = db.Column(db.String(255), nullable=True)
    product_code = db.Column(db.String(100), nullable=True)
    quantity = db.Column(db.Float, nullable=False)
    unit = db.Column(db.String(20), nullable=False, default='Kg')
    price = db.Column(db.Float, nullable=False)
    discount_type = db.Column(db.String(10), nullable=True, default='none')
    discount_value = db.Column(db.Float, nullable=True)
    discount_amount = db.Column(db.Float, nullable=True, default=0)
    subtotal = db.Column(db.Float, nullable=False)
    total = db.Column(db.Float, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    product = db.relationship('Product')
