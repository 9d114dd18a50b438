from datetime import date, datetime

from sqlalchemy import and_, case, or_

from models import db
from services import pricing

STOCK_UNITS = ('Kg', 'Pieces', 'Units', 'L')
DISCOUNT_TYPES = ('none', 'percentage', 'fixed')
PRODUCT_TYPES = ('daily', 'standard')


class Product(db.Model):
    __tablename__ = 'products'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    item_code = db.Column(db.String(100), unique=True, nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True, index=True)
    image = db.Column(db.String(255), nullable=True)
    regular_price = db.Column(db.Float, nullable=False)
    discount_type = db.Column(db.String(10), nullable=False, default='none')
    discount_value = db.Column(db.Float, nullable=True)
    discount_start_date = db.Column(db.Date, nullable=True)
    discount_end_date = db.Column(db.Date, nullable=True)
    stock_quantity = db.Column(db.Float, nullable=False, default=0)
    stock_unit = db.Column(db.String(20), nullable=False, default='Kg')
    status = db.Column(db.String(10), nullable=False, default='active', index=True)
    product_type = db.Column(db.String(10), nullable=False, default='daily', index=True)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    updated_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = db.relationship('Category', back_populates='products')
    creator = db.relationship('User', foreign_keys=[created_by])
    updater = db.relationship('User', foreign_keys=[updated_by])
    price_updates = db.relationship('PriceUpdate', back_populates='product',
                                    cascade='all, delete-orphan', lazy='dynamic')

    # discount window

    def is_discount_active(self, today=None):
        return pricing.discount_is_active(
            self.discount_type, self.discount_value,
            self.discount_start_date, self.discount_end_date,
            today or date.today(),
        )

    @property
    def has_discount(self):
        return self.is_discount_active()

    def _active_discount(self):
        if self.is_discount_active():
            return self.discount_type, self.discount_value
        return 'none', None

    @property
    def selling_price(self):
        return pricing.selling_price(self.regular_price, *self._active_discount())

    @property
    def discount_amount(self):
        return pricing.discount_amount(self.regular_price, *self._active_discount())

    @property
    def discount_percentage(self):
        return pricing.discount_percentage(self.regular_price, *self._active_discount())

    def stock_status(self, threshold=10):
        if self.stock_quantity <= 0:
            return 'out_of_stock'
        if self.stock_quantity <= threshold:
            return 'low_stock'
        return 'in_stock'

    def is_active(self):
        return self.status == 'active'

    # SQL counterparts used for filtering and sorting

    @classmethod
    def active_discount_clause(cls, today=None):
        today = today or date.today()
        return and_(
            cls.discount_type != 'none',
            cls.discount_value.isnot(None),
            or_(cls.discount_start_date.is_(None), cls.discount_start_date <= today),
            or_(cls.discount_end_date.is_(None), cls.discount_end_date >= today),
        )

    @classmethod
    def selling_price_expression(cls, today=None):
        active = cls.active_discount_clause(today)
        return case(
            (and_(active, cls.discount_type == 'percentage'),
             cls.regular_price - cls.regular_price * cls.discount_value / 100),
            (and_(active, cls.discount_type == 'fixed'),
             cls.regular_price - cls.discount_value),
            else_=cls.regular_price,
        )

    @classmethod
    def stock_status_clause(cls, status, threshold=10):
        if status == 'in_stock':
            return cls.stock_quantity > threshold
        if status == 'low_stock':
            return and_(cls.stock_quantity > 0, cls.stock_quantity <= threshold)
        if status == 'out_of_stock':
            return cls.stock_quantity <= 0
        return None

    @classmethod
    def search_clause(cls, term):
        like = f'%{term}%'
        return or_(cls.name.ilike(like), cls.item_code.ilike(like))
