from datetime import datetime, time

from models import db
from services import pricing


class PriceUpdate(db.Model):
    __tablename__ = 'price_updates'
    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id', ondelete='CASCADE'), nullable=False, index=True)
    old_regular_price = db.Column(db.Float, nullable=True)
    new_regular_price = db.Column(db.Float, nullable=True)
    old_discount_type = db.Column(db.String(10), nullable=True)
    new_discount_type = db.Column(db.String(10), nullable=True)
    old_discount_value = db.Column(db.Float, nullable=True)
    new_discount_value = db.Column(db.Float, nullable=True)
    old_stock_quantity = db.Column(db.Float, nullable=True)
    new_stock_quantity = db.Column(db.Float, nullable=True)
    old_selling_price = db.Column(db.Float, nullable=True)
    new_selling_price = db.Column(db.Float, nullable=True)
    updated_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    product = db.relationship('Product', back_populates='price_updates')
    updater = db.relationship('User')

    @property
    def price_change_percentage(self):
        return pricing.price_change_percentage(
            self.old_regular_price, self.old_discount_type, self.old_discount_value,
            self.new_regular_price, self.new_discount_type, self.new_discount_value,
        )

    @classmethod
    def date_range_clause(cls, start_date, end_date):
        start = datetime.combine(start_date, time.min)
        end = datetime.combine(end_date, time.max)
        return cls.created_at.between(start, end)
