from models import db
from datetime import datetime
from sqlalchemy import or_


class Customer(db.Model):
    __tablename__ = 'customers'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    whatsapp_number = db.Column(db.String(20), unique=True, nullable=False, index=True)
    address = db.Column(db.Text, nullable=True)
    landmark = db.Column(db.String(255), nullable=True)
    remarks = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(10), nullable=False, default='active', index=True)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    updated_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    orders = db.relationship('Order', back_populates='customer', lazy='dynamic')

    def is_active(self):
        return self.status == 'active'

    @classmethod
    def search_clause(cls, term):
        like = f'%{term}%'
        return or_(cls.name.ilike(like), cls.whatsapp_number.ilike(like))
