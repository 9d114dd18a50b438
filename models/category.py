from datetime import datetime

from models import db


class Category(db.Model):
    __tablename__ = 'categories'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=True)
    image = db.Column(db.String(255), nullable=True)
    status = db.Column(db.String(10), nullable=False, default='active')  # active, inactive
    parent_id = db.Column(db.Integer, db.ForeignKey('categories.id'), nullable=True, index=True)
    display_order = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    parent = db.relationship('Category', remote_side=[id], backref=db.backref('children', order_by='Category.display_order'))
    products = db.relationship('Product', back_populates='category', lazy='dynamic')

    @property
    def products_count(self):
        return self.products.count()

    def is_active(self):
        return self.status == 'active'

    def ancestor_ids(self):
        ids = []
        node = self.parent
        while node is not None:
            ids.append(node.id)
            node = node.parent
        return ids
