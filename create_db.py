from datetime import date

from app import create_app
from models import db
from models.user import User
from models.category import Category
from models.product import Product
from models.customer import Customer


def create_database():
    app = create_app()
    with app.app_context():
        # drop every existing table
        db.drop_all()
        print("Old database dropped")

        db.create_all()
        print("New database created")

        # default admin user
        admin_user = User(
            username='admin',
            email='admin@example.com',
            role='admin'
        )
        admin_user.set_password('admin123')
        db.session.add(admin_user)

        # default categories
        vegetables = Category(name='Vegetables', display_order=1)
        fruits = Category(name='Fruits', display_order=2)
        leafy = Category(name='Leafy Greens', parent=vegetables, display_order=1)
        for category in (vegetables, fruits, leafy):
            db.session.add(category)

        products = [
            Product(name='Tomato', item_code='VEG-001', category=vegetables, regular_price=4.5,
                    stock_quantity=120, stock_unit='Kg', product_type='daily'),
            Product(name='Onion', item_code='VEG-002', category=vegetables, regular_price=3.25,
                    stock_quantity=80, stock_unit='Kg', product_type='daily'),
            Product(name='Spinach', item_code='VEG-003', category=leafy, regular_price=2.0,
                    stock_quantity=40, stock_unit='Pieces', product_type='daily'),
            Product(name='Banana', item_code='FRU-001', category=fruits, regular_price=6.0,
                    discount_type='percentage', discount_value=10, discount_start_date=date.today(),
                    stock_quantity=60, stock_unit='Kg', product_type='standard'),
        ]
        for product in products:
            db.session.add(product)

        db.session.add(Customer(name='Sample Customer', whatsapp_number='+971501234567',
                                address='Al Barsha, Dubai'))

        db.session.commit()
        print("Sample data added")
        print("Login details:")
        print("Username: admin")
        print("Password: admin123")


if __name__ == '__main__':
    create_database()
