from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

from .user import User
from .category import Category
from .product import Product
from .customer import Customer
from .order import Order, OrderItem
from .price_update import PriceUpdate
