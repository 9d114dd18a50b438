from datetime import date, timedelta

import pytest

from models.product import Product
from services import pricing

TODAY = date(2026, 3, 15)


def test_selling_price_without_discount():
    assert pricing.selling_price(12.5) == 12.5
    assert pricing.selling_price(12.5, 'none', 3) == 12.5


def test_selling_price_percentage_and_fixed():
    assert pricing.selling_price(100, 'percentage', 10) == 90.0
    assert pricing.selling_price(19.99, 'percentage', 15) == 16.99
    assert pricing.selling_price(20, 'fixed', 4.5) == 15.5


def test_selling_price_is_clamped_at_zero():
    assert pricing.selling_price(10, 'fixed', 15) == 0.0
    assert pricing.selling_price(0, 'percentage', 10) == 0.0
    assert pricing.selling_price(None) == 0.0


def test_discount_amount_and_percentage():
    assert pricing.discount_amount(100, 'percentage', 25) == 25.0
    assert pricing.discount_percentage(100, 'percentage', 25) == 25.0
    assert pricing.discount_percentage(50, 'fixed', 5) == 10.0
    assert pricing.discount_percentage(0, 'fixed', 5) == 0.0
    assert pricing.discount_percentage(50, 'none', None) == 0.0


@pytest.mark.parametrize('start, end, expected', [
    (None, None, True),
    (TODAY, TODAY, True),
    (TODAY - timedelta(days=3), None, True),
    (TODAY + timedelta(days=1), None, False),
    (None, TODAY - timedelta(days=1), False),
])
def test_discount_window(start, end, expected):
    assert pricing.discount_is_active('percentage', 10, start, end, TODAY) is expected


def test_discount_needs_type_and_value():
    assert pricing.discount_is_active('none', 10, None, None, TODAY) is False
    assert pricing.discount_is_active('fixed', None, None, None, TODAY) is False


def test_price_change_percentage():
    assert pricing.price_change_percentage(100, 'none', None, 110, 'none', None) == 10.0
    assert pricing.price_change_percentage(100, 'none', None, 100, 'percentage', 20) == -20.0
    assert pricing.price_change_percentage(None, 'none', None, 110, 'none', None) is None
    assert pricing.price_change_percentage(10, 'fixed', 10, 12, 'none', None) is None


def test_product_ignores_expired_discount():
    product = Product(name='Mango', item_code='MNG', regular_price=20, discount_type='fixed', discount_value=5,
                      discount_end_date=date.today() - timedelta(days=1))
    assert product.has_discount is False
    assert product.selling_price == 20.0
    assert product.discount_amount == 0.0


def test_order_line_and_totals():
    tomato = Product(id=1, name='Tomato', item_code='TOM', regular_price=4, discount_type='none', stock_unit='Kg')
    banana = Product(id=2, name='Banana', item_code='BAN', regular_price=10, discount_type='percentage',
                     discount_value=10, stock_unit='Kg')
    lines = [pricing.order_line(tomato, 2.5), pricing.order_line(banana, 3)]

    assert lines[0]['price'] == 4.0
    assert lines[0]['subtotal'] == 10.0
    assert lines[0]['discount_type'] == 'none'
    assert lines[1]['price'] == 9.0
    assert lines[1]['discount_amount'] == 3.0
    assert lines[1]['total'] == 27.0

    totals = pricing.order_totals(lines)
    assert totals == {'subtotal': 37.0, 'discount_amount': 3.0, 'total_amount': 37.0}
