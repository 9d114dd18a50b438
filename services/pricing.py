"""Price and discount arithmetic shared by models, orders and PDFs.

All amounts are floats rounded to two places at the edges, the same way the
stored columns are read back.
"""


def discount_is_active(discount_type, discount_value, start_date, end_date, today):
    if not discount_type or discount_type == 'none' or discount_value is None:
        return False
    if start_date is not None and start_date > today:
        return False
    if end_date is not None and end_date < today:
        return False
    return True


def selling_price(regular_price, discount_type='none', discount_value=None):
    if not regular_price or regular_price <= 0:
        return 0.0
    price = float(regular_price)
    if discount_value is not None:
        if discount_type == 'percentage':
            price = price - price * float(discount_value) / 100
        elif discount_type == 'fixed':
            price = price - float(discount_value)
    return max(0.0, round(price, 2))


def discount_amount(regular_price, discount_type='none', discount_value=None):
    if not regular_price or regular_price <= 0:
        return 0.0
    return round(float(regular_price) - selling_price(regular_price, discount_type, discount_value), 2)


def discount_percentage(regular_price, discount_type='none', discount_value=None):
    if discount_value is None or discount_type in (None, 'none'):
        return 0.0
    if discount_type == 'percentage':
        return round(float(discount_value), 2)
    if not regular_price or regular_price <= 0:
        return 0.0
    return round(float(discount_value) / float(regular_price) * 100, 2)


def price_change_percentage(old_regular, old_type, old_value, new_regular, new_type, new_value):
    if not old_regular:
        return None
    old_selling = selling_price(old_regular, old_type, old_value)
    if not old_selling:
        return None
    new_selling = selling_price(new_regular, new_type, new_value)
    return round((new_selling - old_selling) / old_selling * 100, 2)


def order_line(product, quantity):
    """Snapshot of ``product`` for an order line of ``quantity`` units."""
    quantity = float(quantity)
    active = product.is_discount_active()
    unit_price = product.selling_price
    unit_discount = product.discount_amount
    subtotal = round(unit_price * quantity, 2)
    return {
        'product_id': product.id,
        'product_name': product.name,
        'product_code': product.item_code,
        'quantity': quantity,
        'unit': product.stock_unit,
        'price': unit_price,
        'regular_price': product.regular_price,
        'discount_type': product.discount_type if active else 'none',
        'discount_value': product.discount_value if active else None,
        'discount_amount': round(unit_discount * quantity, 2),
        'subtotal': subtotal,
        'total': subtotal,
    }


def order_totals(lines):
    subtotal = round(sum(line['subtotal'] for line in lines), 2)
    discount = round(sum(line['discount_amount'] for line in lines), 2)
    return {
        'subtotal': subtotal,
        'discount_amount': discount,
        'total_amount': subtotal,
    }
