import os
from datetime import date, timedelta
from io import BytesIO

import pytest

from models import db
from models.order import Order, OrderItem
from models.price_update import PriceUpdate
from models.product import Product

API = '/api/v1/products'


def test_create_product_normalizes_input(client, staff_headers, make_category, app):
    category_id = make_category(name='Vegetables')
    response = client.post(API, json={
        'name': '  Tomato ',
        'item_code': 'tom-001',
        'regular_price': 4.5,
        'category_id': category_id,
        'stock_quantity': 120,
    }, headers=staff_headers)
    data = response.get_json()['data']
    assert response.status_code == 201
    assert data['name'] == 'Tomato'
    assert data['item_code'] == 'TOM-001'
    assert data['discount_type'] == 'none'
    assert data['product_type'] == 'daily'
    assert data['status'] == 'active'
    assert data['selling_price'] == 4.5
    assert data['stock_status'] == 'in_stock'
    assert data['category'] == {'id': category_id, 'name': 'Vegetables'}

    with app.app_context():
        audit = PriceUpdate.query.filter_by(product_id=data['id']).all()
        assert len(audit) == 1
        assert audit[0].old_regular_price is None
        assert audit[0].new_selling_price == 4.5


def test_create_product_with_discount(client, staff_headers):
    response = client.post(API, json={
        'name': 'Banana',
        'item_code': 'BAN-1',
        'regular_price': 20,
        'discount_type': 'percentage',
        'discount_value': 25,
        'discount_start_date': date.today().isoformat(),
    }, headers=staff_headers)
    data = response.get_json()['data']
    assert response.status_code == 201
    assert data['has_discount'] is True
    assert data['selling_price'] == 15.0
    assert data['discount_amount'] == 5.0
    assert data['discount_percentage'] == 25.0


@pytest.mark.parametrize('payload, field', [
    ({'discount_type': 'percentage', 'discount_value': 120}, 'discount_value'),
    ({'discount_type': 'fixed', 'discount_value': 10}, 'discount_value'),
    ({'discount_type': 'fixed'}, 'discount_value'),
    ({'discount_type': 'percentage', 'discount_value': 5,
      'discount_start_date': '2026-05-10', 'discount_end_date': '2026-05-01'}, 'discount_end_date'),
    ({'regular_price': 1000000}, 'regular_price'),
    ({'stock_unit': 'Boxes'}, 'stock_unit'),
])
def test_create_product_rejects_invalid_discounts(client, staff_headers, payload, field):
    body = {'name': 'Apple', 'item_code': 'APL-1', 'regular_price': 10}
    body.update(payload)
    response = client.post(API, json=body, headers=staff_headers)
    assert response.status_code == 422
    assert field in response.get_json()['errors']


def test_create_product_rejects_duplicate_code(client, staff_headers, make_product):
    make_product(item_code='DUP-1')
    response = client.post(API, json={'name': 'Copy', 'item_code': 'dup-1', 'regular_price': 3},
                           headers=staff_headers)
    assert response.status_code == 422
    assert 'item_code' in response.get_json()['errors']


def test_update_checks_discount_against_stored_price(client, staff_headers, make_product):
    product_id = make_product(regular_price=10)
    response = client.put(f'{API}/{product_id}', json={'discount_type': 'fixed', 'discount_value': 12},
                          headers=staff_headers)
    assert response.status_code == 422

    response = client.put(f'{API}/{product_id}', json={'discount_type': 'fixed', 'discount_value': 3},
                          headers=staff_headers)
    assert response.status_code == 200
    assert response.get_json()['data']['selling_price'] == 7.0


def test_update_records_price_change(client, staff_headers, make_product, app):
    product_id = make_product(name='Onion', regular_price=10, discount_type='percentage', discount_value=10)
    response = client.put(f'{API}/{product_id}', json={'regular_price': 12}, headers=staff_headers)
    data = response.get_json()['data']
    assert response.status_code == 200
    assert data['name'] == 'Onion'
    assert data['selling_price'] == 10.8

    client.put(f'{API}/{product_id}', json={'name': 'Red Onion'}, headers=staff_headers)

    with app.app_context():
        audit = PriceUpdate.query.filter_by(product_id=product_id).all()
        assert len(audit) == 1
        assert audit[0].old_selling_price == 9.0
        assert audit[0].new_selling_price == 10.8
        assert audit[0].price_change_percentage == 20.0


def test_removing_discount_clears_value(client, staff_headers, make_product):
    product_id = make_product(regular_price=10, discount_type='fixed', discount_value=2)
    response = client.put(f'{API}/{product_id}', json={'discount_type': 'none'}, headers=staff_headers)
    data = response.get_json()['data']
    assert data['discount_type'] == 'none'
    assert data['discount_value'] is None
    assert data['selling_price'] == 10.0


def test_list_filters(client, staff_headers, make_product, make_category):
    fruits = make_category(name='Fruits')
    make_product(name='Apple', stock_quantity=5, category_id=fruits)
    make_product(name='Banana', stock_quantity=0, category_id=fruits)
    make_product(name='Carrot', stock_quantity=80, discount_type='percentage', discount_value=10)
    make_product(name='Dates', stock_quantity=80, discount_type='percentage', discount_value=10,
                 discount_start_date=date.today() + timedelta(days=2))
    make_product(name='Eggplant', status='inactive', product_type='standard')

    def names(query):
        response = client.get(f'{API}?{query}', headers=staff_headers)
        assert response.status_code == 200
        return sorted(p['name'] for p in response.get_json()['data'])

    assert names('stock_status=low_stock') == ['Apple']
    assert names('stock_status=out_of_stock') == ['Banana']
    assert names('has_discount=true') == ['Carrot']
    assert names('category=fruits') == ['Apple', 'Banana']
    assert names(f'category_id={fruits}') == ['Apple', 'Banana']
    assert names('status=inactive') == ['Eggplant']
    assert names('product_type=standard') == ['Eggplant']
    assert names('search=carr') == ['Carrot']


def test_list_sorting_and_aliases(client, staff_headers, make_product):
    make_product(name='Plain', regular_price=10)
    make_product(name='Discounted', regular_price=30, discount_type='percentage', discount_value=50)
    make_product(name='Middle', regular_price=12)

    response = client.get(f'{API}?orderby=selling_price&sort=asc', headers=staff_headers)
    assert [p['name'] for p in response.get_json()['data']] == ['Plain', 'Middle', 'Discounted']

    response = client.get(f'{API}?sort_by=name&sort_order=asc&limit=2', headers=staff_headers)
    body = response.get_json()
    assert [p['name'] for p in body['data']] == ['Discounted', 'Middle']
    assert body['meta']['per_page'] == 2
    assert body['meta']['last_page'] == 2


def test_list_rejects_unknown_sort(client, staff_headers):
    response = client.get(f'{API}?sort_by=password', headers=staff_headers)
    assert response.status_code == 422


def test_delete_product(client, staff_headers, admin_headers, make_product, app):
    ordered = make_product(name='Ordered')
    unused = make_product(name='Unused')
    with app.app_context():
        order = Order(order_number='ORD-20260101-ABC123', subtotal=10, total_amount=10)
        order.items.append(OrderItem(product_id=ordered, quantity=1, price=10, subtotal=10, total=10))
        db.session.add(order)
        db.session.commit()

    assert client.delete(f'{API}/{unused}', headers=staff_headers).status_code == 403
    assert client.delete(f'{API}/{ordered}', headers=admin_headers).status_code == 422
    assert client.delete(f'{API}/{unused}', headers=admin_headers).status_code == 200
    with app.app_context():
        assert Product.query.get(unused) is None


def test_toggle_status(client, staff_headers, make_product):
    product_id = make_product()
    response = client.post(f'{API}/{product_id}/toggle-status', headers=staff_headers)
    assert response.get_json()['data']['status'] == 'inactive'


def test_update_replaces_then_removes_image(client, staff_headers, make_product, app):
    product_id = make_product()
    response = client.put(f'{API}/{product_id}', data={'image': (BytesIO(b'png-bytes'), 'tomato.png')},
                          headers=staff_headers, content_type='multipart/form-data')
    data = response.get_json()['data']
    assert response.status_code == 200
    assert data['image'].startswith('product/')
    stored = os.path.join(app.config['MEDIA_ROOT'], *data['image'].split('/'))
    assert os.path.isfile(stored)

    response = client.put(f'{API}/{product_id}', json={'image_removed': True}, headers=staff_headers)
    data = response.get_json()['data']
    assert response.status_code == 200
    assert data['image'] is None
    assert data['image_url'] is None
    assert not os.path.exists(stored)


def test_barcode_svg(client, staff_headers, make_product):
    product_id = make_product(item_code='TOM-001')
    response = client.get(f'{API}/{product_id}/barcode', headers=staff_headers)
    assert response.status_code == 200
    assert response.mimetype == 'image/svg+xml'
    assert b'<svg' in response.data


def test_missing_product(client, staff_headers):
    response = client.get(f'{API}/999', headers=staff_headers)
    assert response.status_code == 404
    assert response.get_json()['message'] == 'Product not found'
