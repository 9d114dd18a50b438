import re

import pytest

from models.customer import Customer
from models.order import Order

CUSTOMER = {
    'customer_name': 'Aisha Khan',
    'whatsapp': '+971501234567',
    'email': 'aisha@example.com',
    'address': 'Villa 12, Jumeirah, Dubai',
    'notes': 'Ring the bell',
}


@pytest.fixture
def catalog(make_category, make_product):
    vegetables = make_category(name='Vegetables', display_order=1)
    fruits = make_category(name='Fruits', display_order=2)
    return {
        'tomato': make_product(name='Tomato', regular_price=4, category_id=vegetables),
        'banana': make_product(name='Banana', regular_price=10, discount_type='percentage', discount_value=10,
                               category_id=fruits),
        'hidden': make_product(name='Hidden', regular_price=3, status='inactive', category_id=fruits),
    }


def _review(client, quantities):
    return client.post('/order-review', json={'products': {str(pid): {'qty': qty} for pid, qty in quantities.items()}})


def _place_order(client, catalog, **overrides):
    _review(client, {catalog['tomato']: 2, catalog['banana']: 3})
    return client.post('/order/confirmation', json=dict(CUSTOMER, **overrides))


def test_order_form_lists_active_products(client, catalog):
    response = client.get('/')
    html = response.get_data(as_text=True)
    assert response.status_code == 200
    assert 'Tomato' in html
    assert 'Banana' in html
    assert 'Hidden' not in html
    assert f"products[{catalog['tomato']}][qty]" in html
    assert html.index('Vegetables') < html.index('Fruits')


def test_review_renders_selection(client, catalog):
    response = client.post('/order-review', data={
        f"products[{catalog['tomato']}][qty]": '2',
        f"products[{catalog['banana']}][qty]": '0',
    })
    html = response.get_data(as_text=True)
    assert response.status_code == 200
    assert 'Tomato' in html
    assert 'Banana' not in html
    assert 'AED 8.00' in html

    again = client.get('/order-review')
    assert again.status_code == 200
    assert 'Tomato' in again.get_data(as_text=True)


def test_review_rejects_empty_selection(client, catalog):
    response = client.post('/order-review', data={f"products[{catalog['tomato']}][qty]": ''})
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/')

    response = client.post('/order-review', json={'products': {}})
    assert response.status_code == 422


def test_review_json_totals(client, catalog):
    response = _review(client, {catalog['tomato']: 2, catalog['banana']: 3, catalog['hidden']: 1})
    data = response.get_json()['data']
    assert [line['product_name'] for line in data['items']] == ['Banana', 'Tomato']
    assert data['totals'] == {'subtotal': 35.0, 'discount_amount': 3.0, 'total_amount': 35.0}


def test_order_pdf(client, catalog):
    response = client.post('/order-form/pdf', data={f"products[{catalog['tomato']}][qty]": '1.5'})
    assert response.status_code == 200
    assert response.mimetype == 'application/pdf'
    assert response.data.startswith(b'%PDF')


def test_confirm_order_creates_snapshot(client, catalog, app):
    response = _place_order(client, catalog, grand_total=35)
    data = response.get_json()['data']
    assert response.status_code == 201
    assert re.match(r'^ORD-\d{8}-[0-9A-F]{6}$', data['order_number'])
    assert data['status'] == 'pending'
    assert data['payment_status'] == 'unpaid'
    assert data['total_amount'] == 35.0
    assert data['discount_amount'] == 3.0
    assert data['customer_phone'] == '+971501234567'
    banana = next(item for item in data['items'] if item['product_name'] == 'Banana')
    assert banana['price'] == 9.0
    assert banana['discount_type'] == 'percentage'
    assert banana['total'] == 27.0

    with app.app_context():
        customer = Customer.query.filter_by(whatsapp_number='+971501234567').one()
        assert customer.name == 'Aisha Khan'
        assert customer.orders.count() == 1

    confirmation = client.get('/order/confirmation')
    assert data['order_number'] in confirmation.get_data(as_text=True)
    # the selection is cleared once the order is placed
    assert client.get('/order-review').status_code == 302


def test_confirm_order_reuses_customer(client, catalog, make_customer, app):
    customer_id = make_customer(name='Existing', whatsapp_number='+919876543210')
    response = _place_order(client, catalog, whatsapp='9876543210')
    assert response.status_code == 201
    assert response.get_json()['data']['customer_id'] == customer_id
    with app.app_context():
        assert Customer.query.count() == 1


@pytest.mark.parametrize('overrides, field', [
    ({'address': 'Downtown, Abu Dhabi'}, 'address'),
    ({'whatsapp': '12345'}, 'whatsapp'),
    ({'customer_name': 'A1'}, 'customer_name'),
    ({'email': 'not-an-email'}, 'email'),
])
def test_confirm_order_validation(client, catalog, overrides, field):
    response = _place_order(client, catalog, **overrides)
    assert response.status_code == 422
    assert field in response.get_json()['errors']


def test_confirm_order_rejects_stale_total(client, catalog, app):
    response = _place_order(client, catalog, grand_total=30)
    assert response.status_code == 422
    assert 'grand_total' in response.get_json()['errors']
    with app.app_context():
        assert Order.query.count() == 0


def test_confirm_order_web_flow(client, catalog):
    client.post('/order-review', data={f"products[{catalog['tomato']}][qty]": '1'})
    response = client.post('/order/confirmation', data=dict(CUSTOMER, address='Marina'))
    assert response.status_code == 422
    assert 'We currently deliver only within Dubai' in response.get_data(as_text=True)

    response = client.post('/order/confirmation', data=CUSTOMER)
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/order/confirmation')


def test_confirm_without_selection_redirects(client, catalog):
    response = client.post('/order/confirmation', data=CUSTOMER)
    assert response.status_code == 302


def _placed_order_id(client, catalog):
    return _place_order(client, catalog).get_json()['data']['id']


def test_list_and_show_orders(client, catalog, staff_headers):
    order_id = _placed_order_id(client, catalog)
    response = client.get('/api/v1/orders?status=pending&search=Aisha', headers=staff_headers)
    body = response.get_json()
    assert body['meta']['total'] == 1
    assert 'items' not in body['data'][0]

    response = client.get(f'/api/v1/orders/{order_id}', headers=staff_headers)
    assert len(response.get_json()['data']['items']) == 2


def test_customer_orders(client, catalog, staff_headers):
    customer_id = _place_order(client, catalog).get_json()['data']['customer_id']
    response = client.get(f'/api/v1/customers/{customer_id}/orders', headers=staff_headers)
    assert response.get_json()['meta']['total'] == 1


def test_status_transitions(client, catalog, staff_headers):
    order_id = _placed_order_id(client, catalog)
    url = f'/api/v1/orders/{order_id}'

    response = client.post(f'{url}/status', json={'status': 'delivered', 'payment_status': 'paid'},
                           headers=staff_headers)
    data = response.get_json()['data']
    assert data['status'] == 'delivered'
    assert data['payment_status'] == 'paid'
    assert data['delivery_date'] is not None

    response = client.post(f'{url}/cancel', json={'reason': 'Too late'}, headers=staff_headers)
    assert response.status_code == 422

    response = client.post(f'{url}/status', json={'status': 'shipped'}, headers=staff_headers)
    assert response.status_code == 422


def test_status_endpoint_cannot_cancel_delivered_order(client, catalog, staff_headers):
    order_id = _placed_order_id(client, catalog)
    url = f'/api/v1/orders/{order_id}'
    client.post(f'{url}/status', json={'status': 'delivered'}, headers=staff_headers)

    response = client.post(f'{url}/status', json={'status': 'cancelled'}, headers=staff_headers)
    assert response.status_code == 422
    assert client.get(url, headers=staff_headers).get_json()['data']['status'] == 'delivered'


def test_cancelling_through_status_endpoint_records_note(client, catalog, staff_headers):
    order_id = _placed_order_id(client, catalog)
    response = client.post(f'/api/v1/orders/{order_id}/status',
                           json={'status': 'cancelled', 'admin_notes': 'Out of stock'}, headers=staff_headers)
    data = response.get_json()['data']
    assert response.status_code == 200
    assert data['status'] == 'cancelled'
    assert data['admin_notes'] == 'Cancelled: Out of stock'


def test_cancel_order(client, catalog, staff_headers):
    order_id = _placed_order_id(client, catalog)
    url = f'/api/v1/orders/{order_id}'
    response = client.post(f'{url}/cancel', json={'reason': 'Customer request'}, headers=staff_headers)
    data = response.get_json()['data']
    assert data['status'] == 'cancelled'
    assert data['admin_notes'] == 'Cancelled: Customer request'

    assert client.post(f'{url}/cancel', headers=staff_headers).status_code == 422
    assert client.post(f'{url}/status', json={'status': 'confirmed'}, headers=staff_headers).status_code == 422


def test_statistics(client, catalog, staff_headers):
    first = _placed_order_id(client, catalog)
    _placed_order_id(client, catalog)
    client.post(f'/api/v1/orders/{first}/cancel', headers=staff_headers)

    data = client.get('/api/v1/orders/statistics', headers=staff_headers).get_json()['data']
    assert data['total_orders'] == 2
    assert data['by_status']['cancelled'] == 1
    assert data['by_status']['pending'] == 1
    assert data['total_revenue'] == 35.0
    assert data['today_orders'] == 2
    assert data['today_revenue'] == 35.0


def test_delete_order_requires_admin(client, catalog, staff_headers, admin_headers):
    order_id = _placed_order_id(client, catalog)
    assert client.delete(f'/api/v1/orders/{order_id}', headers=staff_headers).status_code == 403
    assert client.delete(f'/api/v1/orders/{order_id}', headers=admin_headers).status_code == 200
    assert client.get(f'/api/v1/orders/{order_id}', headers=admin_headers).status_code == 404
