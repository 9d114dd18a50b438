from models.customer import Customer

API = '/api/v1/customers'


def test_create_normalizes_number(client, staff_headers):
    response = client.post(API, json={
        'name': "Aisha O'Neil",
        'whatsapp_number': '050 123 4567',
        'address': 'Al Barsha, Dubai',
    }, headers=staff_headers)
    data = response.get_json()['data']
    assert response.status_code == 201
    assert data['whatsapp_number'] == '+971501234567'
    assert data['status'] == 'active'


def test_create_rejects_duplicate_normalized_number(client, staff_headers, make_customer):
    make_customer(whatsapp_number='+971501234567')
    response = client.post(API, json={'name': 'Omar', 'whatsapp_number': '0501234567'}, headers=staff_headers)
    assert response.status_code == 422
    assert response.get_json()['errors']['whatsapp_number'] == ['The whatsapp number has already been taken.']


def test_create_validates_country_and_name(client, staff_headers):
    response = client.post(API, json={'name': 'R2D2', 'whatsapp_number': '+971111234567'}, headers=staff_headers)
    errors = response.get_json()['errors']
    assert response.status_code == 422
    assert 'name' in errors
    assert errors['whatsapp_number'] == ['Please enter a valid UAE mobile number']


def test_partial_update(client, staff_headers, make_customer):
    customer_id = make_customer(name='Fatima', whatsapp_number='+971551112233')
    response = client.put(f'{API}/{customer_id}', json={'remarks': 'Prefers mornings'}, headers=staff_headers)
    data = response.get_json()['data']
    assert response.status_code == 200
    assert data['name'] == 'Fatima'
    assert data['whatsapp_number'] == '+971551112233'
    assert data['remarks'] == 'Prefers mornings'


def test_update_keeps_own_number(client, staff_headers, make_customer):
    customer_id = make_customer(whatsapp_number='+971551112233')
    response = client.put(f'{API}/{customer_id}', json={'whatsapp_number': '0551112233'}, headers=staff_headers)
    assert response.status_code == 200


def test_list_search_and_status(client, staff_headers, make_customer):
    make_customer(name='Fatima')
    make_customer(name='Omar', status='inactive')
    response = client.get(f'{API}?search=fat', headers=staff_headers)
    assert [c['name'] for c in response.get_json()['data']] == ['Fatima']
    response = client.get(f'{API}?status=inactive', headers=staff_headers)
    assert [c['name'] for c in response.get_json()['data']] == ['Omar']


def test_toggle_and_delete(client, staff_headers, admin_headers, make_customer, app):
    customer_id = make_customer()
    response = client.post(f'{API}/{customer_id}/toggle-status', headers=staff_headers)
    assert response.get_json()['data']['status'] == 'inactive'

    assert client.delete(f'{API}/{customer_id}', headers=staff_headers).status_code == 403
    assert client.delete(f'{API}/{customer_id}', headers=admin_headers).status_code == 200
    with app.app_context():
        assert Customer.query.get(customer_id) is None


def test_export_workbook(client, staff_headers, make_customer):
    make_customer(name='Fatima')
    response = client.get(f'{API}/export', headers=staff_headers)
    assert response.status_code == 200
    assert response.mimetype == 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    assert 'customers-' in response.headers['Content-Disposition']
    assert response.data[:2] == b'PK'
