def _register(client, **overrides):
    payload = {
        'username': 'newuser',
        'email': 'new@example.com',
        'password': 'secret123',
        'password_confirmation': 'secret123',
    }
    payload.update(overrides)
    return client.post('/api/v1/register', json=payload)


def test_register_returns_token(client):
    response = _register(client)
    body = response.get_json()
    assert response.status_code == 201
    assert body['data']['user']['username'] == 'newuser'
    assert body['data']['user']['role'] == 'staff'
    assert body['data']['token_type'] == 'Bearer'

    me = client.get('/api/v1/user', headers={'Authorization': f"Bearer {body['data']['token']}"})
    assert me.status_code == 200
    assert me.get_json()['data']['username'] == 'newuser'


def test_register_validation(client):
    _register(client)
    response = _register(client, password_confirmation='different')
    errors = response.get_json()['errors']
    assert response.status_code == 422
    assert 'username' in errors
    assert 'password_confirmation' in errors


def test_login_and_logout(client, staff_headers):
    response = client.post('/api/v1/login', json={'username': 'staff', 'password': 'secret123'})
    assert response.status_code == 200
    token = response.get_json()['data']['token']
    headers = {'Authorization': f'Bearer {token}'}

    assert client.post('/api/v1/logout', headers=headers).status_code == 200
    assert client.get('/api/v1/user', headers=headers).status_code == 401


def test_login_rejects_bad_password(client, staff_headers):
    response = client.post('/api/v1/login', json={'username': 'staff', 'password': 'wrong'})
    assert response.status_code == 401
    assert response.get_json()['message'] == 'Invalid credentials'


def test_api_requires_token(client):
    response = client.get('/api/v1/products')
    assert response.status_code == 401
    assert response.get_json() == {'success': False, 'message': 'Unauthenticated'}


def test_unknown_token_is_rejected(client):
    response = client.get('/api/v1/products', headers={'Authorization': 'Bearer nope'})
    assert response.status_code == 401
