from helpers import api_response


def test_pagination_meta_for_a_middle_page():
    meta = api_response.pagination_meta(page=2, per_page=10, total=25, count=10)
    assert meta == {'current_page': 2, 'from': 11, 'last_page': 3, 'per_page': 10, 'to': 20, 'total': 25}


def test_pagination_meta_for_the_last_partial_page():
    meta = api_response.pagination_meta(page=3, per_page=10, total=25, count=5)
    assert meta['from'] == 21
    assert meta['to'] == 25


def test_pagination_meta_when_empty():
    meta = api_response.pagination_meta(page=1, per_page=15, total=0, count=0)
    assert meta['from'] is None
    assert meta['to'] is None
    assert meta['last_page'] == 1


def test_error_envelope(app_ctx):
    response, status = api_response.error('Conflict', {'name': ['taken']}, 409)
    assert status == 409
    assert response.get_json() == {'success': False, 'message': 'Conflict', 'errors': {'name': ['taken']}}


def test_success_envelope_omits_empty_parts(app_ctx):
    response, status = api_response.success()
    assert status == 200
    assert response.get_json() == {'success': True}


def test_paginated_links(client, staff_headers, make_category):
    for _ in range(3):
        make_category()
    response = client.get('/api/v1/categories?per_page=2&page=1', headers=staff_headers)
    body = response.get_json()
    assert response.status_code == 200
    assert len(body['data']) == 2
    assert body['meta']['last_page'] == 2
    assert body['links']['prev'] is None
    assert 'page=2' in body['links']['next']
    assert 'per_page=2' in body['links']['next']


def test_unknown_api_route_is_json(client):
    response = client.get('/api/v1/nowhere')
    assert response.status_code == 404
    assert response.get_json() == {'success': False, 'message': 'Resource not found'}


def test_wrong_method_is_json(client):
    response = client.get('/api/v1/login')
    assert response.status_code == 405
    assert response.get_json()['success'] is False
