"""JSON envelopes returned by every /api/v1 endpoint."""
import math

from flask import jsonify, request, url_for


def success(data=None, message=None, status=200):
    body = {'success': True}
    if message:
        body['message'] = message
    if data is not None:
        body['data'] = data
    return jsonify(body), status


def created(data=None, message='Resource created successfully'):
    return success(data, message, 201)


def error(message='An error occurred', errors=None, status=400):
    body = {'success': False, 'message': message}
    if errors:
        body['errors'] = errors
    return jsonify(body), status


def not_found(message='Resource not found'):
    return error(message, status=404)


def unauthorized(message='Unauthenticated'):
    return error(message, status=401)


def forbidden(message='Forbidden'):
    return error(message, status=403)


def validation_error(errors, message='The given data was invalid.'):
    return error(message, errors, 422)


def pagination_meta(page, per_page, total, count):
    if count:
        first = (page - 1) * per_page + 1
        last = first + count - 1
    else:
        first = last = None
    return {
        'current_page': page,
        'from': first,
        'last_page': max(1, math.ceil(total / per_page)) if per_page else 1,
        'per_page': per_page,
        'to': last,
        'total': total,
    }


def _page_url(page):
    params = dict(request.view_args or {})
    params.update(request.args.to_dict())
    params['page'] = page
    return url_for(request.endpoint, _external=True, **params)


def paginated(pagination, items, message=None, extra_meta=None):
    """Envelope for a Flask-SQLAlchemy ``Pagination`` and its serialized items."""
    meta = pagination_meta(pagination.page, pagination.per_page, pagination.total, len(items))
    if extra_meta:
        meta.update(extra_meta)
    last_page = meta['last_page']
    body = {'success': True}
    if message:
        body['message'] = message
    body['data'] = items
    body['meta'] = meta
    body['links'] = {
        'first': _page_url(1),
        'last': _page_url(last_page),
        'prev': _page_url(pagination.page - 1) if pagination.page > 1 else None,
        'next': _page_url(pagination.page + 1) if pagination.page < last_page else None,
    }
    return jsonify(body), 200
