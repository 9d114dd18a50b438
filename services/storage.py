import os
import re
import uuid
from datetime import datetime

import structlog
from flask import current_app, has_request_context, url_for
from werkzeug.utils import secure_filename

logger = structlog.get_logger()


def media_root():
    return current_app.config['MEDIA_ROOT']


def media_path(relative_path):
    return os.path.join(media_root(), *relative_path.split('/'))


def media_url(relative_path):
    if not relative_path:
        return None
    if has_request_context():
        return url_for('media', path=relative_path, _external=True)
    base = current_app.config.get('APP_URL', '').rstrip('/')
    return f'{base}/media/{relative_path}'


def _store(file_storage, folder, filename):
    directory = os.path.join(media_root(), folder)
    os.makedirs(directory, exist_ok=True)
    file_storage.save(os.path.join(directory, filename))
    return f'{folder}/{filename}'


def save_image(file_storage, folder):
    """Store an uploaded image under ``folder`` and return its media path."""
    ext = os.path.splitext(secure_filename(file_storage.filename))[1].lower() or '.jpg'
    path = _store(file_storage, folder, f'{uuid.uuid4().hex}{ext}')
    logger.info('image_stored', path=path)
    return path


def sanitize_pdf_name(filename):
    stem = os.path.splitext(secure_filename(filename or ''))[0]
    stem = re.sub(r'[^A-Za-z0-9_-]', '-', stem).strip('-').lower()
    return stem[:60] or 'document'


def save_custom_pdf(file_storage):
    stem = sanitize_pdf_name(file_storage.filename)
    stamp = datetime.utcnow().strftime('%Y%m%d%H%M%S')
    path = _store(file_storage, 'pdfs/custom', f'{stem}-{stamp}-{uuid.uuid4().hex[:8]}.pdf')
    logger.info('custom_pdf_stored', path=path)
    return path


def delete_file(relative_path):
    if not relative_path:
        return False
    full_path = media_path(relative_path)
    if os.path.isfile(full_path):
        os.remove(full_path)
        logger.info('media_deleted', path=relative_path)
        return True
    return False
