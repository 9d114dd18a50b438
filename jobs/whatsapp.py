"""Background WhatsApp delivery.

Run the worker with ``arq jobs.whatsapp.WorkerSettings``. With
``QUEUE_CONNECTION=sync`` the same work runs inline in the request.
"""
import asyncio
import random

import structlog
from arq import Retry
from arq.connections import RedisSettings, create_pool
from arq.worker import func
from flask import current_app

from config import Config
from models.customer import Customer
from services.customer_service import iter_customer_chunks
from services.whatsapp_service import get_service, summarize

logger = structlog.get_logger()

BATCH_TIMEOUT = 300
SEND_MAX_TRIES = 3
SEND_TIMEOUT = 30
RETRY_DELAY = 60


class DeliveryFailed(Exception):
    pass


def deliver(app, customer_id, message=None, media_url=None, template_id=None, content_variables=None):
    """Send one message inside an app context; raises ``DeliveryFailed`` when Twilio rejects it."""
    with app.app_context():
        customer = Customer.query.get(customer_id)
        if customer is None:
            logger.warning('whatsapp_customer_missing', customer_id=customer_id)
            return {'customer_id': customer_id, 'success': False, 'error': 'Customer not found'}
        result = get_service().send(customer, message=message, media_url=media_url,
                                    template_id=template_id, content_variables=content_variables)
        if not result['success']:
            raise DeliveryFailed(result['error'])
        return result


def collect_chunks(app, customer_ids=None):
    with app.app_context():
        return list(iter_customer_chunks(customer_ids))


async def send_whatsapp_message(ctx, customer_id, message=None, media_url=None, template_id=None,
                                content_variables=None):
    job_try = ctx.get('job_try', 1)
    try:
        return await asyncio.to_thread(deliver, ctx['app'], customer_id, message, media_url,
                                       template_id, content_variables)
    except Exception as exc:
        if job_try >= SEND_MAX_TRIES:
            logger.error('whatsapp_job_failed_permanently', customer_id=customer_id, tries=job_try, error=str(exc))
            raise
        logger.warning('whatsapp_job_retry', customer_id=customer_id, attempt=job_try, error=str(exc))
        raise Retry(defer=RETRY_DELAY) from exc


async def whatsapp_message_batch(ctx, customer_ids=None, message=None, media_url=None, template_id=None,
                                 content_variables=None):
    """Fan out one send job per customer, in id ordered chunks, spread over a few seconds."""
    app = ctx['app']
    chunks = await asyncio.to_thread(collect_chunks, app, customer_ids)
    queue_name = app.config['WHATSAPP_QUEUE_NAME']
    queued = 0
    for chunk in chunks:
        for customer_id in chunk:
            await ctx['redis'].enqueue_job(
                'send_whatsapp_message', customer_id, message, media_url, template_id, content_variables,
                _queue_name=queue_name,
                _defer_by=random.randint(1, 5),
            )
            queued += 1
    logger.info('whatsapp_batch_queued', chunks=len(chunks), queued=queued)
    return queued


def run_inline(app, customer_ids=None, message=None, media_url=None, template_id=None, content_variables=None):
    results = []
    for chunk in collect_chunks(app, customer_ids):
        for customer_id in chunk:
            try:
                results.append(deliver(app, customer_id, message, media_url, template_id, content_variables))
            except DeliveryFailed as exc:
                results.append({'customer_id': customer_id, 'success': False, 'error': str(exc)})
    return summarize(results)


async def enqueue_batch(redis_url, queue_name, customer_ids=None, **message):
    pool = await create_pool(RedisSettings.from_dsn(redis_url))
    try:
        job = await pool.enqueue_job('whatsapp_message_batch', customer_ids, _queue_name=queue_name, **message)
    finally:
        await pool.aclose()
    return job.job_id if job is not None else None


def dispatch_batch(customer_ids=None, message=None, media_url=None, template_id=None, content_variables=None):
    """Queue a batch send, or run it now when the queue connection is ``sync``."""
    app = current_app._get_current_object()
    message_args = dict(message=message, media_url=media_url, template_id=template_id,
                        content_variables=content_variables)
    if app.config['QUEUE_CONNECTION'] == 'sync':
        summary = run_inline(app, customer_ids, **message_args)
        return dict(summary, queued=False)
    job_id = asyncio.run(enqueue_batch(app.config['REDIS_URL'], app.config['WHATSAPP_QUEUE_NAME'],
                                       customer_ids, **message_args))
    logger.info('whatsapp_batch_dispatched', job_id=job_id, customers=len(customer_ids or []))
    return {'queued': True, 'job_id': job_id}


async def startup(ctx):
    from app import create_app
    ctx['app'] = create_app()
    logger.info('whatsapp_worker_startup', queue=Config.WHATSAPP_QUEUE_NAME)


async def shutdown(ctx):
    logger.info('whatsapp_worker_shutdown')


class WorkerSettings:
    redis_settings = RedisSettings.from_dsn(Config.REDIS_URL)
    queue_name = Config.WHATSAPP_QUEUE_NAME
    functions = [
        func(whatsapp_message_batch, max_tries=1, timeout=BATCH_TIMEOUT),
        func(send_whatsapp_message, max_tries=SEND_MAX_TRIES, timeout=SEND_TIMEOUT),
    ]
    on_startup = startup
    on_shutdown = shutdown
