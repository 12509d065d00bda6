"""
Celery tasks for the invoice request queue
"""
import logging
from datetime import datetime

from mindclinic.extensions import celery
from mindclinic.services.billing_service import retryable_request_ids, send_billing_request

logger = logging.getLogger(__name__)


@celery.task(name='tasks.process_billing_request')
def process_billing_request(request_id):
    """
    Hand one queued invoice request to the invoicing webhook

    Args:
        request_id: BillingRequest ID

    Returns:
        dict: Send result
    """
    try:
        return send_billing_request(request_id)
    except Exception as e:
        logger.error(f"Error processing invoice request {request_id}: {e}", exc_info=True)
        return {'success': False, 'error': str(e)}


@celery.task(name='tasks.retry_failed_billing_requests')
def retry_failed_billing_requests():
    """
    Re-send requests that failed to reach the webhook and still have retries left

    Returns:
        dict: Retry results
    """
    request_ids = retryable_request_ids()
    results = [send_billing_request(request_id) for request_id in request_ids]

    return {
        'success': True,
        'retried': len(request_ids),
        'sent': sum(1 for result in results if result.get('success')),
        'timestamp': datetime.now().isoformat()
    }
