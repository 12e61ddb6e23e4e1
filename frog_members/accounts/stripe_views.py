"""
Stripe webhook endpoint
"""
import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from frog_members.sentry_config import capture_exception

from .stripe_service import BillingError, StripeService

logger = logging.getLogger(__name__)


@csrf_exempt
@require_http_methods(["POST"])
def stripe_webhook(request):
    """
    POST /api/accounts/stripe/webhook/

    Handled events:
    - checkout.session.completed - membership starts
    - customer.subscription.updated - status / period end / cancel at period end
    - customer.subscription.deleted - membership ends
    """
    signature = request.headers.get('Stripe-Signature', '')
    try:
        event = StripeService.construct_event(request.body, signature)
    except BillingError as e:
        logger.warning("Rejected Stripe webhook: %s", e.message)
        return JsonResponse({'error': e.message}, status=e.status_code)

    try:
        outcome = StripeService.handle_event(event)
    except Exception as e:
        logger.exception("Stripe webhook %s failed: %s", event.get('type'), e)
        capture_exception(e, {'stripe_event_id': event.get('id'), 'stripe_event_type': event.get('type')})
        return JsonResponse({'error': 'Webhook handler failed'}, status=500)

    logger.info("Stripe webhook %s handled: %s", event.get('type'), outcome)
    return JsonResponse({'received': True})
