"""Celery tasks for membership maintenance."""
import logging

from celery import shared_task
from django.utils import timezone

from .models import Profile
from .stripe_service import BillingError, StripeService

logger = logging.getLogger(__name__)


@shared_task
def sync_subscription_statuses():
    """Re-read every stored subscription from Stripe and fix drifted membership flags."""
    profiles = Profile.objects.exclude(stripe_subscription_id='')
    checked = 0
    failed = 0
    for profile in profiles.iterator():
        checked += 1
        try:
            StripeService.sync_profile(profile)
        except BillingError as e:
            logger.error("Stripe sync skipped: %s", e.message)
            return {'checked': 0, 'failed': 0, 'skipped': True}
        except Exception as e:
            failed += 1
            logger.warning("Stripe sync failed for user %s: %s", profile.user_id, e)

    return {
        'checked': checked,
        'failed': failed,
        'timestamp': timezone.now().isoformat(),
    }
