"""
Stripe membership billing.

Checkout creates the subscription, the billing portal lets members manage
cards and invoices, and webhooks keep Profile membership columns in sync.
"""
import logging
import os
from datetime import datetime, timezone as dt_timezone

import stripe
from django.conf import settings
from django.db import transaction

from .models import Profile

logger = logging.getLogger(__name__)

# Statuses that keep member access
MEMBER_STATUSES = ('active', 'trialing', 'past_due')
ENDED_STATUSES = ('canceled', 'incomplete_expired')


class BillingError(Exception):
    """Billing failure carrying the HTTP status the API should answer with"""

    def __init__(self, message, status_code=400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def get_stripe_config():
    return {
        'secret_key': getattr(settings, 'STRIPE_SECRET_KEY', None) or os.environ.get('STRIPE_SECRET_KEY', ''),
        'price_id': getattr(settings, 'STRIPE_PRICE_ID', None) or os.environ.get('STRIPE_PRICE_ID', ''),
        'webhook_secret': getattr(settings, 'STRIPE_WEBHOOK_SECRET', None) or os.environ.get('STRIPE_WEBHOOK_SECRET', ''),
    }


def _configure_stripe():
    config = get_stripe_config()
    if not config['secret_key']:
        raise BillingError('Stripe is not configured', status_code=503)
    stripe.api_key = config['secret_key']
    return config


def _app_url():
    return getattr(settings, 'APP_URL', 'http://localhost:3000').rstrip('/')


def _period_end(subscription):
    """current_period_end moved to subscription items in newer API versions."""
    timestamp = subscription.get('current_period_end')
    if not timestamp:
        items = (subscription.get('items') or {}).get('data') or []
        if items:
            timestamp = items[0].get('current_period_end')
    if not timestamp:
        return None
    return datetime.fromtimestamp(int(timestamp), tz=dt_timezone.utc)


def _mark_canceled(profile):
    profile.is_member = False
    profile.subscription_status = Profile.STATUS_CANCELED
    profile.stripe_subscription_id = ''
    profile.save(update_fields=['is_member', 'subscription_status', 'stripe_subscription_id', 'updated_at'])


def apply_subscription_state(profile, subscription):
    """Copy a Stripe subscription's state onto the profile."""
    sub_status = subscription.get('status') or ''

    if sub_status in ENDED_STATUSES:
        _mark_canceled(profile)
        return profile

    profile.subscription_period_end = _period_end(subscription) or profile.subscription_period_end
    if subscription.get('cancel_at_period_end'):
        # Access continues until the paid period ends
        profile.subscription_status = Profile.STATUS_CANCELING
    else:
        profile.subscription_status = sub_status
        profile.is_member = sub_status in MEMBER_STATUSES

    if subscription.get('id'):
        profile.stripe_subscription_id = subscription['id']
    if subscription.get('customer') and isinstance(subscription['customer'], str):
        profile.stripe_customer_id = subscription['customer']

    profile.save(update_fields=[
        'is_member',
        'subscription_status',
        'subscription_period_end',
        'stripe_subscription_id',
        'stripe_customer_id',
        'updated_at',
    ])
    return profile


class StripeService:
    """Membership billing operations on top of the Stripe SDK"""

    @staticmethod
    def create_checkout_session(profile):
        """
        Create a subscription Checkout Session for the member.

        Returns:
            dict: {'sessionId': str, 'url': str}
        """
        if profile.is_member:
            raise BillingError('You already have an active membership', status_code=400)

        config = _configure_stripe()
        if not config['price_id']:
            raise BillingError('Stripe price is not configured', status_code=503)

        app_url = _app_url()
        try:
            session = stripe.checkout.Session.create(
                mode='subscription',
                payment_method_types=['card'],
                line_items=[{'price': config['price_id'], 'quantity': 1}],
                success_url=f"{app_url}/learning/success",
                cancel_url=f"{app_url}/learning",
                customer_email=profile.email or profile.user.email,
                client_reference_id=str(profile.user_id),
                metadata={'userId': str(profile.user_id)},
            )
        except stripe.StripeError as e:
            logger.error("Stripe checkout session failed for user %s: %s", profile.user_id, e)
            raise BillingError('Could not create checkout session', status_code=502) from e

        logger.info("Checkout session %s created for user %s", session['id'], profile.user_id)
        return {'sessionId': session['id'], 'url': session['url']}

    @staticmethod
    def create_portal_session(profile):
        """Billing portal session; the member returns to /settings."""
        if not profile.stripe_customer_id:
            raise BillingError('No Stripe customer found for this account', status_code=404)

        _configure_stripe()
        try:
            session = stripe.billing_portal.Session.create(
                customer=profile.stripe_customer_id,
                return_url=f"{_app_url()}/settings",
            )
        except stripe.StripeError as e:
            if 'No configuration provided' in str(e):
                raise BillingError(
                    'The Stripe customer portal is not configured yet. Please contact support.',
                    status_code=400,
                ) from e
            logger.error("Stripe portal session failed for user %s: %s", profile.user_id, e)
            raise BillingError('Could not create portal session', status_code=502) from e

        return {'url': session['url']}

    @staticmethod
    def cancel_subscription(profile):
        """
        Cancel the member's subscription immediately.

        A subscription Stripe already canceled or no longer knows only
        updates the profile. The stored subscription id is cleared.
        """
        subscription_id = profile.stripe_subscription_id
        if not subscription_id:
            raise BillingError('No active subscription found', status_code=400)

        _configure_stripe()
        try:
            subscription = stripe.Subscription.retrieve(subscription_id)
            if subscription.get('status') != 'canceled':
                stripe.Subscription.cancel(subscription_id)
                logger.info("Subscription %s canceled for user %s", subscription_id, profile.user_id)
            else:
                logger.info("Subscription %s was already canceled", subscription_id)
        except stripe.InvalidRequestError as e:
            if getattr(e, 'code', None) != 'resource_missing':
                logger.error("Stripe cancel failed for %s: %s", subscription_id, e)
                raise BillingError('Could not cancel subscription', status_code=502) from e
            logger.warning("Subscription %s not found in Stripe, updating profile only", subscription_id)
        except stripe.StripeError as e:
            logger.error("Stripe cancel failed for %s: %s", subscription_id, e)
            raise BillingError('Could not cancel subscription', status_code=502) from e

        _mark_canceled(profile)
        return profile

    @staticmethod
    def construct_event(payload, signature):
        """Verify the Stripe-Signature header and decode the event."""
        config = get_stripe_config()
        if not config['webhook_secret']:
            raise BillingError('Stripe webhook secret is not configured', status_code=503)
        try:
            return stripe.Webhook.construct_event(payload, signature, config['webhook_secret'])
        except (ValueError, stripe.SignatureVerificationError) as e:
            raise BillingError(f'Webhook signature verification failed: {e}', status_code=400) from e

    @staticmethod
    def handle_event(event):
        """
        Apply a webhook event to the matching profile.

        Returns a short outcome string used for logging.
        """
        event_type = event['type']
        obj = event['data']['object']

        if event_type == 'checkout.session.completed':
            return StripeService._handle_checkout_completed(obj)
        if event_type == 'customer.subscription.updated':
            return StripeService._handle_subscription_updated(obj)
        if event_type == 'customer.subscription.deleted':
            return StripeService._handle_subscription_deleted(obj)

        logger.info("Unhandled Stripe event: %s", event_type)
        return 'ignored'

    @staticmethod
    def _find_profile_for_subscription(subscription):
        subscription_id = subscription.get('id')
        customer_id = subscription.get('customer')
        profile = None
        if subscription_id:
            profile = Profile.objects.filter(stripe_subscription_id=subscription_id).first()
        if profile is None and customer_id:
            profile = Profile.objects.filter(stripe_customer_id=customer_id).first()
        return profile

    @staticmethod
    def _handle_checkout_completed(session):
        user_id = session.get('client_reference_id') or (session.get('metadata') or {}).get('userId')
        if not user_id:
            logger.warning("checkout.session.completed without user reference: %s", session.get('id'))
            return 'no_user'

        profile = Profile.objects.filter(user_id=user_id).first()
        if profile is None:
            logger.warning("checkout.session.completed for unknown user %s", user_id)
            return 'profile_not_found'

        subscription_id = session.get('subscription')
        customer_id = session.get('customer')

        with transaction.atomic():
            profile.is_member = True
            profile.stripe_customer_id = customer_id or profile.stripe_customer_id
            profile.stripe_subscription_id = subscription_id or profile.stripe_subscription_id
            profile.subscription_status = Profile.STATUS_ACTIVE

            if subscription_id:
                _configure_stripe()
                subscription = stripe.Subscription.retrieve(subscription_id)
                profile.subscription_status = subscription.get('status') or Profile.STATUS_ACTIVE
                profile.subscription_period_end = _period_end(subscription)

            profile.save()

        logger.info("Membership activated for user %s (subscription %s)", user_id, subscription_id)
        return 'activated'

    @staticmethod
    def _handle_subscription_updated(subscription):
        profile = StripeService._find_profile_for_subscription(subscription)
        if profile is None:
            logger.warning("Subscription %s updated but no profile matches", subscription.get('id'))
            return 'profile_not_found'
        apply_subscription_state(profile, subscription)
        return 'updated'

    @staticmethod
    def _handle_subscription_deleted(subscription):
        profile = StripeService._find_profile_for_subscription(subscription)
        if profile is None:
            logger.warning("Subscription %s deleted but no profile matches", subscription.get('id'))
            return 'profile_not_found'
        _mark_canceled(profile)
        logger.info("Membership ended for user %s", profile.user_id)
        return 'canceled'

    @staticmethod
    def sync_profile(profile):
        """Re-read the subscription from Stripe and apply it to the profile."""
        _configure_stripe()
        try:
            subscription = stripe.Subscription.retrieve(profile.stripe_subscription_id)
        except stripe.InvalidRequestError as e:
            if getattr(e, 'code', None) == 'resource_missing':
                _mark_canceled(profile)
                return profile
            raise
        return apply_subscription_state(profile, subscription)
