"""
Profile lifecycle helpers: read-or-create, onboarding and admin checks.
"""
import logging

from django.conf import settings
from django.db import transaction

from integrations import slack_service

from .models import AdminRole, Profile

logger = logging.getLogger(__name__)

ONBOARDING_FIELDS = (
    'first_name',
    'last_name',
    'phone',
    'current_location',
    'migration_goal',
    'future_occupation',
    'english_level',
    'work_experience',
    'goal_location',
    'goal_deadline',
    'visa_status',
)


def ensure_profile(user):
    """
    Return (profile, created) for the identity, creating the row if needed.

    Profile.user is one-to-one, so get_or_create falls back to reading the
    existing row when a concurrent request inserted it first. A new profile
    triggers the "new user" Slack notification.
    """
    profile, created = Profile.objects.get_or_create(
        user=user,
        defaults={
            'email': user.email,
            'first_name': user.first_name or '',
            'last_name': user.last_name or '',
        },
    )
    if created:
        logger.info("Profile created for user %s", user.pk)
        result = slack_service.notify_new_user(profile)
        if not result.ok:
            logger.info("New user notification not sent: %s", result.error)
    return profile, created


def get_profile(user):
    """Profile of an authenticated user, created lazily for legacy accounts."""
    profile = getattr(user, 'profile', None)
    if profile is not None:
        return profile
    return ensure_profile(user)[0]


def post_login_redirect(profile):
    return '/dashboard' if profile.onboarding_completed else '/onboarding'


def complete_onboarding(profile, data):
    """Store onboarding answers and mark the profile as onboarded."""
    with transaction.atomic():
        for field in ONBOARDING_FIELDS:
            if field in data:
                setattr(profile, field, data[field] or '')
        was_completed = profile.onboarding_completed
        profile.onboarding_completed = True
        profile.save()

    if not was_completed:
        result = slack_service.notify_onboarding_completed(profile)
        if not result.ok:
            logger.info("Onboarding notification not sent: %s", result.error)
    return profile


def is_portal_admin(user):
    """
    Staff check: superuser, an AdminRole row, or an id listed in ADMIN_USER_IDS.
    """
    if not user or not user.is_authenticated:
        return False
    if user.is_superuser:
        return True
    if str(user.pk) in {str(x) for x in getattr(settings, 'ADMIN_USER_IDS', [])}:
        return True
    return AdminRole.objects.filter(user=user).exists()
