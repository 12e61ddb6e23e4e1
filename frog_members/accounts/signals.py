import logging

from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import CustomUser
from .profile_service import ensure_profile

logger = logging.getLogger(__name__)


@receiver(post_save, sender=CustomUser)
def create_member_profile(sender, instance, created, **kwargs):
    """Every new identity gets its profile row straight away."""
    if not created or kwargs.get('raw'):
        return
    ensure_profile(instance)
