"""
Support chat between members and staff.

A member message flips the session to "unread" and pings Slack once the
message is committed, at most once per member per hour. The throttle is a
key in the Django cache.
"""
import logging
from functools import partial

from django.core.cache import cache
from django.db import transaction

from accounts.profile_service import is_portal_admin
from integrations import slack_service

from .models import ChatMessage, ChatSession

logger = logging.getLogger(__name__)

NOTIFICATION_INTERVAL_SECONDS = 60 * 60


def notification_throttle_key(user_id):
    return f"chat_notify:{user_id}"


def create_session(user, initial_message):
    with transaction.atomic():
        session = ChatSession.objects.create(user=user, status=ChatSession.STATUS_UNREAD)
        send_message(session, user, initial_message)
    return session


def send_message(session, sender, content):
    staff = is_portal_admin(sender)
    with transaction.atomic():
        message = ChatMessage.objects.create(
            session=session,
            sender=sender,
            content=content,
            is_staff_reply=staff,
        )
        session.status = ChatSession.STATUS_ACTIVE if staff else ChatSession.STATUS_UNREAD
        session.save(update_fields=['status', 'updated_at'])
        if not staff:
            transaction.on_commit(partial(notify_staff, session.pk, sender, content))
    return message


def notify_staff(session_id, sender, content):
    """Slack ping for a member message; skipped while the member's throttle key is alive."""
    if not cache.add(notification_throttle_key(sender.pk), True, NOTIFICATION_INTERVAL_SECONDS):
        return
    profile = getattr(sender, 'profile', None)
    user_name = profile.display_name if profile else sender.email
    result = slack_service.notify_new_chat_message(session_id, sender.pk, user_name, content)
    if not result.ok:
        logger.info("Chat notification for session %s not sent: %s", session_id, result.error)


def mark_read(session):
    session.status = ChatSession.STATUS_READ
    session.save(update_fields=['status', 'updated_at'])
    return session


def mark_active(session):
    session.status = ChatSession.STATUS_ACTIVE
    session.save(update_fields=['status', 'updated_at'])
    return session
