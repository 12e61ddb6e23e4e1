"""
School editor invitations and course recommendations.
"""
import logging
import uuid

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from .models import Course, CourseJobPosition, SchoolAccessToken

logger = logging.getLogger(__name__)

RECOMMENDED_LIMIT = 6


class InvalidSchoolToken(Exception):
    pass


def create_invitation(school, email, created_by=None):
    """
    Issue a 30-day editor token for school/email.

    Active tokens for the same pair are expired first so only the newest
    link works.
    """
    now = timezone.now()
    with transaction.atomic():
        SchoolAccessToken.objects.filter(
            school=school,
            email__iexact=email,
            expires_at__gt=now,
        ).update(expires_at=now)
        access_token = SchoolAccessToken.objects.create(school=school, email=email, created_by=created_by)

    logger.info("School editor invitation issued for school %s to %s", school.pk, email)
    return access_token


def access_url_for(access_token):
    app_url = getattr(settings, 'APP_URL', 'http://localhost:3000').rstrip('/')
    return f"{app_url}/schools/{access_token.school_id}/editor?token={access_token.token}"


def validate_token(school_id, token, email, mark_used=True):
    """Return the matching unexpired token or raise InvalidSchoolToken."""
    try:
        token_uuid = uuid.UUID(str(token))
    except (TypeError, ValueError):
        raise InvalidSchoolToken('無効または期限切れのトークンです')

    access_token = SchoolAccessToken.objects.filter(
        token=token_uuid,
        school_id=school_id,
        email__iexact=email or '',
        expires_at__gt=timezone.now(),
    ).select_related('school').first()
    if access_token is None:
        raise InvalidSchoolToken('無効または期限切れのトークンです')

    if mark_used:
        access_token.used_at = timezone.now()
        access_token.save(update_fields=['used_at'])
    return access_token


def recommend_courses(profile, limit=RECOMMENDED_LIMIT):
    """
    Courses for the member's dashboard.

    future_occupation holds a JobPosition id; courses linked to it come
    first. Otherwise courses tagged with the member's migration goal, and
    finally the newest courses.
    """
    base = Course.objects.select_related('school', 'school__goal_location')

    occupation = (profile.future_occupation or '').strip()
    if occupation.isdigit():
        course_ids = list(
            CourseJobPosition.objects
            .filter(job_position_id=int(occupation))
            .values_list('course_id', flat=True)[:limit]
        )
        if course_ids:
            return list(base.filter(pk__in=course_ids)[:limit])

    if profile.migration_goal:
        # JSON containment is not available on every backend
        matching = [c for c in base if profile.migration_goal in (c.migration_goals or [])]
        if matching:
            return matching[:limit]

    return list(base.order_by('-created_at')[:limit])
