"""
Course application workflow.

Applying creates a Content Snare document request for the member, stores a
draft application pointing at it and adds the intake date to the member's
schedule. Content Snare webhooks then move the application forward.
"""
import logging
from datetime import date

from django.db import transaction
from django.utils import timezone

from integrations import slack_service
from integrations.content_snare_service import ContentSnareClient, ContentSnareError

from .models import Course, CourseApplication, CourseIntakeDate, UserSchedule

logger = logging.getLogger(__name__)

WEBHOOK_STATUS_MAP = {
    'request.submitted': CourseApplication.STATUS_SUBMITTED,
    'request.approved': CourseApplication.STATUS_APPROVED,
    'request.rejected': CourseApplication.STATUS_REJECTED,
}


class ApplicationError(Exception):
    def __init__(self, message, status_code=400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def schedule_date_for(intake_date, course, today=None):
    """
    (year, month, day) for the enrollment milestone.

    Explicit intake year/month wins, then the intake start_date, then the
    course start date, then today.
    """
    today = today or timezone.localdate()
    if intake_date is not None:
        if intake_date.year and intake_date.month:
            return intake_date.year, intake_date.month, intake_date.day or 1
        if intake_date.start_date:
            d = intake_date.start_date
            return d.year, d.month, d.day
        if intake_date.month:
            return today.year, intake_date.month, intake_date.day or 1
    if course.start_date:
        d = course.start_date
        return d.year, d.month, d.day
    return today.year, today.month, today.day


def ensure_content_snare_client(profile, cs_client):
    """Update the member's Content Snare client from the profile, creating it if needed."""
    full_name = profile.full_name or profile.email
    email = profile.email or profile.user.email

    if profile.content_snare_client_id:
        try:
            cs_client.update_client(profile.content_snare_client_id, full_name, email)
            return profile.content_snare_client_id
        except ContentSnareError as e:
            if e.status_code != 404:
                raise
            logger.warning("Content Snare client %s is gone, creating a new one", profile.content_snare_client_id)

    created = cs_client.create_client(full_name, email)
    profile.content_snare_client_id = created['id']
    profile.save(update_fields=['content_snare_client_id', 'updated_at'])
    return profile.content_snare_client_id


def create_course_application(profile, course_id, intake_date_id, cs_client=None):
    """
    Apply the member to a course.

    Returns the saved CourseApplication. Raises ApplicationError for input
    problems and lets ContentSnareError propagate.
    """
    if not course_id:
        raise ApplicationError('courseIdは必須です')
    if not intake_date_id:
        raise ApplicationError('入学日（スタート日）の選択は必須です')

    course = Course.objects.filter(pk=course_id).select_related('school').first()
    if course is None:
        raise ApplicationError('指定されたコースが見つかりません', status_code=404)
    if not course.content_snare_template_id:
        raise ApplicationError('このコースはオンライン申込に対応していません')

    intake_date = CourseIntakeDate.objects.filter(pk=intake_date_id, course=course).first()
    if intake_date is None:
        raise ApplicationError('指定された入学日情報が見つかりません。有効な入学日を選択してください。')

    cs_client = cs_client or ContentSnareClient()
    client_id = ensure_content_snare_client(profile, cs_client)

    cs_request = cs_client.create_request(
        template_id=course.content_snare_template_id,
        client_email=profile.email or profile.user.email,
        client_full_name=profile.full_name or profile.email,
        name=f"{course.name} - {profile.first_name} {profile.last_name}",
    )

    year, month, day = schedule_date_for(intake_date, course)
    with transaction.atomic():
        application = CourseApplication.objects.create(
            user=profile.user,
            course=course,
            intake_date=intake_date,
            status=CourseApplication.STATUS_DRAFT,
            content_snare_id=client_id,
            content_snare_request_id=str(cs_request['id']),
            request_url=cs_request.get('share_link') or '',
        )
        UserSchedule.objects.create(
            user=profile.user,
            course_application=application,
            intake_date=intake_date,
            title=f"{course.name}入学予定",
            description='コース入学予定日',
            year=year,
            month=month,
            day=day,
            is_admin_locked=True,
            sort_order=0,
        )

    logger.info("Course application %s created for user %s (request %s)", application.pk, profile.user_id, cs_request['id'])

    result = slack_service.notify_new_course_application(application.pk, profile.display_name, course.name)
    if not result.ok:
        logger.warning("Slack notification for application %s failed: %s", application.pk, result.error)

    return application


def apply_content_snare_event(event_type, request_id):
    """
    Move the application linked to request_id according to a webhook event.

    Returns the application, or None when no application matches.
    """
    application = (
        CourseApplication.objects
        .select_related('course', 'user__profile')
        .filter(content_snare_request_id=request_id)
        .first()
    )
    if application is None:
        return None

    new_status = WEBHOOK_STATUS_MAP.get(event_type)
    if new_status is None:
        logger.info("Ignoring Content Snare event %s for request %s", event_type, request_id)
        return application

    application.status = new_status
    application.save(update_fields=['status', 'updated_at'])
    logger.info("Application %s is now %s", application.pk, new_status)

    if new_status == CourseApplication.STATUS_SUBMITTED:
        profile = application.user.profile
        slack_service.notify_course_application_submitted(
            application.pk,
            profile.display_name,
            application.course.name,
        )
    return application


def update_schedule(schedule, user_is_admin, action='toggle_completed', completed=None, year=None, month=None, day=None):
    """Apply a member/staff schedule edit. Locked items only move for staff."""
    if schedule.is_admin_locked and not user_is_admin:
        raise ApplicationError('このスケジュールは管理者のみ編集可能です', status_code=403)

    if action == 'toggle_completed':
        schedule.is_completed = not schedule.is_completed if completed is None else bool(completed)
    elif action == 'update_date':
        if year is not None:
            schedule.year = year
        if month is not None:
            if not 1 <= int(month) <= 12:
                raise ApplicationError('monthは1〜12で指定してください')
            schedule.month = month
        if day is not None:
            schedule.day = day
        if schedule.day:
            try:
                date(int(schedule.year), int(schedule.month), int(schedule.day))
            except ValueError as e:
                raise ApplicationError('無効な日付です') from e
    else:
        raise ApplicationError(f'Unknown action: {action}')

    schedule.save()
    return schedule
