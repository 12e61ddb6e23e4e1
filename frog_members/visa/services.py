"""
Visa plan lifecycle: plans with ordered items, staff reviews and the
member/staff message thread.
"""
import logging
from functools import reduce
from operator import or_

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from integrations import slack_service

from .models import VisaPlan, VisaPlanItem, VisaPlanMessage, VisaPlanReview, VisaType

logger = logging.getLogger(__name__)

VISA_KEYWORDS = (
    'ビザ', 'visa', '永住権', 'PR', '就労', '学生', 'ワーホリ', 'ワーキングホリデー',
    '留学', '就職', '移民', 'カナダ', 'バンクーバー', 'トロント', '申請', '許可',
)
SEARCH_LIMIT = 10


class VisaPlanError(Exception):
    def __init__(self, message, status_code=400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _display_name(user):
    profile = getattr(user, 'profile', None)
    return profile.display_name if profile else user.email


def extract_visa_keywords(query):
    lowered = (query or '').lower()
    return [keyword for keyword in VISA_KEYWORDS if keyword.lower() in lowered]


def search_visa_types(query, limit=SEARCH_LIMIT):
    """
    Visa types whose text mentions the query or one of the visa keywords
    found in it.
    """
    query = (query or '').strip()
    if not query:
        return list(VisaType.objects.all()[:limit])

    terms = [query] + [k for k in extract_visa_keywords(query) if k.lower() != query.lower()]
    conditions = reduce(or_, (
        Q(name__icontains=term)
        | Q(description__icontains=term)
        | Q(requirements__icontains=term)
        | Q(process__icontains=term)
        for term in terms
    ))
    return list(VisaType.objects.filter(conditions).distinct()[:limit])


def _write_items(plan, items):
    VisaPlanItem.objects.bulk_create([
        VisaPlanItem(
            plan=plan,
            visa_type_id=item['visa_type'],
            order_index=item.get('order_index', index),
            notes=item.get('notes') or '',
        )
        for index, item in enumerate(items)
    ])


def create_plan(user, name=None, description='', items=()):
    with transaction.atomic():
        plan = VisaPlan.objects.create(
            user=user,
            name=name or VisaPlan._meta.get_field('name').default,
            description=description or '',
        )
        _write_items(plan, items)
    logger.info("Visa plan %s created by user %s", plan.pk, user.pk)
    return plan


def replace_items(plan, items):
    """Replace every item of the plan; order follows order_index, then list position."""
    with transaction.atomic():
        plan.items.all().delete()
        _write_items(plan, items)
        plan.save(update_fields=['updated_at'])
    return plan


def request_review(plan, user):
    """Only one open review per plan; the plan moves to review_requested."""
    with transaction.atomic():
        plan = VisaPlan.objects.select_for_update().get(pk=plan.pk)
        if plan.reviews.filter(status__in=VisaPlanReview.OPEN_STATUSES).exists():
            raise VisaPlanError('このプランは既にレビュー依頼中です', status_code=409)
        if not plan.items.exists():
            raise VisaPlanError('ビザが選択されていません')

        review = VisaPlanReview.objects.create(plan=plan, requested_by=user)
        plan.status = VisaPlan.STATUS_REVIEW_REQUESTED
        plan.save(update_fields=['status', 'updated_at'])

    visa_names = ', '.join(item.visa_type.name for item in plan.items.select_related('visa_type'))
    result = slack_service.notify_new_visa_review(review.pk, _display_name(user), visa_names)
    if not result.ok:
        logger.info("Visa review notification not sent: %s", result.error)
    return review


def update_review(review, admin_user, status, admin_comment=None):
    """Staff update. Completing a review stamps completed_at and marks the plan reviewed."""
    with transaction.atomic():
        review.admin = admin_user
        review.status = status
        if admin_comment is not None:
            review.admin_comment = admin_comment
        if status == VisaPlanReview.STATUS_COMPLETED:
            review.completed_at = review.completed_at or timezone.now()
        review.save()

        if status == VisaPlanReview.STATUS_COMPLETED:
            review.plan.status = VisaPlan.STATUS_REVIEWED
            review.plan.save(update_fields=['status', 'updated_at'])
        elif status == VisaPlanReview.STATUS_CANCELLED:
            review.plan.status = VisaPlan.STATUS_DRAFT
            review.plan.save(update_fields=['status', 'updated_at'])
    logger.info("Visa review %s set to %s by %s", review.pk, status, admin_user.pk)
    return review


def post_message(plan, sender, content, title='', is_admin=False):
    message = VisaPlanMessage.objects.create(
        plan=plan,
        sender=sender,
        title=title or '',
        content=content,
        is_admin=is_admin,
    )
    if not is_admin:
        slack_service.notify_new_visa_plan_message(plan.pk, _display_name(sender), title, content)
    return message
