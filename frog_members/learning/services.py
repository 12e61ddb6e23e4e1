"""
Video progress tracking and the staff overview numbers.
"""
import logging

from django.db import transaction

from accounts.models import Profile

from .models import LearningVideo, VideoProgress

logger = logging.getLogger(__name__)


def record_progress(user, video, progress_seconds, completed=False):
    """Upsert the member's position in a video; completion is never undone."""
    with transaction.atomic():
        progress, _ = VideoProgress.objects.select_for_update().get_or_create(user=user, video=video)
        progress.progress_seconds = progress_seconds
        if completed and not progress.completed:
            logger.info("User %s completed video %s", user.pk, video.pk)
        progress.completed = progress.completed or completed
        progress.save()
    return progress


def progress_map(user):
    return {p.video_id: p for p in VideoProgress.objects.filter(user=user)}


def member_summary(user):
    total = LearningVideo.objects.count()
    completed = VideoProgress.objects.filter(user=user, completed=True).count()
    return {
        'total_videos': total,
        'completed_videos': completed,
        'completion_rate': round(completed / total * 100) if total else 0,
    }


def overview_stats():
    """Totals for the staff dashboard; completion rate is completed rows per video."""
    total_videos = LearningVideo.objects.count()
    completed = VideoProgress.objects.filter(completed=True).count()
    return {
        'total_videos': total_videos,
        'total_members': Profile.objects.filter(is_member=True).count(),
        'completion_rate': round(completed / total_videos * 100) if total_videos else 0,
    }
