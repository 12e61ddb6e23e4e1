from django.conf import settings
from django.db import models


class VideoSection(models.Model):
    title = models.CharField('Title', max_length=255)
    description = models.TextField('Description', blank=True, default='')
    order_index = models.PositiveIntegerField('Order', default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Video section'
        verbose_name_plural = 'Video sections'
        ordering = ['order_index', 'id']

    def __str__(self):
        return self.title


class LearningVideo(models.Model):
    section = models.ForeignKey(VideoSection, on_delete=models.CASCADE, related_name='videos')
    title = models.CharField('Title', max_length=255)
    description = models.TextField('Description', blank=True, default='')
    duration = models.CharField('Duration', max_length=20, blank=True, default='')
    storage_path = models.CharField('Storage path', max_length=500, blank=True, default='')
    thumbnail_url = models.URLField('Thumbnail', max_length=500, blank=True, default='')
    order_index = models.PositiveIntegerField('Order', default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Learning video'
        verbose_name_plural = 'Learning videos'
        ordering = ['order_index', 'id']

    def __str__(self):
        return self.title


class VideoResource(models.Model):
    TYPE_DOCUMENT = 'document'
    TYPE_LINK = 'link'
    TYPE_TOOL = 'tool'

    TYPE_CHOICES = (
        (TYPE_DOCUMENT, 'Document'),
        (TYPE_LINK, 'Link'),
        (TYPE_TOOL, 'Tool'),
    )

    video = models.ForeignKey(LearningVideo, on_delete=models.CASCADE, related_name='resources')
    title = models.CharField('Title', max_length=255)
    description = models.TextField('Description', blank=True, default='')
    url = models.URLField('URL', max_length=500)
    type = models.CharField('Type', max_length=20, choices=TYPE_CHOICES, default=TYPE_LINK)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return self.title


class VideoProgress(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='video_progress')
    video = models.ForeignKey(LearningVideo, on_delete=models.CASCADE, related_name='progress')
    progress_seconds = models.PositiveIntegerField('Watched seconds', default=0)
    completed = models.BooleanField('Completed', default=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Video progress'
        verbose_name_plural = 'Video progress'
        unique_together = ('user', 'video')

    def __str__(self):
        return f"{self.user} / {self.video}"
