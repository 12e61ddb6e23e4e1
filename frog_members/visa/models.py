from django.conf import settings
from django.db import models


class VisaType(models.Model):
    name = models.CharField('Name', max_length=200)
    slug = models.SlugField('Slug', max_length=200, unique=True)
    description = models.TextField('Description', blank=True, default='')
    requirements = models.TextField('Requirements summary', blank=True, default='')
    process = models.TextField('Application process', blank=True, default='')
    official_url = models.URLField('Official page', max_length=500, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Visa type'
        verbose_name_plural = 'Visa types'
        ordering = ['name']

    def __str__(self):
        return self.name


class VisaRequirement(models.Model):
    visa_type = models.ForeignKey(VisaType, on_delete=models.CASCADE, related_name='requirement_items')
    title = models.CharField('Title', max_length=255)
    description = models.TextField('Description', blank=True, default='')
    order_index = models.PositiveIntegerField('Order', default=0)

    class Meta:
        ordering = ['order_index', 'id']

    def __str__(self):
        return self.title


class VisaPlan(models.Model):
    STATUS_DRAFT = 'draft'
    STATUS_REVIEW_REQUESTED = 'review_requested'
    STATUS_REVIEWED = 'reviewed'

    STATUS_CHOICES = (
        (STATUS_DRAFT, 'Draft'),
        (STATUS_REVIEW_REQUESTED, 'Review requested'),
        (STATUS_REVIEWED, 'Reviewed'),
    )

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='visa_plans')
    name = models.CharField('Name', max_length=255, default='マイビザプラン')
    description = models.TextField('Description', blank=True, default='')
    status = models.CharField('Status', max_length=20, choices=STATUS_CHOICES, default=STATUS_DRAFT)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Visa plan'
        verbose_name_plural = 'Visa plans'
        ordering = ['-updated_at']

    def __str__(self):
        return f"{self.name} ({self.user})"


class VisaPlanItem(models.Model):
    plan = models.ForeignKey(VisaPlan, on_delete=models.CASCADE, related_name='items')
    visa_type = models.ForeignKey(VisaType, on_delete=models.CASCADE, related_name='+')
    order_index = models.PositiveIntegerField('Order', default=0)
    notes = models.TextField('Notes', blank=True, default='')

    class Meta:
        ordering = ['order_index', 'id']


class VisaPlanReview(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_IN_REVIEW = 'in_review'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'

    STATUS_CHOICES = (
        (STATUS_PENDING, 'Pending'),
        (STATUS_IN_REVIEW, 'In review'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    )
    OPEN_STATUSES = (STATUS_PENDING, STATUS_IN_REVIEW)

    plan = models.ForeignKey(VisaPlan, on_delete=models.CASCADE, related_name='reviews')
    requested_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='visa_reviews_requested')
    admin = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='visa_reviews_handled',
    )
    admin_comment = models.TextField('Staff comment', blank=True, default='')
    status = models.CharField('Status', max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    completed_at = models.DateTimeField('Completed at', null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Visa plan review'
        verbose_name_plural = 'Visa plan reviews'
        ordering = ['-created_at']

    def __str__(self):
        return f"Review of {self.plan} ({self.status})"


class VisaPlanMessage(models.Model):
    plan = models.ForeignKey(VisaPlan, on_delete=models.CASCADE, related_name='messages')
    sender = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='+')
    title = models.CharField('Title', max_length=255, blank=True, default='')
    content = models.TextField('Message')
    is_admin = models.BooleanField('From staff', default=False)
    is_read = models.BooleanField('Read', default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at']
