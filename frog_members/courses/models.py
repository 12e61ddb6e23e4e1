import uuid
from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone


class GoalLocation(models.Model):
    """City members can aim for (onboarding goal, school location)."""

    city = models.CharField('City', max_length=100)
    country = models.CharField('Country', max_length=100)
    description = models.TextField('Description', blank=True, default='')

    class Meta:
        verbose_name = 'Goal location'
        verbose_name_plural = 'Goal locations'
        ordering = ['country', 'city']

    def __str__(self):
        return f"{self.city}, {self.country}"


class School(models.Model):
    name = models.CharField('Name', max_length=200)
    goal_location = models.ForeignKey(
        GoalLocation,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='schools',
        verbose_name='Location',
    )
    website = models.URLField('Website', max_length=500, blank=True, default='')
    description = models.TextField('Description', blank=True, default='')
    average_english_level = models.CharField('Average English level', max_length=100, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'School'
        verbose_name_plural = 'Schools'
        ordering = ['name']

    def __str__(self):
        return self.name


class SchoolPhoto(models.Model):
    school = models.ForeignKey(School, on_delete=models.CASCADE, related_name='photos')
    url = models.URLField('Image URL', max_length=500)
    description = models.CharField('Description', max_length=255, blank=True, default='')
    sort_order = models.PositiveIntegerField('Order', default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['sort_order', 'id']

    def __str__(self):
        return f"{self.school} photo #{self.sort_order}"


class JobPosition(models.Model):
    title = models.CharField('Title', max_length=200)
    description = models.TextField('Description', blank=True, default='')
    industry = models.CharField('Industry', max_length=100, blank=True, default='')

    class Meta:
        verbose_name = 'Job position'
        verbose_name_plural = 'Job positions'
        ordering = ['title']

    def __str__(self):
        return self.title


class Course(models.Model):
    school = models.ForeignKey(School, on_delete=models.CASCADE, related_name='courses', verbose_name='School')
    name = models.CharField('Name', max_length=255)
    category = models.CharField('Category', max_length=100, blank=True, default='', db_index=True)
    description = models.TextField('Description', blank=True, default='')
    total_weeks = models.PositiveIntegerField('Total weeks', null=True, blank=True)
    lecture_weeks = models.PositiveIntegerField('Lecture weeks', null=True, blank=True)
    work_permit_weeks = models.PositiveIntegerField('Work permit weeks', null=True, blank=True)
    start_date = models.DateField('Start date', null=True, blank=True)
    tuition_and_others = models.CharField('Tuition and fees', max_length=255, blank=True, default='')
    url = models.URLField('Course page', max_length=500, blank=True, default='')
    admission_requirements = models.TextField('Admission requirements', blank=True, default='')
    graduation_requirements = models.TextField('Graduation requirements', blank=True, default='')
    job_support = models.TextField('Job support', blank=True, default='')
    notes = models.TextField('Notes', blank=True, default='')
    migration_goals = models.JSONField(
        'Migration goals',
        default=list,
        blank=True,
        help_text='Profile migration_goal values this course is suited for',
    )
    content_snare_template_id = models.CharField(
        'Content Snare template ID',
        max_length=255,
        blank=True,
        default='',
        help_text='Online application is only offered when set',
    )
    job_positions = models.ManyToManyField(
        JobPosition,
        through='CourseJobPosition',
        related_name='courses',
        blank=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Course'
        verbose_name_plural = 'Courses'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.name} ({self.school})"


class CourseSubject(models.Model):
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='subjects')
    title = models.CharField('Title', max_length=255)
    description = models.TextField('Description', blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return self.title


class CourseIntakeDate(models.Model):
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='intake_dates')
    year = models.PositiveIntegerField('Year', null=True, blank=True)
    month = models.PositiveSmallIntegerField('Month')
    day = models.PositiveSmallIntegerField('Day', null=True, blank=True)
    start_date = models.DateField('Start date', null=True, blank=True)
    application_deadline = models.DateField('Application deadline', null=True, blank=True)
    is_tentative = models.BooleanField('Tentative', default=False)
    notes = models.TextField('Notes', blank=True, default='')

    class Meta:
        verbose_name = 'Intake date'
        verbose_name_plural = 'Intake dates'
        ordering = ['year', 'month', 'day']

    def __str__(self):
        return f"{self.course.name} {self.year or '----'}/{self.month}/{self.day or '--'}"


class CourseJobPosition(models.Model):
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='course_job_positions')
    job_position = models.ForeignKey(JobPosition, on_delete=models.CASCADE, related_name='course_job_positions')
    description = models.TextField('Description', blank=True, default='')

    class Meta:
        unique_together = ('course', 'job_position')


class FavoriteCourse(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='favorite_courses')
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='favorited_by')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('user', 'course')
        ordering = ['-created_at']


def _default_token_expiry():
    return timezone.now() + timedelta(days=SchoolAccessToken.VALID_DAYS)


class SchoolAccessToken(models.Model):
    """Invitation letting a school representative edit its courses without an account."""

    VALID_DAYS = 30

    school = models.ForeignKey(School, on_delete=models.CASCADE, related_name='access_tokens')
    token = models.UUIDField('Token', default=uuid.uuid4, unique=True, editable=False)
    email = models.EmailField('Email')
    expires_at = models.DateTimeField('Expires at', default=_default_token_expiry)
    used_at = models.DateTimeField('Last used', null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='school_tokens_created',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'School access token'
        verbose_name_plural = 'School access tokens'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.school} <{self.email}>"

    @property
    def is_active(self):
        return self.expires_at > timezone.now()


class CourseApplication(models.Model):
    STATUS_DRAFT = 'draft'
    STATUS_SUBMITTED = 'submitted'
    STATUS_REVIEWING = 'reviewing'
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'

    STATUS_CHOICES = (
        (STATUS_DRAFT, 'Draft'),
        (STATUS_SUBMITTED, 'Submitted'),
        (STATUS_REVIEWING, 'Reviewing'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
    )

    PURPOSE_CHOICES = (
        ('overseas_job', 'Overseas job'),
        ('career_change', 'Career change'),
        ('language', 'Language'),
    )

    PAYMENT_METHOD_CHOICES = (
        ('japan_bank', 'Japanese bank transfer'),
        ('credit_card', 'Credit card'),
        ('canada_bank', 'Canadian bank transfer'),
    )

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='course_applications')
    course = models.ForeignKey(Course, on_delete=models.PROTECT, related_name='applications')
    intake_date = models.ForeignKey(
        CourseIntakeDate,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='applications',
    )
    status = models.CharField('Status', max_length=20, choices=STATUS_CHOICES, default=STATUS_DRAFT, db_index=True)
    purpose = models.CharField('Purpose', max_length=30, choices=PURPOSE_CHOICES, blank=True, default='')
    payment_method = models.CharField('Payment method', max_length=30, choices=PAYMENT_METHOD_CHOICES, blank=True, default='')
    preferred_start_date = models.DateField('Preferred start date', null=True, blank=True)
    content_snare_id = models.CharField('Content Snare client ID', max_length=255, blank=True, default='')
    content_snare_request_id = models.CharField(
        'Content Snare request ID',
        max_length=255,
        blank=True,
        default='',
        db_index=True,
    )
    request_url = models.URLField('Document request link', max_length=500, blank=True, default='')
    admin_notes = models.TextField('Admin notes', blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Course application'
        verbose_name_plural = 'Course applications'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user} -> {self.course.name} ({self.status})"


class ApplicationComment(models.Model):
    application = models.ForeignKey(CourseApplication, on_delete=models.CASCADE, related_name='comments')
    author = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='+')
    content = models.TextField('Comment')
    is_admin = models.BooleanField('From staff', default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at']


class UserSchedule(models.Model):
    """Milestone on a member's application timeline."""

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='schedules')
    course_application = models.ForeignKey(
        CourseApplication,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='schedules',
    )
    intake_date = models.ForeignKey(CourseIntakeDate, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    title = models.CharField('Title', max_length=255)
    description = models.TextField('Description', blank=True, default='')
    year = models.PositiveIntegerField('Year')
    month = models.PositiveSmallIntegerField('Month')
    day = models.PositiveSmallIntegerField('Day', null=True, blank=True)
    is_completed = models.BooleanField('Completed', default=False)
    is_admin_locked = models.BooleanField('Locked by staff', default=False)
    sort_order = models.IntegerField('Order', default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Schedule item'
        verbose_name_plural = 'Schedule items'
        ordering = ['year', 'month', 'day', 'sort_order']

    def __str__(self):
        return f"{self.year}/{self.month}/{self.day or '--'} {self.title}"
