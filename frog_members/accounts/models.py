from django.conf import settings
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class CustomUserManager(BaseUserManager):
    """Manager for CustomUser where the email is the unique identifier"""

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError(_('Email is required'))
        email = self.normalize_email(email).lower()
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('is_active', True)

        if extra_fields.get('is_staff') is not True:
            raise ValueError(_('Superuser must have is_staff=True'))
        if extra_fields.get('is_superuser') is not True:
            raise ValueError(_('Superuser must have is_superuser=True'))

        return self.create_user(email, password, **extra_fields)


class CustomUser(AbstractUser):
    """
    Login identity of the portal. Sign-in is by email, username is disabled.
    Member data lives on Profile.
    """

    username = None
    email = models.EmailField(_('email address'), unique=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    objects = CustomUserManager()

    class Meta:
        verbose_name = _('user')
        verbose_name_plural = _('users')

    def __str__(self):
        return self.email


class Profile(models.Model):
    """Member record, one per identity."""

    STATUS_ACTIVE = 'active'
    STATUS_TRIALING = 'trialing'
    STATUS_PAST_DUE = 'past_due'
    STATUS_CANCELING = 'canceling'
    STATUS_CANCELED = 'canceled'

    SUBSCRIPTION_STATUS_CHOICES = (
        ('', 'None'),
        (STATUS_ACTIVE, 'Active'),
        (STATUS_TRIALING, 'Trialing'),
        (STATUS_PAST_DUE, 'Past due'),
        (STATUS_CANCELING, 'Canceling at period end'),
        (STATUS_CANCELED, 'Canceled'),
        ('incomplete', 'Incomplete'),
        ('incomplete_expired', 'Incomplete expired'),
        ('unpaid', 'Unpaid'),
    )

    MIGRATION_GOAL_CHOICES = (
        ('', 'Not set'),
        ('overseas_employment', 'Overseas employment'),
        ('permanent_residency', 'Permanent residency'),
        ('study_abroad', 'Study abroad'),
        ('working_holiday', 'Working holiday'),
        ('other', 'Other'),
    )

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='profile',
        verbose_name='User',
    )
    email = models.EmailField('Email', blank=True, default='')
    first_name = models.CharField('First name', max_length=150, blank=True, default='')
    last_name = models.CharField('Last name', max_length=150, blank=True, default='')
    avatar_url = models.URLField('Avatar URL', max_length=500, blank=True, default='')
    phone = models.CharField('Phone', max_length=32, blank=True, default='')
    current_location = models.CharField('Current location', max_length=200, blank=True, default='')

    # Onboarding answers
    onboarding_completed = models.BooleanField('Onboarding completed', default=False)
    migration_goal = models.CharField('Migration goal', max_length=50, choices=MIGRATION_GOAL_CHOICES, blank=True, default='')
    future_occupation = models.CharField('Future occupation', max_length=200, blank=True, default='')
    english_level = models.CharField('English level', max_length=50, blank=True, default='')
    work_experience = models.TextField('Work experience', blank=True, default='')
    goal_location = models.CharField(
        'Goal location',
        max_length=200,
        blank=True,
        default='',
        help_text='Name of the goal location chosen during onboarding',
    )
    goal_deadline = models.CharField('Goal deadline', max_length=100, blank=True, default='')
    visa_status = models.CharField('Visa status', max_length=100, blank=True, default='')

    # Membership (Stripe)
    is_member = models.BooleanField('Member', default=False)
    stripe_customer_id = models.CharField('Stripe customer ID', max_length=255, blank=True, default='', db_index=True)
    stripe_subscription_id = models.CharField('Stripe subscription ID', max_length=255, blank=True, default='', db_index=True)
    subscription_status = models.CharField(
        'Subscription status',
        max_length=32,
        choices=SUBSCRIPTION_STATUS_CHOICES,
        blank=True,
        default='',
    )
    subscription_period_end = models.DateTimeField('Current period end', null=True, blank=True)

    # Content Snare client used for application documents
    content_snare_client_id = models.CharField('Content Snare client ID', max_length=255, blank=True, default='')

    created_at = models.DateTimeField('Created', auto_now_add=True)
    updated_at = models.DateTimeField('Updated', auto_now=True)

    class Meta:
        verbose_name = 'Profile'
        verbose_name_plural = 'Profiles'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.full_name or self.email} ({'member' if self.is_member else 'free'})"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def display_name(self):
        return self.full_name or self.email or f'user-{self.user_id}'

    def has_active_membership(self):
        """Members keep access until the paid period ends, even while canceling."""
        if not self.is_member:
            return False
        if self.subscription_status == self.STATUS_CANCELING and self.subscription_period_end:
            return self.subscription_period_end > timezone.now()
        return True


class AdminRole(models.Model):
    """Portal staff membership."""

    ROLE_ADMIN = 'admin'
    ROLE_CHOICES = (
        (ROLE_ADMIN, 'Administrator'),
    )

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='admin_role',
        verbose_name='User',
    )
    role = models.CharField('Role', max_length=20, choices=ROLE_CHOICES, default=ROLE_ADMIN)
    created_at = models.DateTimeField('Created', auto_now_add=True)

    class Meta:
        verbose_name = 'Admin role'
        verbose_name_plural = 'Admin roles'

    def __str__(self):
        return f"{self.user} ({self.role})"
