from django.db import models


class RefreshToken(models.Model):
    """
    Long-lived OAuth refresh token for a service-to-service integration.

    One active row per service; every successful refresh replaces the row
    with the rotated token returned by the provider.
    """

    SERVICE_CONTENT_SNARE = 'content_snare'
    SERVICE_GOOGLE_CALENDAR = 'GOOGLE_REFRESH_TOKEN'

    SERVICE_CHOICES = (
        (SERVICE_CONTENT_SNARE, 'Content Snare'),
        (SERVICE_GOOGLE_CALENDAR, 'Google Calendar'),
    )

    service_name = models.CharField('Service', max_length=64, choices=SERVICE_CHOICES, db_index=True)
    refresh_token = models.TextField('Refresh token')
    created_at = models.DateTimeField('Created', auto_now_add=True)

    class Meta:
        verbose_name = 'Refresh token'
        verbose_name_plural = 'Refresh tokens'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.service_name} ({self.created_at:%Y-%m-%d %H:%M})"

    @classmethod
    def latest_for(cls, service_name):
        return cls.objects.filter(service_name=service_name).order_by('-created_at', '-id').first()

    @classmethod
    def replace(cls, service_name, refresh_token):
        """Drop every stored token for the service and store the new one."""
        cls.objects.filter(service_name=service_name).delete()
        return cls.objects.create(service_name=service_name, refresh_token=refresh_token)
