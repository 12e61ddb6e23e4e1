from django.conf import settings
from django.db import models


class ChatSession(models.Model):
    """Conversation between a member and portal staff"""

    STATUS_UNREAD = 'unread'
    STATUS_READ = 'read'
    STATUS_ACTIVE = 'active'

    STATUS_CHOICES = (
        (STATUS_UNREAD, 'Unread'),
        (STATUS_READ, 'Read'),
        (STATUS_ACTIVE, 'Active'),
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='chat_sessions',
        verbose_name='Member',
    )
    status = models.CharField('Status', max_length=20, choices=STATUS_CHOICES, default=STATUS_UNREAD, db_index=True)
    created_at = models.DateTimeField('Created', auto_now_add=True)
    updated_at = models.DateTimeField('Updated', auto_now=True)

    class Meta:
        verbose_name = 'Chat session'
        verbose_name_plural = 'Chat sessions'
        ordering = ['-updated_at']

    def __str__(self):
        return f"Chat #{self.pk} {self.user} ({self.status})"


class ChatMessage(models.Model):
    session = models.ForeignKey(ChatSession, on_delete=models.CASCADE, related_name='messages')
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='chat_messages',
    )
    content = models.TextField('Message')
    is_staff_reply = models.BooleanField('Staff reply', default=False)
    created_at = models.DateTimeField('Sent', auto_now_add=True)

    class Meta:
        verbose_name = 'Chat message'
        verbose_name_plural = 'Chat messages'
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.sender}: {self.content[:50]}"
