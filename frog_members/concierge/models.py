import uuid

from django.conf import settings
from django.db import models


class AIChatSession(models.Model):
    """One conversation with the AI concierge"""

    session_key = models.UUIDField('Session key', default=uuid.uuid4, unique=True, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='ai_chat_sessions',
        verbose_name='Member',
    )
    title = models.CharField('Title', max_length=200, blank=True, default='')
    created_at = models.DateTimeField('Created', auto_now_add=True)
    updated_at = models.DateTimeField('Updated', auto_now=True)

    class Meta:
        verbose_name = 'AI chat session'
        verbose_name_plural = 'AI chat sessions'
        ordering = ['-updated_at']

    def __str__(self):
        return f"{self.title or self.session_key} ({self.user})"


class AIMessage(models.Model):
    SENDER_USER = 'user'
    SENDER_ASSISTANT = 'assistant'

    SENDER_CHOICES = (
        (SENDER_USER, 'User'),
        (SENDER_ASSISTANT, 'Assistant'),
    )

    session = models.ForeignKey(AIChatSession, on_delete=models.CASCADE, related_name='messages')
    sender = models.CharField('Sender', max_length=20, choices=SENDER_CHOICES)
    content = models.TextField('Content')
    metadata = models.JSONField('Metadata', default=dict, blank=True)
    created_at = models.DateTimeField('Created', auto_now_add=True)

    class Meta:
        verbose_name = 'AI message'
        verbose_name_plural = 'AI messages'
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.sender}: {self.content[:50]}"
