from django.contrib import admin

from .models import AIChatSession, AIMessage


class AIMessageInline(admin.TabularInline):
    model = AIMessage
    extra = 0
    readonly_fields = ('sender', 'content', 'metadata', 'created_at')


@admin.register(AIChatSession)
class AIChatSessionAdmin(admin.ModelAdmin):
    list_display = ('session_key', 'user', 'title', 'updated_at')
    search_fields = ('user__email', 'title')
    readonly_fields = ('session_key',)
    inlines = [AIMessageInline]
