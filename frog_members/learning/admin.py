from django.contrib import admin

from .models import LearningVideo, VideoProgress, VideoResource, VideoSection


class VideoResourceInline(admin.TabularInline):
    model = VideoResource
    extra = 0


@admin.register(VideoSection)
class VideoSectionAdmin(admin.ModelAdmin):
    list_display = ('title', 'order_index')


@admin.register(LearningVideo)
class LearningVideoAdmin(admin.ModelAdmin):
    list_display = ('title', 'section', 'duration', 'order_index')
    list_filter = ('section',)
    search_fields = ('title', 'description')
    inlines = [VideoResourceInline]


@admin.register(VideoProgress)
class VideoProgressAdmin(admin.ModelAdmin):
    list_display = ('user', 'video', 'progress_seconds', 'completed', 'updated_at')
    list_filter = ('completed',)
    search_fields = ('user__email',)
