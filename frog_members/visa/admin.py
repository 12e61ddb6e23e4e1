from django.contrib import admin

from .models import VisaPlan, VisaPlanItem, VisaPlanMessage, VisaPlanReview, VisaRequirement, VisaType


class VisaRequirementInline(admin.TabularInline):
    model = VisaRequirement
    extra = 0


@admin.register(VisaType)
class VisaTypeAdmin(admin.ModelAdmin):
    list_display = ('name', 'slug', 'official_url')
    search_fields = ('name', 'description')
    prepopulated_fields = {'slug': ('name',)}
    inlines = [VisaRequirementInline]


class VisaPlanItemInline(admin.TabularInline):
    model = VisaPlanItem
    extra = 0


@admin.register(VisaPlan)
class VisaPlanAdmin(admin.ModelAdmin):
    list_display = ('name', 'user', 'status', 'updated_at')
    list_filter = ('status',)
    search_fields = ('user__email', 'name')
    inlines = [VisaPlanItemInline]


@admin.register(VisaPlanReview)
class VisaPlanReviewAdmin(admin.ModelAdmin):
    list_display = ('plan', 'requested_by', 'status', 'admin', 'created_at', 'completed_at')
    list_filter = ('status',)


@admin.register(VisaPlanMessage)
class VisaPlanMessageAdmin(admin.ModelAdmin):
    list_display = ('plan', 'sender', 'title', 'is_admin', 'is_read', 'created_at')
    list_filter = ('is_admin', 'is_read')
