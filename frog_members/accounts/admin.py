from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import AdminRole, CustomUser, Profile


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin):
    ordering = ('email',)
    list_display = ('email', 'first_name', 'last_name', 'is_staff', 'is_active', 'date_joined')
    search_fields = ('email', 'first_name', 'last_name')
    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Personal info', {'fields': ('first_name', 'last_name')}),
        ('Permissions', {'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions')}),
        ('Dates', {'fields': ('last_login', 'date_joined')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'password1', 'password2'),
        }),
    )


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ('email', 'first_name', 'last_name', 'is_member', 'subscription_status', 'onboarding_completed', 'created_at')
    list_filter = ('is_member', 'subscription_status', 'onboarding_completed', 'migration_goal')
    search_fields = ('email', 'first_name', 'last_name', 'stripe_customer_id', 'stripe_subscription_id')
    readonly_fields = ('created_at', 'updated_at')
    fieldsets = (
        ('Member', {'fields': ('user', 'email', 'first_name', 'last_name', 'avatar_url', 'phone', 'current_location')}),
        ('Onboarding', {'fields': (
            'onboarding_completed', 'migration_goal', 'future_occupation', 'english_level',
            'work_experience', 'goal_location', 'goal_deadline', 'visa_status',
        )}),
        ('Membership', {'fields': (
            'is_member', 'subscription_status', 'subscription_period_end',
            'stripe_customer_id', 'stripe_subscription_id',
        )}),
        ('Integrations', {'fields': ('content_snare_client_id',)}),
        ('Dates', {'fields': ('created_at', 'updated_at')}),
    )


@admin.register(AdminRole)
class AdminRoleAdmin(admin.ModelAdmin):
    list_display = ('user', 'role', 'created_at')
    search_fields = ('user__email',)
