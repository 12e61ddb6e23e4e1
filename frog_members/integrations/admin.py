from django.contrib import admin

from frog_members.safe_logging import mask_secret

from .models import RefreshToken


@admin.register(RefreshToken)
class RefreshTokenAdmin(admin.ModelAdmin):
    list_display = ('service_name', 'masked_token', 'created_at')
    list_filter = ('service_name',)
    readonly_fields = ('created_at',)

    @admin.display(description='Refresh token')
    def masked_token(self, obj):
        return mask_secret(obj.refresh_token)
