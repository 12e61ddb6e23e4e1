from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from .models import Profile
from .profile_service import is_portal_admin


class PortalTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Adds email and the admin flag to the JWT"""

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['email'] = user.email
        token['is_admin'] = is_portal_admin(user)
        return token

    def validate(self, attrs):
        attrs[self.username_field] = (attrs.get(self.username_field) or '').strip().lower()
        return super().validate(attrs)


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)
    first_name = serializers.CharField(required=False, allow_blank=True, default='')
    last_name = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_email(self, value):
        from django.contrib.auth import get_user_model

        value = value.strip().lower()
        if get_user_model().objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError('A user with this email already exists')
        return value


class ProfileSerializer(serializers.ModelSerializer):
    """Profile of the current member"""

    full_name = serializers.CharField(read_only=True)
    is_admin = serializers.SerializerMethodField()

    class Meta:
        model = Profile
        fields = [
            'id',
            'user',
            'email',
            'first_name',
            'last_name',
            'full_name',
            'avatar_url',
            'phone',
            'current_location',
            'onboarding_completed',
            'migration_goal',
            'future_occupation',
            'english_level',
            'work_experience',
            'goal_location',
            'goal_deadline',
            'visa_status',
            'is_member',
            'subscription_status',
            'subscription_period_end',
            'is_admin',
            'created_at',
            'updated_at',
        ]
        read_only_fields = [
            'user',
            'email',
            'onboarding_completed',
            'is_member',
            'subscription_status',
            'subscription_period_end',
            'created_at',
            'updated_at',
        ]

    def get_is_admin(self, obj):
        return is_portal_admin(obj.user)


class OnboardingSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    current_location = serializers.CharField(max_length=200, required=False, allow_blank=True)
    migration_goal = serializers.ChoiceField(choices=Profile.MIGRATION_GOAL_CHOICES)
    future_occupation = serializers.CharField(max_length=200, required=False, allow_blank=True)
    english_level = serializers.CharField(max_length=50, required=False, allow_blank=True)
    work_experience = serializers.CharField(required=False, allow_blank=True)
    goal_location = serializers.CharField(max_length=200, required=False, allow_blank=True)
    goal_deadline = serializers.CharField(max_length=100, required=False, allow_blank=True)
    visa_status = serializers.CharField(max_length=100, required=False, allow_blank=True)


class AdminProfileSerializer(serializers.ModelSerializer):
    """Back-office view including billing identifiers"""

    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Profile
        fields = [
            'id',
            'user',
            'email',
            'full_name',
            'first_name',
            'last_name',
            'phone',
            'current_location',
            'onboarding_completed',
            'migration_goal',
            'future_occupation',
            'goal_location',
            'visa_status',
            'is_member',
            'stripe_customer_id',
            'stripe_subscription_id',
            'subscription_status',
            'subscription_period_end',
            'created_at',
        ]
        read_only_fields = fields
