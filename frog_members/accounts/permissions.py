"""
Permission classes for portal endpoints.

    from accounts.permissions import IsPortalAdmin, HasCompletedOnboarding

    class MyView(APIView):
        permission_classes = [IsAuthenticated, HasCompletedOnboarding]

- IsPortalAdmin: staff (AdminRole, ADMIN_USER_IDS or superuser)
- HasCompletedOnboarding: members who finished onboarding; staff pass
- IsMember: paying members; staff pass
"""
from rest_framework.permissions import BasePermission

from .profile_service import get_profile, is_portal_admin


class IsPortalAdmin(BasePermission):
    """Portal staff only"""
    message = 'Administrator access required'

    def has_permission(self, request, view):
        return is_portal_admin(request.user)


class HasCompletedOnboarding(BasePermission):
    """Blocks members who have not completed onboarding yet"""
    message = {'detail': 'Please complete onboarding first', 'redirect': '/onboarding'}

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        if is_portal_admin(request.user):
            return True
        return get_profile(request.user).onboarding_completed


class IsMember(BasePermission):
    """Paying members only"""
    message = {'detail': 'An active membership is required', 'redirect': '/learning'}

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        if is_portal_admin(request.user):
            return True
        return get_profile(request.user).has_active_membership()
