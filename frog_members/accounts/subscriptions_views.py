from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .profile_service import get_profile
from .stripe_service import BillingError, StripeService


class SubscriptionMeView(APIView):
    """GET /api/accounts/subscription/"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        profile = get_profile(request.user)
        return Response({
            'is_member': profile.is_member,
            'has_access': profile.has_active_membership(),
            'status': profile.subscription_status,
            'current_period_end': profile.subscription_period_end,
            'has_customer': bool(profile.stripe_customer_id),
        })


class SubscriptionCheckoutView(APIView):
    """POST /api/accounts/subscription/checkout/ - Stripe Checkout for the membership plan"""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        try:
            result = StripeService.create_checkout_session(get_profile(request.user))
        except BillingError as e:
            return Response({'detail': e.message}, status=e.status_code)
        return Response(result, status=status.HTTP_201_CREATED)


class SubscriptionPortalView(APIView):
    """POST /api/accounts/subscription/portal/"""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        try:
            result = StripeService.create_portal_session(get_profile(request.user))
        except BillingError as e:
            return Response({'detail': e.message}, status=e.status_code)
        return Response(result)


class SubscriptionCancelView(APIView):
    """POST /api/accounts/subscription/cancel/"""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        try:
            profile = StripeService.cancel_subscription(get_profile(request.user))
        except BillingError as e:
            return Response({'detail': e.message}, status=e.status_code)
        return Response({
            'success': True,
            'is_member': profile.is_member,
            'status': profile.subscription_status,
        })
