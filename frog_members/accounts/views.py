import logging

from django.contrib.auth import get_user_model
from django.db.models import Q
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken as JWTRefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView

from .models import Profile
from .permissions import IsPortalAdmin
from .profile_service import complete_onboarding, ensure_profile, get_profile, is_portal_admin, post_login_redirect
from .serializers import (
    AdminProfileSerializer,
    OnboardingSerializer,
    PortalTokenObtainPairSerializer,
    ProfileSerializer,
    RegisterSerializer,
)

logger = logging.getLogger(__name__)

User = get_user_model()


class PortalTokenObtainPairView(TokenObtainPairView):
    serializer_class = PortalTokenObtainPairSerializer


class RegisterView(APIView):
    """POST /api/accounts/register/ - email/password sign-up, answers JWT pair"""
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user = User.objects.create_user(
            email=data['email'],
            password=data['password'],
            first_name=data.get('first_name', ''),
            last_name=data.get('last_name', ''),
        )
        profile, _ = ensure_profile(user)
        refresh = JWTRefreshToken.for_user(user)
        logger.info("User %s registered", user.pk)

        return Response({
            'user_id': user.pk,
            'email': user.email,
            'access': str(refresh.access_token),
            'refresh': str(refresh),
            'redirect': post_login_redirect(profile),
        }, status=status.HTTP_201_CREATED)


class SessionBootstrapView(APIView):
    """
    POST /api/accounts/session/

    Called by the frontend right after login: makes sure the profile row
    exists and tells the client where to go next.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        profile, created = ensure_profile(request.user)
        return Response({
            'profile_created': created,
            'onboarding_completed': profile.onboarding_completed,
            'is_admin': is_portal_admin(request.user),
            'redirect': '/admin' if is_portal_admin(request.user) else post_login_redirect(profile),
        })


class MeView(APIView):
    """GET/PATCH /api/accounts/me/"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(ProfileSerializer(get_profile(request.user)).data)

    def patch(self, request):
        profile = get_profile(request.user)
        serializer = ProfileSerializer(profile, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)


class OnboardingView(APIView):
    """POST /api/accounts/onboarding/"""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = OnboardingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        profile = complete_onboarding(get_profile(request.user), serializer.validated_data)
        return Response({
            'profile': ProfileSerializer(profile).data,
            'redirect': '/dashboard',
        })


class AdminCheckView(APIView):
    """GET /api/accounts/admin/check/"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({'isAdmin': is_portal_admin(request.user)})


class AdminProfileListView(APIView):
    """GET /api/accounts/admin/profiles/?q=&is_member="""
    permission_classes = [IsAuthenticated, IsPortalAdmin]

    def get(self, request):
        qs = Profile.objects.select_related('user').all()
        query = request.query_params.get('q', '').strip()
        if query:
            qs = qs.filter(
                Q(email__icontains=query) | Q(first_name__icontains=query) | Q(last_name__icontains=query)
            )
        is_member = request.query_params.get('is_member')
        if is_member in ('true', 'false'):
            qs = qs.filter(is_member=is_member == 'true')
        return Response(AdminProfileSerializer(qs, many=True).data)


class AdminProfileDetailView(APIView):
    """GET /api/accounts/admin/profiles/<id>/"""
    permission_classes = [IsAuthenticated, IsPortalAdmin]

    def get(self, request, pk):
        profile = Profile.objects.select_related('user').filter(pk=pk).first()
        if not profile:
            return Response({'detail': 'Profile not found'}, status=status.HTTP_404_NOT_FOUND)
        return Response(AdminProfileSerializer(profile).data)
