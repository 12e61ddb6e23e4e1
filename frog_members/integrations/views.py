"""
Integration endpoints: Content Snare OAuth administration, calendar events
and the Slack connectivity test.
"""
import logging
import secrets

from django.conf import settings
from django.shortcuts import redirect
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsPortalAdmin

from . import content_snare_service, google_calendar_service, slack_service
from .content_snare_service import ContentSnareError, ReauthorizationRequired
from .models import RefreshToken

logger = logging.getLogger(__name__)

OAUTH_STATE_SESSION_KEY = 'content_snare_oauth_state'


class ContentSnareAuthURLView(APIView):
    """
    GET /api/integrations/content-snare/auth-url/

    Returns the Content Snare consent URL for a portal administrator.
    """
    permission_classes = [IsAuthenticated, IsPortalAdmin]

    def get(self, request):
        if not content_snare_service.is_configured():
            return Response(
                {'detail': 'Content Snare OAuth is not configured on the server'},
                status=status.HTTP_501_NOT_IMPLEMENTED,
            )
        state = secrets.token_urlsafe(16)
        request.session[OAUTH_STATE_SESSION_KEY] = state
        return Response({'auth_url': content_snare_service.build_authorize_url(state)})


class ContentSnareCallbackView(APIView):
    """
    GET /api/integrations/content-snare/callback/?code=...&state=...

    Exchanges the code and redirects back to the admin screen.
    """
    permission_classes = []
    authentication_classes = []

    def get(self, request):
        admin_url = f"{settings.APP_URL}/admin/content-snare"
        error = request.GET.get('error')
        code = request.GET.get('code')

        if error:
            logger.error("Content Snare OAuth error: %s", error)
            return redirect(f"{admin_url}?error={error}")
        if not code:
            return redirect(f"{admin_url}?error=no_code")

        expected_state = request.session.pop(OAUTH_STATE_SESSION_KEY, None)
        state = request.GET.get('state')
        if expected_state and state != expected_state:
            logger.warning("Content Snare OAuth state mismatch")
            return redirect(f"{admin_url}?error=invalid_state")

        try:
            content_snare_service.exchange_code(code)
        except ContentSnareError as e:
            logger.error("Content Snare code exchange failed: %s", e)
            return redirect(f"{admin_url}?error=token_exchange_failed")

        return redirect(f"{admin_url}?connected=1")


class ContentSnareStatusView(APIView):
    """GET /api/integrations/content-snare/status/"""
    permission_classes = [IsAuthenticated, IsPortalAdmin]

    def get(self, request):
        stored = RefreshToken.latest_for(RefreshToken.SERVICE_CONTENT_SNARE)
        return Response({
            'oauth_configured': content_snare_service.is_configured(),
            'connected': stored is not None,
            'connected_at': stored.created_at.isoformat() if stored else None,
        })


class ContentSnareRefreshView(APIView):
    """
    POST /api/integrations/content-snare/refresh/

    Forces an access token refresh. A rejected refresh token answers 401 with
    requireReauth so the admin screen can offer to reconnect.
    """
    permission_classes = [IsAuthenticated, IsPortalAdmin]

    def post(self, request):
        try:
            content_snare_service.token_manager.get_access_token(force_refresh=True)
        except ReauthorizationRequired as e:
            return Response(
                {'detail': str(e), 'requireReauth': True},
                status=status.HTTP_401_UNAUTHORIZED,
            )
        except ContentSnareError as e:
            logger.error("Content Snare refresh failed: %s", e)
            return Response({'detail': str(e)}, status=status.HTTP_502_BAD_GATEWAY)
        return Response({'success': True})


class ContentSnareTemplatesView(APIView):
    """GET /api/integrations/content-snare/templates/"""
    permission_classes = [IsAuthenticated, IsPortalAdmin]

    def get(self, request):
        try:
            templates = content_snare_service.ContentSnareClient().list_templates()
        except ReauthorizationRequired as e:
            return Response({'detail': str(e), 'requireReauth': True}, status=status.HTTP_401_UNAUTHORIZED)
        except ContentSnareError as e:
            return Response({'detail': str(e)}, status=status.HTTP_502_BAD_GATEWAY)
        return Response(templates)


class EventsView(APIView):
    """
    GET /api/integrations/events/?year=2025&month=4

    Calendar events from the first day of the month to the end of the next one.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        try:
            year = int(request.query_params['year']) if request.query_params.get('year') else None
            month = int(request.query_params['month']) if request.query_params.get('month') else None
        except ValueError:
            return Response({'detail': 'year and month must be integers'}, status=status.HTTP_400_BAD_REQUEST)
        if month is not None and not 1 <= month <= 12:
            return Response({'detail': 'month must be between 1 and 12'}, status=status.HTTP_400_BAD_REQUEST)

        time_min, time_max = google_calendar_service.month_window(year, month)
        events = google_calendar_service.get_events(time_min, time_max)
        return Response({'events': events})


class SlackTestView(APIView):
    """POST /api/integrations/slack/test/"""
    permission_classes = [IsAuthenticated, IsPortalAdmin]

    def post(self, request):
        result = slack_service.send_test_notification()
        if not result.ok:
            return Response({'ok': False, 'error': result.error}, status=status.HTTP_502_BAD_GATEWAY)
        return Response({'ok': True})
