"""
Read-only proxy for microCMS content.

Only endpoints listed in MICROCMS_ALLOWED_ENDPOINTS are reachable. Query
parameters are forwarded after filtering to the ones microCMS understands.
"""
import logging

from django.conf import settings
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from . import content
from .client import CMSError, CMSNotFound, get_list_with_cache, get_with_cache

logger = logging.getLogger(__name__)


def _allowed(endpoint):
    return endpoint in getattr(settings, 'MICROCMS_ALLOWED_ENDPOINTS', ('blogs', 'interviews', 'categories'))


def _error_response(error):
    if isinstance(error, CMSNotFound):
        return Response({'detail': 'Content not found'}, status=status.HTTP_404_NOT_FOUND)
    if error.status_code == 503:
        return Response({'detail': str(error)}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response({'detail': 'Content service error'}, status=status.HTTP_502_BAD_GATEWAY)


class CMSBaseView(APIView):
    permission_classes = [IsAuthenticated]

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        self.force_refresh = request.query_params.get('revalidate') == 'true'


class ContentListView(CMSBaseView):
    """GET /api/cms/<endpoint>/"""

    def get(self, request, endpoint):
        if not _allowed(endpoint):
            return Response({'detail': 'Unknown content type'}, status=status.HTTP_404_NOT_FOUND)
        params = request.query_params.dict()
        params.pop('revalidate', None)
        try:
            data = get_list_with_cache(endpoint, params, force_refresh=self.force_refresh)
        except CMSError as e:
            return _error_response(e)
        return Response(data)


class ContentDetailView(CMSBaseView):
    """GET /api/cms/<endpoint>/<content_id>/"""

    def get(self, request, endpoint, content_id):
        if not _allowed(endpoint):
            return Response({'detail': 'Unknown content type'}, status=status.HTTP_404_NOT_FOUND)
        try:
            data = get_with_cache(endpoint, {'content_id': content_id}, force_refresh=self.force_refresh)
        except CMSError as e:
            return _error_response(e)
        return Response(data)


class RelatedContentView(CMSBaseView):
    """GET /api/cms/<endpoint>/<content_id>/related/"""

    def get(self, request, endpoint, content_id):
        if not _allowed(endpoint):
            return Response({'detail': 'Unknown content type'}, status=status.HTTP_404_NOT_FOUND)
        try:
            limit = int(request.query_params.get('limit', 3))
        except ValueError:
            return Response({'detail': 'limit must be an integer'}, status=status.HTTP_400_BAD_REQUEST)
        try:
            related = content.get_related(endpoint, content_id, limit=limit)
        except CMSError as e:
            return _error_response(e)
        return Response({'contents': related})
