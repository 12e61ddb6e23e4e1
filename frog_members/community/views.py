from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from accounts.profile_service import is_portal_admin

from .slack_directory import get_all_category_info


@api_view(['GET'])
@permission_classes([AllowAny])
def categories(request):
    """
    GET /api/community/categories/

    Per-category Slack community sizes. ?detailed=1 counts real new members
    instead of the 5% estimate; ?refresh=1 (staff only) bypasses the cache.
    """
    detailed = request.query_params.get('detailed') == '1'
    force_refresh = request.query_params.get('refresh') == '1' and is_portal_admin(request.user)
    return Response({
        'categories': get_all_category_info(skip_new_members=not detailed, force_refresh=force_refresh),
    })
