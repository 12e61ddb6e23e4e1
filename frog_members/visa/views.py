import logging

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import HasCompletedOnboarding, IsPortalAdmin
from accounts.profile_service import is_portal_admin
from cms import content as cms_content
from cms.client import CMSError

from . import services
from .models import VisaPlan, VisaPlanReview, VisaType
from .serializers import (
    PlanItemInputSerializer,
    ReviewUpdateSerializer,
    VisaPlanMessageSerializer,
    VisaPlanReviewSerializer,
    VisaPlanSerializer,
    VisaPlanWriteSerializer,
    VisaTypeSerializer,
    VisaTypeSummarySerializer,
)
from .services import VisaPlanError

logger = logging.getLogger(__name__)


class VisaTypeViewSet(viewsets.ReadOnlyModelViewSet):
    """Visa catalogue; ?q= searches names, descriptions and requirements"""
    permission_classes = [IsAuthenticated]
    serializer_class = VisaTypeSerializer

    def get_queryset(self):
        return VisaType.objects.prefetch_related('requirement_items')

    def list(self, request, *args, **kwargs):
        q = request.query_params.get('q')
        if q:
            return Response(VisaTypeSerializer(services.search_visa_types(q), many=True).data)
        return super().list(request, *args, **kwargs)


class VisaPlanViewSet(viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated, HasCompletedOnboarding]
    serializer_class = VisaPlanSerializer
    http_method_names = ['get', 'post', 'put', 'patch', 'delete']

    def get_queryset(self):
        queryset = VisaPlan.objects.prefetch_related('items__visa_type', 'reviews')
        if is_portal_admin(self.request.user) and self.request.query_params.get('mine') != '1':
            return queryset
        return queryset.filter(user=self.request.user)

    def create(self, request, *args, **kwargs):
        serializer = VisaPlanWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        plan = services.create_plan(
            request.user,
            name=data.get('name'),
            description=data.get('description', ''),
            items=data.get('items', []),
        )
        return Response(VisaPlanSerializer(plan).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        plan = self.get_object()
        serializer = VisaPlanWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        for field in ('name', 'description'):
            if field in data:
                setattr(plan, field, data[field])
        plan.save()
        if 'items' in data:
            services.replace_items(plan, data['items'])
        return Response(VisaPlanSerializer(plan).data)

    @action(detail=True, methods=['put'])
    def items(self, request, pk=None):
        """Replace all items: [{visa_type, order_index, notes}, ...]"""
        plan = self.get_object()
        serializer = PlanItemInputSerializer(data=request.data, many=True)
        serializer.is_valid(raise_exception=True)
        services.replace_items(plan, serializer.validated_data)
        return Response(VisaPlanSerializer(plan).data)

    @action(detail=True, methods=['post'], url_path='request-review')
    def request_review(self, request, pk=None):
        plan = self.get_object()
        try:
            review = services.request_review(plan, request.user)
        except VisaPlanError as e:
            return Response({'detail': e.message}, status=e.status_code)
        return Response(VisaPlanReviewSerializer(review).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['get', 'post'])
    def messages(self, request, pk=None):
        plan = self.get_object()
        if request.method == 'GET':
            return Response(VisaPlanMessageSerializer(plan.messages.all(), many=True).data)

        serializer = VisaPlanMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        message = services.post_message(
            plan,
            request.user,
            serializer.validated_data['content'],
            title=serializer.validated_data.get('title', ''),
            is_admin=is_portal_admin(request.user),
        )
        return Response(VisaPlanMessageSerializer(message).data, status=status.HTTP_201_CREATED)


class VisaPlanReviewViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Staff review queue"""
    permission_classes = [IsAuthenticated, IsPortalAdmin]
    serializer_class = VisaPlanReviewSerializer

    def get_queryset(self):
        queryset = VisaPlanReview.objects.select_related('plan')
        status_filter = self.request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        return queryset

    def partial_update(self, request, pk=None):
        review = self.get_object()
        serializer = ReviewUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        review = services.update_review(
            review,
            request.user,
            serializer.validated_data['status'],
            serializer.validated_data.get('admin_comment'),
        )
        return Response(VisaPlanReviewSerializer(review).data)

    @action(detail=False, methods=['get'], url_path='pending-count')
    def pending_count(self, request):
        count = VisaPlanReview.objects.filter(status=VisaPlanReview.STATUS_PENDING).count()
        return Response({'count': count})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def site_search(request):
    """GET ?q= - visa types plus CMS interview articles"""
    query = (request.query_params.get('q') or '').strip()
    if not query:
        return Response({'detail': '検索クエリが指定されていません'}, status=status.HTTP_400_BAD_REQUEST)

    visa_results = VisaTypeSummarySerializer(services.search_visa_types(query), many=True).data
    try:
        interviews = cms_content.get_interviews(q=query)['contents']
    except CMSError as e:
        logger.warning("Interview search failed for %r: %s", query, e)
        interviews = []

    return Response({'visa': visa_results, 'interviews': interviews})
