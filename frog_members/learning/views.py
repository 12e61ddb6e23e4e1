from django.shortcuts import get_object_or_404
from rest_framework import viewsets
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsMember, IsPortalAdmin

from . import services
from .models import LearningVideo, VideoResource, VideoSection
from .serializers import (
    LearningVideoSerializer,
    ProgressUpdateSerializer,
    VideoProgressSerializer,
    VideoResourceSerializer,
    VideoSectionSerializer,
    VideoSectionWriteSerializer,
)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsMember])
def sections(request):
    """Sections with their videos, resources and the caller's progress"""
    queryset = VideoSection.objects.prefetch_related('videos__resources')
    context = {'progress': services.progress_map(request.user)}
    return Response({'sections': VideoSectionSerializer(queryset, many=True, context=context).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsMember])
def video_detail(request, video_id):
    video = get_object_or_404(LearningVideo.objects.prefetch_related('resources'), pk=video_id)
    context = {'progress': services.progress_map(request.user)}
    return Response(LearningVideoSerializer(video, context=context).data)


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsMember])
def update_progress(request, video_id):
    video = get_object_or_404(LearningVideo, pk=video_id)
    serializer = ProgressUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    progress = services.record_progress(request.user, video, **serializer.validated_data)
    return Response(VideoProgressSerializer(progress).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsMember])
def progress_summary(request):
    return Response(services.member_summary(request.user))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPortalAdmin])
def overview(request):
    return Response(services.overview_stats())


class AdminSectionViewSet(viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated, IsPortalAdmin]
    serializer_class = VideoSectionWriteSerializer
    queryset = VideoSection.objects.all()


class AdminVideoViewSet(viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated, IsPortalAdmin]
    serializer_class = LearningVideoSerializer

    def get_queryset(self):
        queryset = LearningVideo.objects.prefetch_related('resources')
        section = self.request.query_params.get('section')
        if section:
            queryset = queryset.filter(section_id=section)
        return queryset


class AdminResourceViewSet(viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated, IsPortalAdmin]
    serializer_class = VideoResourceSerializer

    def get_queryset(self):
        queryset = VideoResource.objects.all()
        video = self.request.query_params.get('video')
        if video:
            queryset = queryset.filter(video_id=video)
        return queryset
