from rest_framework import mixins, status, viewsets
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import HasCompletedOnboarding

from . import services
from .models import AIChatSession
from .serializers import AIChatSessionDetailSerializer, AIChatSessionSerializer, AskSerializer


@api_view(['POST'])
@permission_classes([IsAuthenticated, HasCompletedOnboarding])
def ask(request):
    """
    POST /api/concierge/ask/
    Body: {"query": "...", "sessionId": "<uuid>"}  (sessionId optional)
    """
    serializer = AskSerializer(data=request.data)
    if not serializer.is_valid():
        if 'query' in serializer.errors:
            return Response({'detail': '質問が指定されていません'}, status=status.HTTP_400_BAD_REQUEST)
        return Response({'detail': '会話IDが不正です'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        payload = services.ask(
            request.user,
            serializer.validated_data['query'],
            serializer.validated_data.get('sessionId'),
        )
    except services.ConciergeError as e:
        return Response({'detail': e.message}, status=e.status_code)
    return Response(payload)


class AIChatSessionViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin,
                           mixins.DestroyModelMixin, viewsets.GenericViewSet):
    """The member's own concierge conversations, looked up by session key"""
    permission_classes = [IsAuthenticated]
    lookup_field = 'session_key'

    def get_queryset(self):
        queryset = AIChatSession.objects.filter(user=self.request.user)
        if self.action == 'retrieve':
            queryset = queryset.prefetch_related('messages')
        return queryset

    def get_serializer_class(self):
        if self.action == 'retrieve':
            return AIChatSessionDetailSerializer
        return AIChatSessionSerializer
