from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsPortalAdmin
from accounts.profile_service import is_portal_admin

from . import chat_service
from .models import ChatSession
from .serializers import ChatMessageSerializer, ChatSessionSerializer, MessageInputSerializer


class ChatSessionViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Support chats: members see their own sessions, staff see all"""
    permission_classes = [IsAuthenticated]
    serializer_class = ChatSessionSerializer

    def get_queryset(self):
        queryset = ChatSession.objects.select_related('user').prefetch_related('messages__sender')
        if is_portal_admin(self.request.user):
            status_filter = self.request.query_params.get('status')
            if status_filter:
                queryset = queryset.filter(status=status_filter)
            return queryset
        return queryset.filter(user=self.request.user)

    def create(self, request):
        """Open a session with its first message"""
        serializer = MessageInputSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'detail': 'メッセージを入力してください'}, status=status.HTTP_400_BAD_REQUEST)
        session = chat_service.create_session(request.user, serializer.validated_data['content'])
        return Response(ChatSessionSerializer(session).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def messages(self, request, pk=None):
        session = self.get_object()
        serializer = MessageInputSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'detail': 'メッセージを入力してください'}, status=status.HTTP_400_BAD_REQUEST)
        message = chat_service.send_message(session, request.user, serializer.validated_data['content'])
        return Response(ChatMessageSerializer(message).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'], url_path='mark-read', permission_classes=[IsAuthenticated, IsPortalAdmin])
    def mark_read(self, request, pk=None):
        session = chat_service.mark_read(self.get_object())
        return Response({'id': session.pk, 'status': session.status})

    @action(detail=True, methods=['post'], url_path='mark-active', permission_classes=[IsAuthenticated, IsPortalAdmin])
    def mark_active(self, request, pk=None):
        session = chat_service.mark_active(self.get_object())
        return Response({'id': session.pk, 'status': session.status})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPortalAdmin])
def unread_count(request):
    count = ChatSession.objects.filter(status=ChatSession.STATUS_UNREAD).count()
    return Response({'count': count})
