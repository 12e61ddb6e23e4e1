from rest_framework import serializers

from .models import ChatMessage, ChatSession


class ChatMessageSerializer(serializers.ModelSerializer):
    sender_name = serializers.SerializerMethodField()

    class Meta:
        model = ChatMessage
        fields = ['id', 'session', 'sender', 'sender_name', 'content', 'is_staff_reply', 'created_at']
        read_only_fields = fields

    def get_sender_name(self, obj):
        if obj.sender is None:
            return None
        profile = getattr(obj.sender, 'profile', None)
        return profile.display_name if profile else obj.sender.email


class ChatSessionSerializer(serializers.ModelSerializer):
    messages = ChatMessageSerializer(many=True, read_only=True)
    user_email = serializers.EmailField(source='user.email', read_only=True)

    class Meta:
        model = ChatSession
        fields = ['id', 'user', 'user_email', 'status', 'created_at', 'updated_at', 'messages']
        read_only_fields = fields


class MessageInputSerializer(serializers.Serializer):
    content = serializers.CharField(trim_whitespace=True, max_length=5000)
