from rest_framework import serializers

from .models import AIChatSession, AIMessage


class AIMessageSerializer(serializers.ModelSerializer):
    class Meta:
        model = AIMessage
        fields = ['id', 'sender', 'content', 'created_at']
        read_only_fields = fields


class AIChatSessionSerializer(serializers.ModelSerializer):
    sessionId = serializers.UUIDField(source='session_key', read_only=True)

    class Meta:
        model = AIChatSession
        fields = ['id', 'sessionId', 'title', 'created_at', 'updated_at']
        read_only_fields = fields


class AIChatSessionDetailSerializer(AIChatSessionSerializer):
    messages = AIMessageSerializer(many=True, read_only=True)

    class Meta(AIChatSessionSerializer.Meta):
        fields = AIChatSessionSerializer.Meta.fields + ['messages']
        read_only_fields = fields


class AskSerializer(serializers.Serializer):
    query = serializers.CharField(max_length=2000, trim_whitespace=True)
    sessionId = serializers.UUIDField(required=False, allow_null=True)
