from rest_framework import serializers

from .models import LearningVideo, VideoProgress, VideoResource, VideoSection


class VideoResourceSerializer(serializers.ModelSerializer):
    class Meta:
        model = VideoResource
        fields = ['id', 'video', 'title', 'description', 'url', 'type']


class LearningVideoSerializer(serializers.ModelSerializer):
    resources = VideoResourceSerializer(many=True, read_only=True)
    progress = serializers.SerializerMethodField()

    class Meta:
        model = LearningVideo
        fields = [
            'id', 'section', 'title', 'description', 'duration', 'storage_path',
            'thumbnail_url', 'order_index', 'resources', 'progress',
        ]

    def get_progress(self, obj):
        progress = self.context.get('progress', {}).get(obj.pk)
        if progress is None:
            return None
        return VideoProgressSerializer(progress).data


class VideoSectionSerializer(serializers.ModelSerializer):
    videos = LearningVideoSerializer(many=True, read_only=True)

    class Meta:
        model = VideoSection
        fields = ['id', 'title', 'description', 'order_index', 'videos']


class VideoSectionWriteSerializer(serializers.ModelSerializer):
    class Meta:
        model = VideoSection
        fields = ['id', 'title', 'description', 'order_index']


class VideoProgressSerializer(serializers.ModelSerializer):
    class Meta:
        model = VideoProgress
        fields = ['video', 'progress_seconds', 'completed', 'updated_at']


class ProgressUpdateSerializer(serializers.Serializer):
    progress_seconds = serializers.IntegerField(min_value=0)
    completed = serializers.BooleanField(required=False, default=False)
