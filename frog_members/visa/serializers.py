from rest_framework import serializers

from .models import VisaPlan, VisaPlanItem, VisaPlanMessage, VisaPlanReview, VisaRequirement, VisaType


class VisaRequirementSerializer(serializers.ModelSerializer):
    class Meta:
        model = VisaRequirement
        fields = ['id', 'title', 'description', 'order_index']


class VisaTypeSerializer(serializers.ModelSerializer):
    requirement_items = VisaRequirementSerializer(many=True, read_only=True)

    class Meta:
        model = VisaType
        fields = ['id', 'name', 'slug', 'description', 'requirements', 'process', 'official_url', 'requirement_items']


class VisaTypeSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = VisaType
        fields = ['id', 'name', 'slug', 'description', 'official_url']


class VisaPlanItemSerializer(serializers.ModelSerializer):
    visa_type_detail = VisaTypeSummarySerializer(source='visa_type', read_only=True)

    class Meta:
        model = VisaPlanItem
        fields = ['id', 'visa_type', 'visa_type_detail', 'order_index', 'notes']


class PlanItemInputSerializer(serializers.Serializer):
    visa_type = serializers.PrimaryKeyRelatedField(queryset=VisaType.objects.all())
    order_index = serializers.IntegerField(required=False, min_value=0)
    notes = serializers.CharField(required=False, allow_blank=True)

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        value['visa_type'] = value['visa_type'].pk
        return value


class VisaPlanReviewSerializer(serializers.ModelSerializer):
    class Meta:
        model = VisaPlanReview
        fields = ['id', 'plan', 'status', 'admin', 'admin_comment', 'completed_at', 'created_at', 'updated_at']
        read_only_fields = fields


class VisaPlanSerializer(serializers.ModelSerializer):
    items = VisaPlanItemSerializer(many=True, read_only=True)
    latest_review = serializers.SerializerMethodField()

    class Meta:
        model = VisaPlan
        fields = ['id', 'user', 'name', 'description', 'status', 'items', 'latest_review', 'created_at', 'updated_at']
        read_only_fields = ['id', 'user', 'status', 'items', 'latest_review', 'created_at', 'updated_at']

    def get_latest_review(self, obj):
        review = obj.reviews.first()
        return VisaPlanReviewSerializer(review).data if review else None


class VisaPlanWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    items = PlanItemInputSerializer(many=True, required=False)


class ReviewUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c[0] for c in VisaPlanReview.STATUS_CHOICES])
    admin_comment = serializers.CharField(required=False, allow_blank=True)


class VisaPlanMessageSerializer(serializers.ModelSerializer):
    class Meta:
        model = VisaPlanMessage
        fields = ['id', 'plan', 'sender', 'title', 'content', 'is_admin', 'is_read', 'created_at']
        read_only_fields = ['id', 'plan', 'sender', 'is_admin', 'is_read', 'created_at']
