from rest_framework import serializers

from .models import (
    ApplicationComment,
    Course,
    CourseApplication,
    CourseIntakeDate,
    CourseSubject,
    GoalLocation,
    JobPosition,
    School,
    SchoolPhoto,
    UserSchedule,
)


class GoalLocationSerializer(serializers.ModelSerializer):
    class Meta:
        model = GoalLocation
        fields = ['id', 'city', 'country', 'description']


class SchoolPhotoSerializer(serializers.ModelSerializer):
    class Meta:
        model = SchoolPhoto
        fields = ['id', 'url', 'description', 'sort_order']


class SchoolSerializer(serializers.ModelSerializer):
    goal_location = GoalLocationSerializer(read_only=True)
    photos = SchoolPhotoSerializer(many=True, read_only=True)

    class Meta:
        model = School
        fields = ['id', 'name', 'goal_location', 'website', 'description', 'average_english_level', 'photos']


class SchoolSummarySerializer(serializers.ModelSerializer):
    goal_location = GoalLocationSerializer(read_only=True)

    class Meta:
        model = School
        fields = ['id', 'name', 'goal_location']


class JobPositionSerializer(serializers.ModelSerializer):
    class Meta:
        model = JobPosition
        fields = ['id', 'title', 'description', 'industry']


class CourseSubjectSerializer(serializers.ModelSerializer):
    class Meta:
        model = CourseSubject
        fields = ['id', 'title', 'description']


class CourseIntakeDateSerializer(serializers.ModelSerializer):
    class Meta:
        model = CourseIntakeDate
        fields = ['id', 'year', 'month', 'day', 'start_date', 'application_deadline', 'is_tentative', 'notes']


class CourseListSerializer(serializers.ModelSerializer):
    school = SchoolSummarySerializer(read_only=True)
    is_favorite = serializers.SerializerMethodField()
    can_apply_online = serializers.SerializerMethodField()

    class Meta:
        model = Course
        fields = [
            'id',
            'name',
            'category',
            'school',
            'total_weeks',
            'lecture_weeks',
            'work_permit_weeks',
            'start_date',
            'tuition_and_others',
            'is_favorite',
            'can_apply_online',
        ]

    def get_is_favorite(self, obj):
        favorite_ids = self.context.get('favorite_ids')
        return favorite_ids is not None and obj.pk in favorite_ids

    def get_can_apply_online(self, obj):
        return bool(obj.content_snare_template_id)


class CourseDetailSerializer(CourseListSerializer):
    school = SchoolSerializer(read_only=True)
    subjects = CourseSubjectSerializer(many=True, read_only=True)
    intake_dates = CourseIntakeDateSerializer(many=True, read_only=True)
    job_positions = JobPositionSerializer(many=True, read_only=True)

    class Meta(CourseListSerializer.Meta):
        fields = CourseListSerializer.Meta.fields + [
            'description',
            'url',
            'admission_requirements',
            'graduation_requirements',
            'job_support',
            'notes',
            'subjects',
            'intake_dates',
            'job_positions',
        ]


class SchoolCourseWriteSerializer(serializers.ModelSerializer):
    """Fields a school representative may fill in"""

    class Meta:
        model = Course
        fields = [
            'name',
            'category',
            'description',
            'total_weeks',
            'lecture_weeks',
            'work_permit_weeks',
            'start_date',
            'tuition_and_others',
            'url',
            'admission_requirements',
            'graduation_requirements',
            'job_support',
            'notes',
        ]


class ApplicationCreateSerializer(serializers.Serializer):
    courseId = serializers.IntegerField(required=False)
    intake_date_id = serializers.IntegerField(required=False)


class UserScheduleSerializer(serializers.ModelSerializer):
    class Meta:
        model = UserSchedule
        fields = [
            'id',
            'course_application',
            'title',
            'description',
            'year',
            'month',
            'day',
            'is_completed',
            'is_admin_locked',
            'sort_order',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class ScheduleUpdateSerializer(serializers.Serializer):
    ACTION_CHOICES = ('toggle_completed', 'update_date')

    scheduleId = serializers.IntegerField()
    action = serializers.ChoiceField(choices=ACTION_CHOICES, default='toggle_completed')
    completed = serializers.BooleanField(required=False, allow_null=True, default=None)
    year = serializers.IntegerField(required=False, min_value=2000, max_value=2100)
    month = serializers.IntegerField(required=False, min_value=1, max_value=12)
    day = serializers.IntegerField(required=False, allow_null=True, min_value=1, max_value=31)


class ApplicationCommentSerializer(serializers.ModelSerializer):
    author_email = serializers.EmailField(source='author.email', read_only=True, default=None)

    class Meta:
        model = ApplicationComment
        fields = ['id', 'content', 'is_admin', 'author_email', 'created_at']
        read_only_fields = ['id', 'is_admin', 'author_email', 'created_at']


class CourseApplicationSerializer(serializers.ModelSerializer):
    course = CourseListSerializer(read_only=True)
    intake_date = CourseIntakeDateSerializer(read_only=True)

    class Meta:
        model = CourseApplication
        fields = [
            'id',
            'course',
            'intake_date',
            'status',
            'purpose',
            'payment_method',
            'preferred_start_date',
            'content_snare_request_id',
            'request_url',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class CourseApplicationDetailSerializer(CourseApplicationSerializer):
    schedules = UserScheduleSerializer(many=True, read_only=True)
    comments = ApplicationCommentSerializer(many=True, read_only=True)

    class Meta(CourseApplicationSerializer.Meta):
        fields = CourseApplicationSerializer.Meta.fields + ['schedules', 'comments']
        read_only_fields = fields


class AdminCourseApplicationSerializer(CourseApplicationSerializer):
    user_email = serializers.EmailField(source='user.email', read_only=True)
    user_name = serializers.SerializerMethodField()

    class Meta(CourseApplicationSerializer.Meta):
        fields = CourseApplicationSerializer.Meta.fields + ['user_email', 'user_name', 'content_snare_id', 'admin_notes']
        read_only_fields = fields

    def get_user_name(self, obj):
        profile = getattr(obj.user, 'profile', None)
        return profile.display_name if profile else obj.user.email


class AdminApplicationUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c[0] for c in CourseApplication.STATUS_CHOICES])
    admin_notes = serializers.CharField(required=False, allow_blank=True)


class InvitationSerializer(serializers.Serializer):
    email = serializers.CharField()

    def validate_email(self, value):
        value = value.strip()
        if '@' not in value:
            raise serializers.ValidationError('有効なメールアドレスが必要です')
        return value
