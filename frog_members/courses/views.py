import json
import logging

from django.conf import settings
from django.db.models import Q
from django.http import JsonResponse
from django.utils.crypto import constant_time_compare
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import HasCompletedOnboarding, IsPortalAdmin
from accounts.profile_service import get_profile, is_portal_admin
from integrations.content_snare_service import ContentSnareError, ReauthorizationRequired

from . import application_service, school_service
from .application_service import ApplicationError
from .models import (
    Course,
    CourseApplication,
    FavoriteCourse,
    GoalLocation,
    JobPosition,
    School,
    UserSchedule,
)
from .school_service import InvalidSchoolToken
from .serializers import (
    AdminApplicationUpdateSerializer,
    AdminCourseApplicationSerializer,
    ApplicationCommentSerializer,
    ApplicationCreateSerializer,
    CourseApplicationDetailSerializer,
    CourseApplicationSerializer,
    CourseDetailSerializer,
    CourseIntakeDateSerializer,
    CourseListSerializer,
    GoalLocationSerializer,
    InvitationSerializer,
    JobPositionSerializer,
    SchoolCourseWriteSerializer,
    SchoolSerializer,
    ScheduleUpdateSerializer,
    UserScheduleSerializer,
)

logger = logging.getLogger(__name__)


def _favorite_ids(user):
    return set(FavoriteCourse.objects.filter(user=user).values_list('course_id', flat=True))


class CourseViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Course catalogue.

    Filters: ?school=, ?goal_location=, ?category=, ?q= (name, description,
    school name, subject titles).
    """
    permission_classes = [IsAuthenticated, HasCompletedOnboarding]

    def get_queryset(self):
        queryset = Course.objects.select_related('school', 'school__goal_location')
        if self.action == 'retrieve':
            queryset = queryset.prefetch_related('subjects', 'intake_dates', 'job_positions', 'school__photos')

        params = self.request.query_params
        if params.get('school'):
            queryset = queryset.filter(school_id=params['school'])
        if params.get('goal_location'):
            queryset = queryset.filter(school__goal_location_id=params['goal_location'])
        if params.get('category'):
            queryset = queryset.filter(category__iexact=params['category'])
        q = (params.get('q') or '').strip()
        if q:
            queryset = queryset.filter(
                Q(name__icontains=q)
                | Q(description__icontains=q)
                | Q(school__name__icontains=q)
                | Q(subjects__title__icontains=q)
            ).distinct()
        return queryset

    def get_serializer_class(self):
        if self.action == 'retrieve':
            return CourseDetailSerializer
        return CourseListSerializer

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['favorite_ids'] = _favorite_ids(self.request.user)
        return context

    @action(detail=True, methods=['post', 'delete'])
    def favorite(self, request, pk=None):
        """POST adds the course to favorites, DELETE removes it"""
        course = self.get_object()
        if request.method == 'DELETE':
            FavoriteCourse.objects.filter(user=request.user, course=course).delete()
            return Response(status=status.HTTP_204_NO_CONTENT)
        FavoriteCourse.objects.get_or_create(user=request.user, course=course)
        return Response({'is_favorite': True}, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def favorites(self, request):
        courses = self.get_queryset().filter(favorited_by__user=request.user)
        return Response(self.get_serializer(courses, many=True).data)

    @action(detail=False, methods=['get'])
    def recommended(self, request):
        courses = school_service.recommend_courses(get_profile(request.user))
        return Response(self.get_serializer(courses, many=True).data)

    @action(detail=True, methods=['get'], url_path='intake-dates')
    def intake_dates(self, request, pk=None):
        course = self.get_object()
        return Response(CourseIntakeDateSerializer(course.intake_dates.all(), many=True).data)


class SchoolViewSet(viewsets.ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated, HasCompletedOnboarding]
    serializer_class = SchoolSerializer
    queryset = School.objects.select_related('goal_location').prefetch_related('photos')

    @action(detail=True, methods=['post'], permission_classes=[IsAuthenticated, IsPortalAdmin])
    def invite(self, request, pk=None):
        """Issue a 30-day editor link for a school representative"""
        school = self.get_object()
        serializer = InvitationSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'detail': '有効なメールアドレスが必要です'}, status=status.HTTP_400_BAD_REQUEST)

        access_token = school_service.create_invitation(school, serializer.validated_data['email'], request.user)
        return Response({
            'success': True,
            'accessUrl': school_service.access_url_for(access_token),
            'school': school.name,
            'expiresAt': access_token.expires_at.isoformat(),
        }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def goal_locations(request):
    return Response(GoalLocationSerializer(GoalLocation.objects.all(), many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def job_positions(request):
    return Response(JobPositionSerializer(JobPosition.objects.all(), many=True).data)


class CourseApplicationViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Members see their own applications, staff see all of them.

    POST / creates an application through Content Snare.
    """
    permission_classes = [IsAuthenticated, HasCompletedOnboarding]

    def get_queryset(self):
        queryset = CourseApplication.objects.select_related(
            'course', 'course__school', 'course__school__goal_location', 'intake_date', 'user', 'user__profile',
        )
        if is_portal_admin(self.request.user):
            status_filter = self.request.query_params.get('status')
            if status_filter:
                queryset = queryset.filter(status=status_filter)
            if self.request.query_params.get('mine') != '1':
                return queryset
        return queryset.filter(user=self.request.user)

    def get_serializer_class(self):
        if self.action == 'retrieve':
            return CourseApplicationDetailSerializer
        if is_portal_admin(self.request.user):
            return AdminCourseApplicationSerializer
        return CourseApplicationSerializer

    def create(self, request):
        serializer = ApplicationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            application = application_service.create_course_application(
                get_profile(request.user),
                data.get('courseId'),
                data.get('intake_date_id'),
            )
        except ApplicationError as e:
            return Response({'detail': e.message}, status=e.status_code)
        except ReauthorizationRequired:
            logger.error("Course application blocked: Content Snare needs reauthorization")
            return Response(
                {'detail': 'Content Snareの認証が必要です', 'requireReauth': True},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        except ContentSnareError as e:
            logger.error("Content Snare error while applying: %s (%s)", e, e.details)
            return Response(
                {'detail': 'Content Snare APIエラー', 'details': e.details},
                status=status.HTTP_502_BAD_GATEWAY,
            )

        return Response({
            'success': True,
            'application_id': application.pk,
            'request_id': application.content_snare_request_id,
            'share_link': application.request_url,
        }, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['patch'], url_path='status', permission_classes=[IsAuthenticated, IsPortalAdmin])
    def update_status(self, request, pk=None):
        application = self.get_object()
        serializer = AdminApplicationUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        application.status = serializer.validated_data['status']
        fields = ['status', 'updated_at']
        if 'admin_notes' in serializer.validated_data:
            application.admin_notes = serializer.validated_data['admin_notes']
            fields.append('admin_notes')
        application.save(update_fields=fields)
        logger.info("Application %s set to %s by %s", application.pk, application.status, request.user.pk)
        return Response(AdminCourseApplicationSerializer(application).data)

    @action(detail=False, methods=['get'], url_path='pending-count', permission_classes=[IsAuthenticated, IsPortalAdmin])
    def pending_count(self, request):
        count = CourseApplication.objects.filter(status=CourseApplication.STATUS_SUBMITTED).count()
        return Response({'count': count})

    @action(detail=True, methods=['get', 'post'])
    def comments(self, request, pk=None):
        application = self.get_object()
        if request.method == 'GET':
            return Response(ApplicationCommentSerializer(application.comments.all(), many=True).data)

        serializer = ApplicationCommentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = serializer.save(
            application=application,
            author=request.user,
            is_admin=is_portal_admin(request.user),
        )
        return Response(ApplicationCommentSerializer(comment).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['get', 'post'])
    def schedules(self, request, pk=None):
        """
        GET lists the application's timeline.
        POST {scheduleId, action: toggle_completed|update_date, completed, year, month, day}
        """
        application = self.get_object()
        if request.method == 'GET':
            return Response({'success': True, 'data': UserScheduleSerializer(application.schedules.all(), many=True).data})

        serializer = ScheduleUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        schedule = UserSchedule.objects.filter(pk=data['scheduleId'], course_application=application).first()
        if schedule is None:
            return Response({'detail': 'スケジュールが見つかりません'}, status=status.HTTP_404_NOT_FOUND)

        try:
            schedule = application_service.update_schedule(
                schedule,
                user_is_admin=is_portal_admin(request.user),
                action=data['action'],
                completed=data.get('completed'),
                year=data.get('year'),
                month=data.get('month'),
                day=data.get('day'),
            )
        except ApplicationError as e:
            return Response({'detail': e.message}, status=e.status_code)
        return Response({'success': True, 'data': UserScheduleSerializer(schedule).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_schedules(request):
    """Every schedule item of the member, in calendar order"""
    schedules = UserSchedule.objects.filter(user=request.user)
    return Response(UserScheduleSerializer(schedules, many=True).data)


def _school_token_or_error(school_id, token, email, mark_used=True):
    try:
        return school_service.validate_token(school_id, token, email, mark_used=mark_used), None
    except InvalidSchoolToken as e:
        return None, Response({'detail': str(e)}, status=status.HTTP_401_UNAUTHORIZED)


@api_view(['GET'])
@permission_classes([AllowAny])
def school_editor_validate(request, school_id):
    """GET ?token=&email= - checks an editor link and returns the school with its courses"""
    token = request.query_params.get('token')
    email = request.query_params.get('email')
    if not token or not email:
        return Response({'detail': '必要な情報が不足しています'}, status=status.HTTP_400_BAD_REQUEST)

    access_token, error = _school_token_or_error(school_id, token, email, mark_used=False)
    if error:
        return error

    school = access_token.school
    return Response({
        'valid': True,
        'school': SchoolSerializer(school).data,
        'courses': CourseListSerializer(school.courses.all(), many=True).data,
        'expiresAt': access_token.expires_at.isoformat(),
    })


@api_view(['POST'])
@permission_classes([AllowAny])
def school_editor_create_course(request, school_id):
    """POST {course, token, email} - a school representative registers a course"""
    course_data = request.data.get('course')
    token = request.data.get('token')
    email = request.data.get('email')
    if not course_data or not token or not email:
        return Response({'detail': '必要な情報が不足しています'}, status=status.HTTP_400_BAD_REQUEST)

    access_token, error = _school_token_or_error(school_id, token, email)
    if error:
        return error

    serializer = SchoolCourseWriteSerializer(data=course_data)
    serializer.is_valid(raise_exception=True)
    course = serializer.save(school=access_token.school)
    logger.info("Course %s created by school editor %s", course.pk, email)
    return Response({
        'success': True,
        'message': '新規コースが作成されました',
        'course': CourseListSerializer(course).data,
    }, status=status.HTTP_201_CREATED)


@csrf_exempt
@require_http_methods(["POST"])
def content_snare_webhook(request):
    """
    POST /api/courses/content-snare/webhook/

    Body: {"event": "request.submitted", "request_id": "..."}
    """
    secret = getattr(settings, 'CONTENT_SNARE_WEBHOOK_SECRET', '')
    if secret and not constant_time_compare(request.headers.get('X-Webhook-Secret', ''), secret):
        logger.warning("Content Snare webhook with invalid secret")
        return JsonResponse({'error': 'Invalid signature'}, status=401)

    try:
        body = json.loads(request.body or b'{}')
    except ValueError:
        return JsonResponse({'error': 'Invalid JSON'}, status=400)
    if not isinstance(body, dict):
        return JsonResponse({'error': 'Invalid webhook data'}, status=400)

    event_type = body.get('event')
    request_id = body.get('request_id')
    if not event_type or not request_id:
        return JsonResponse({'error': 'Invalid webhook data'}, status=400)

    application = application_service.apply_content_snare_event(event_type, str(request_id))
    if application is None:
        logger.warning("Content Snare webhook %s for unknown request %s", event_type, request_id)
        return JsonResponse({'error': 'Application not found'}, status=404)

    return JsonResponse({'success': True})
