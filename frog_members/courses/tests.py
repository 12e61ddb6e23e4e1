from datetime import date, timedelta
from unittest.mock import MagicMock, patch

from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APITestCase

from accounts.models import AdminRole, CustomUser
from courses.application_service import (
    ApplicationError,
    apply_content_snare_event,
    create_course_application,
    schedule_date_for,
)
from courses.models import (
    Course,
    CourseApplication,
    CourseIntakeDate,
    CourseJobPosition,
    FavoriteCourse,
    GoalLocation,
    JobPosition,
    School,
    SchoolAccessToken,
    UserSchedule,
)
from courses.school_service import InvalidSchoolToken, create_invitation, recommend_courses, validate_token
from integrations.content_snare_service import ContentSnareError
from integrations.slack_service import SlackResult


def make_member(email='member@example.com', **profile_fields):
    user = CustomUser.objects.create_user(email=email, password='StrongPass123')
    profile = user.profile
    profile.first_name = profile_fields.pop('first_name', 'Taro')
    profile.last_name = profile_fields.pop('last_name', 'Kaeru')
    profile.onboarding_completed = True
    for field, value in profile_fields.items():
        setattr(profile, field, value)
    profile.save()
    return user


class CatalogueFixtureMixin:
    def make_catalogue(self):
        self.vancouver = GoalLocation.objects.create(city='Vancouver', country='Canada')
        self.school = School.objects.create(name='Frog College', goal_location=self.vancouver)
        self.course = Course.objects.create(
            school=self.school,
            name='Hospitality Management',
            category='hospitality',
            content_snare_template_id='tpl_1',
            migration_goals=['overseas_employment'],
        )
        self.intake = CourseIntakeDate.objects.create(course=self.course, year=2027, month=4, day=15)


def fake_content_snare():
    cs_client = MagicMock()
    cs_client.create_client.return_value = {'id': 'cli_1'}
    cs_client.create_request.return_value = {'id': 'req_1', 'share_link': 'https://contentsnare.com/r/abc'}
    return cs_client


class ScheduleDateTests(TestCase, CatalogueFixtureMixin):
    def setUp(self):
        self.make_catalogue()

    def test_explicit_year_month(self):
        intake = CourseIntakeDate(course=self.course, year=2027, month=9)
        self.assertEqual(schedule_date_for(intake, self.course), (2027, 9, 1))

    def test_start_date_then_course_then_today(self):
        intake = CourseIntakeDate(course=self.course, month=None, start_date=date(2027, 1, 8))
        self.assertEqual(schedule_date_for(intake, self.course), (2027, 1, 8))

        self.course.start_date = date(2028, 5, 2)
        self.assertEqual(schedule_date_for(None, self.course), (2028, 5, 2))

        self.course.start_date = None
        today = date(2026, 10, 18)
        self.assertEqual(schedule_date_for(None, self.course, today=today), (2026, 10, 18))


@patch('courses.application_service.slack_service.notify_new_course_application', return_value=SlackResult(ok=True))
class CreateApplicationTests(TestCase, CatalogueFixtureMixin):
    def setUp(self):
        self.make_catalogue()
        self.user = make_member()
        self.profile = self.user.profile

    def test_creates_draft_with_locked_schedule(self, notify):
        cs_client = fake_content_snare()

        application = create_course_application(self.profile, self.course.pk, self.intake.pk, cs_client=cs_client)

        self.assertEqual(application.status, CourseApplication.STATUS_DRAFT)
        self.assertEqual(application.content_snare_request_id, 'req_1')
        self.assertEqual(application.request_url, 'https://contentsnare.com/r/abc')
        self.assertEqual(application.content_snare_id, 'cli_1')
        cs_client.create_request.assert_called_once_with(
            template_id='tpl_1',
            client_email='member@example.com',
            client_full_name='Taro Kaeru',
            name='Hospitality Management - Taro Kaeru',
        )

        schedule = UserSchedule.objects.get(course_application=application)
        self.assertTrue(schedule.is_admin_locked)
        self.assertEqual((schedule.year, schedule.month, schedule.day), (2027, 4, 15))
        notify.assert_called_once()

        self.profile.refresh_from_db()
        self.assertEqual(self.profile.content_snare_client_id, 'cli_1')

    def test_existing_client_is_updated(self, notify):
        self.profile.content_snare_client_id = 'cli_old'
        self.profile.save()
        cs_client = fake_content_snare()

        application = create_course_application(self.profile, self.course.pk, self.intake.pk, cs_client=cs_client)

        cs_client.update_client.assert_called_once_with('cli_old', 'Taro Kaeru', 'member@example.com')
        cs_client.create_client.assert_not_called()
        self.assertEqual(application.content_snare_id, 'cli_old')

    def test_missing_client_is_recreated(self, notify):
        self.profile.content_snare_client_id = 'cli_gone'
        self.profile.save()
        cs_client = fake_content_snare()
        cs_client.update_client.side_effect = ContentSnareError('not found', status_code=404)

        application = create_course_application(self.profile, self.course.pk, self.intake.pk, cs_client=cs_client)

        self.assertEqual(application.content_snare_id, 'cli_1')

    def test_validation(self, notify):
        cs_client = fake_content_snare()
        with self.assertRaises(ApplicationError):
            create_course_application(self.profile, self.course.pk, None, cs_client=cs_client)

        self.course.content_snare_template_id = ''
        self.course.save()
        with self.assertRaises(ApplicationError) as ctx:
            create_course_application(self.profile, self.course.pk, self.intake.pk, cs_client=cs_client)
        self.assertEqual(ctx.exception.status_code, 400)

        with self.assertRaises(ApplicationError) as ctx:
            create_course_application(self.profile, 99999, self.intake.pk, cs_client=cs_client)
        self.assertEqual(ctx.exception.status_code, 404)

        cs_client.create_request.assert_not_called()
        self.assertFalse(CourseApplication.objects.exists())


class ContentSnareWebhookTests(TestCase, CatalogueFixtureMixin):
    def setUp(self):
        self.make_catalogue()
        self.user = make_member()
        self.application = CourseApplication.objects.create(
            user=self.user,
            course=self.course,
            content_snare_request_id='req_9',
        )
        self.url = reverse('courses:content-snare-webhook')

    def post(self, body, **headers):
        return self.client.post(self.url, data=body, content_type='application/json', **headers)

    @patch('courses.application_service.slack_service.notify_course_application_submitted')
    def test_submitted(self, notify):
        response = self.post({'event': 'request.submitted', 'request_id': 'req_9'})

        self.assertEqual(response.status_code, 200)
        self.application.refresh_from_db()
        self.assertEqual(self.application.status, CourseApplication.STATUS_SUBMITTED)
        notify.assert_called_once_with(self.application.pk, 'Taro Kaeru', 'Hospitality Management')

    def test_approved_and_rejected(self):
        apply_content_snare_event('request.approved', 'req_9')
        self.application.refresh_from_db()
        self.assertEqual(self.application.status, CourseApplication.STATUS_APPROVED)

        apply_content_snare_event('request.rejected', 'req_9')
        self.application.refresh_from_db()
        self.assertEqual(self.application.status, CourseApplication.STATUS_REJECTED)

    def test_unknown_request_is_404(self):
        response = self.post({'event': 'request.submitted', 'request_id': 'nope'})
        self.assertEqual(response.status_code, 404)

    def test_missing_fields_is_400(self):
        response = self.post({'event': 'request.submitted'})
        self.assertEqual(response.status_code, 400)

    def test_non_object_body_is_400(self):
        response = self.post([])

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {'error': 'Invalid webhook data'})

    @override_settings(CONTENT_SNARE_WEBHOOK_SECRET='hook-secret')
    def test_secret_checked_when_configured(self):
        response = self.post({'event': 'request.approved', 'request_id': 'req_9'})
        self.assertEqual(response.status_code, 401)

        response = self.post(
            {'event': 'request.approved', 'request_id': 'req_9'},
            HTTP_X_WEBHOOK_SECRET='hook-secret',
        )
        self.assertEqual(response.status_code, 200)


class SchoolInvitationTests(TestCase, CatalogueFixtureMixin):
    def setUp(self):
        self.make_catalogue()

    def test_new_invitation_expires_previous(self):
        first = create_invitation(self.school, 'rep@school.example')
        second = create_invitation(self.school, 'rep@school.example')

        first.refresh_from_db()
        self.assertFalse(first.is_active)
        self.assertTrue(second.is_active)
        self.assertGreater(second.expires_at, timezone.now() + timedelta(days=29))

    def test_validate_token(self):
        access_token = create_invitation(self.school, 'rep@school.example')

        validated = validate_token(self.school.pk, str(access_token.token), 'rep@school.example')
        self.assertIsNotNone(validated.used_at)

        with self.assertRaises(InvalidSchoolToken):
            validate_token(self.school.pk, str(access_token.token), 'other@school.example')
        with self.assertRaises(InvalidSchoolToken):
            validate_token(self.school.pk, 'not-a-uuid', 'rep@school.example')

        SchoolAccessToken.objects.filter(pk=access_token.pk).update(expires_at=timezone.now())
        with self.assertRaises(InvalidSchoolToken):
            validate_token(self.school.pk, str(access_token.token), 'rep@school.example')


class RecommendationTests(TestCase, CatalogueFixtureMixin):
    def setUp(self):
        self.make_catalogue()
        self.other = Course.objects.create(school=self.school, name='Web Development', category='it')

    def test_job_position_first(self):
        developer = JobPosition.objects.create(title='Web developer')
        CourseJobPosition.objects.create(course=self.other, job_position=developer)
        user = make_member(future_occupation=str(developer.pk), migration_goal='overseas_employment')

        self.assertEqual(recommend_courses(user.profile), [self.other])

    def test_migration_goal_then_newest(self):
        user = make_member(migration_goal='overseas_employment')
        self.assertEqual(recommend_courses(user.profile), [self.course])

        user.profile.migration_goal = 'study_abroad'
        self.assertEqual(len(recommend_courses(user.profile)), 2)


class CourseApiTests(APITestCase, CatalogueFixtureMixin):
    def setUp(self):
        self.make_catalogue()
        self.user = make_member()
        self.client.force_authenticate(self.user)

    def test_onboarding_required(self):
        newcomer = CustomUser.objects.create_user(email='new@example.com', password='StrongPass123')
        self.client.force_authenticate(newcomer)

        response = self.client.get(reverse('courses:course-list'))

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data['redirect'], '/onboarding')

    def test_search_and_favorite(self):
        response = self.client.get(reverse('courses:course-list'), {'q': 'hospitality'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 1)
        self.assertFalse(response.data[0]['is_favorite'])

        response = self.client.post(reverse('courses:course-favorite', args=[self.course.pk]))
        self.assertEqual(response.status_code, 201)
        self.assertTrue(FavoriteCourse.objects.filter(user=self.user, course=self.course).exists())

        response = self.client.get(reverse('courses:course-favorites'))
        self.assertEqual([c['id'] for c in response.data], [self.course.pk])

        response = self.client.delete(reverse('courses:course-favorite', args=[self.course.pk]))
        self.assertEqual(response.status_code, 204)
        self.assertFalse(FavoriteCourse.objects.exists())

    @patch('courses.views.application_service.create_course_application')
    def test_apply(self, create):
        create.return_value = CourseApplication(
            pk=7,
            user=self.user,
            course=self.course,
            content_snare_request_id='req_1',
            request_url='https://contentsnare.com/r/abc',
        )

        response = self.client.post(
            reverse('courses:application-list'),
            {'courseId': self.course.pk, 'intake_date_id': self.intake.pk},
            format='json',
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['share_link'], 'https://contentsnare.com/r/abc')

    @patch('courses.views.application_service.create_course_application')
    def test_apply_error_status(self, create):
        create.side_effect = ApplicationError('このコースはオンライン申込に対応していません', status_code=400)

        response = self.client.post(reverse('courses:application-list'), {'courseId': self.course.pk}, format='json')

        self.assertEqual(response.status_code, 400)


class ScheduleApiTests(APITestCase, CatalogueFixtureMixin):
    def setUp(self):
        self.make_catalogue()
        self.user = make_member()
        self.application = CourseApplication.objects.create(user=self.user, course=self.course)
        self.locked = UserSchedule.objects.create(
            user=self.user, course_application=self.application, title='入学', year=2027, month=4, day=1,
            is_admin_locked=True,
        )
        self.free = UserSchedule.objects.create(
            user=self.user, course_application=self.application, title='準備', year=2027, month=1,
        )
        self.url = reverse('courses:application-schedules', args=[self.application.pk])

    def test_member_toggles_own_schedule(self):
        self.client.force_authenticate(self.user)
        response = self.client.post(self.url, {'scheduleId': self.free.pk, 'completed': True}, format='json')

        self.assertEqual(response.status_code, 200)
        self.free.refresh_from_db()
        self.assertTrue(self.free.is_completed)

    def test_locked_schedule_needs_admin(self):
        self.client.force_authenticate(self.user)
        response = self.client.post(
            self.url,
            {'scheduleId': self.locked.pk, 'action': 'update_date', 'month': 5},
            format='json',
        )
        self.assertEqual(response.status_code, 403)

        staff = CustomUser.objects.create_user(email='staff@example.com', password='StrongPass123')
        AdminRole.objects.create(user=staff)
        self.client.force_authenticate(staff)
        response = self.client.post(
            self.url,
            {'scheduleId': self.locked.pk, 'action': 'update_date', 'month': 5},
            format='json',
        )
        self.assertEqual(response.status_code, 200)
        self.locked.refresh_from_db()
        self.assertEqual(self.locked.month, 5)

    def test_other_member_cannot_see_application(self):
        stranger = make_member(email='stranger@example.com')
        self.client.force_authenticate(stranger)
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, 404)

    def test_schedule_order(self):
        self.client.force_authenticate(self.user)
        response = self.client.get(reverse('courses:my-schedules'))
        self.assertEqual([s['id'] for s in response.data], [self.free.pk, self.locked.pk])


class AdminApplicationApiTests(APITestCase, CatalogueFixtureMixin):
    def setUp(self):
        self.make_catalogue()
        member = make_member()
        self.submitted = CourseApplication.objects.create(user=member, course=self.course, status='submitted')
        CourseApplication.objects.create(user=member, course=self.course, status='draft')

        self.staff = CustomUser.objects.create_user(email='staff@example.com', password='StrongPass123')
        AdminRole.objects.create(user=self.staff)
        self.client.force_authenticate(self.staff)

    def test_pending_count_and_filter(self):
        response = self.client.get(reverse('courses:application-pending-count'))
        self.assertEqual(response.data, {'count': 1})

        response = self.client.get(reverse('courses:application-list'), {'status': 'submitted'})
        self.assertEqual([a['id'] for a in response.data], [self.submitted.pk])

    def test_update_status(self):
        response = self.client.patch(
            reverse('courses:application-update-status', args=[self.submitted.pk]),
            {'status': 'approved', 'admin_notes': '書類OK'},
            format='json',
        )
        self.assertEqual(response.status_code, 200)
        self.submitted.refresh_from_db()
        self.assertEqual(self.submitted.status, 'approved')
        self.assertEqual(self.submitted.admin_notes, '書類OK')

    @override_settings(APP_URL='https://members.example.com')
    def test_invite(self):
        response = self.client.post(
            reverse('courses:school-invite', args=[self.school.pk]),
            {'email': 'rep@school.example'},
            format='json',
        )
        self.assertEqual(response.status_code, 201)
        token = SchoolAccessToken.objects.get(school=self.school)
        self.assertEqual(
            response.data['accessUrl'],
            f"https://members.example.com/schools/{self.school.pk}/editor?token={token.token}",
        )

        response = self.client.post(reverse('courses:school-invite', args=[self.school.pk]), {'email': 'nope'}, format='json')
        self.assertEqual(response.status_code, 400)


class SchoolEditorApiTests(APITestCase, CatalogueFixtureMixin):
    def setUp(self):
        self.make_catalogue()
        self.access_token = create_invitation(self.school, 'rep@school.example')

    def test_create_course_with_token(self):
        response = self.client.post(
            reverse('courses:school-editor-create-course', args=[self.school.pk]),
            {
                'token': str(self.access_token.token),
                'email': 'rep@school.example',
                'course': {'name': 'Culinary Arts', 'category': 'culinary', 'total_weeks': 48},
            },
            format='json',
        )
        self.assertEqual(response.status_code, 201)
        self.assertTrue(Course.objects.filter(school=self.school, name='Culinary Arts').exists())
        self.access_token.refresh_from_db()
        self.assertIsNotNone(self.access_token.used_at)

    def test_opening_editor_link_does_not_mark_token_used(self):
        response = self.client.get(
            reverse('courses:school-editor-validate', args=[self.school.pk]),
            {'token': str(self.access_token.token), 'email': 'rep@school.example'},
        )

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['valid'])
        self.access_token.refresh_from_db()
        self.assertIsNone(self.access_token.used_at)

    def test_bad_token(self):
        response = self.client.get(
            reverse('courses:school-editor-validate', args=[self.school.pk]),
            {'token': str(self.access_token.token), 'email': 'someone@else.example'},
        )
        self.assertEqual(response.status_code, 401)
