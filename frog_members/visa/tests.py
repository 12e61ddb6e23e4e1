from unittest.mock import patch

from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APITestCase

from accounts.models import AdminRole, CustomUser
from cms.client import CMSError
from integrations.slack_service import SlackResult
from visa import services
from visa.models import VisaPlan, VisaPlanMessage, VisaPlanReview, VisaType
from visa.services import VisaPlanError


def make_member(email='member@example.com'):
    user = CustomUser.objects.create_user(email=email, password='StrongPass123')
    user.profile.first_name = 'Hanako'
    user.profile.last_name = 'Kaeru'
    user.profile.onboarding_completed = True
    user.profile.save()
    return user


class VisaFixtureMixin:
    def make_visas(self):
        self.study = VisaType.objects.create(name='Study Permit', slug='study-permit', description='学生ビザ')
        self.work = VisaType.objects.create(name='Work Permit', slug='work-permit', description='就労ビザ', process='オンライン申請')
        self.pr = VisaType.objects.create(name='Express Entry', slug='express-entry', description='永住権プログラム')


class SearchTests(TestCase, VisaFixtureMixin):
    def setUp(self):
        self.make_visas()

    def test_keywords(self):
        self.assertEqual(services.extract_visa_keywords('カナダで就労したい'), ['就労', 'カナダ'])
        self.assertEqual(services.extract_visa_keywords('hello'), [])

    def test_search_by_text_and_keyword(self):
        self.assertEqual(services.search_visa_types('Study'), [self.study])
        self.assertEqual(services.search_visa_types('永住権について'), [self.pr])
        self.assertEqual(len(services.search_visa_types('')), 3)


@patch('visa.services.slack_service.notify_new_visa_review', return_value=SlackResult(ok=True))
class ReviewFlowTests(TestCase, VisaFixtureMixin):
    def setUp(self):
        self.make_visas()
        self.user = make_member()
        self.staff = CustomUser.objects.create_user(email='staff@example.com', password='StrongPass123')
        self.plan = services.create_plan(self.user, items=[{'visa_type': self.study.pk}, {'visa_type': self.work.pk}])

    def test_one_open_review_at_a_time(self, notify):
        review = services.request_review(self.plan, self.user)

        self.plan.refresh_from_db()
        self.assertEqual(self.plan.status, VisaPlan.STATUS_REVIEW_REQUESTED)
        self.assertEqual(review.status, VisaPlanReview.STATUS_PENDING)
        notify.assert_called_once_with(review.pk, 'Hanako Kaeru', 'Study Permit, Work Permit')

        with self.assertRaises(VisaPlanError) as ctx:
            services.request_review(self.plan, self.user)
        self.assertEqual(ctx.exception.status_code, 409)

    def test_completion_marks_plan_reviewed(self, notify):
        review = services.request_review(self.plan, self.user)

        services.update_review(review, self.staff, VisaPlanReview.STATUS_COMPLETED, '問題ありません')

        review.refresh_from_db()
        self.plan.refresh_from_db()
        self.assertIsNotNone(review.completed_at)
        self.assertEqual(review.admin, self.staff)
        self.assertEqual(self.plan.status, VisaPlan.STATUS_REVIEWED)

        services.request_review(self.plan, self.user)

    def test_cancelled_review_returns_plan_to_draft(self, notify):
        review = services.request_review(self.plan, self.user)

        services.update_review(review, self.staff, VisaPlanReview.STATUS_CANCELLED)

        review.refresh_from_db()
        self.plan.refresh_from_db()
        self.assertEqual(review.status, VisaPlanReview.STATUS_CANCELLED)
        self.assertIsNone(review.completed_at)
        self.assertEqual(self.plan.status, VisaPlan.STATUS_DRAFT)

        services.request_review(self.plan, self.user)

    def test_empty_plan_cannot_be_reviewed(self, notify):
        empty = services.create_plan(self.user)
        with self.assertRaises(VisaPlanError):
            services.request_review(empty, self.user)

    def test_replace_items_keeps_order(self, notify):
        services.replace_items(self.plan, [
            {'visa_type': self.pr.pk, 'order_index': 1},
            {'visa_type': self.work.pk, 'order_index': 0, 'notes': 'first'},
        ])
        names = [item.visa_type.name for item in self.plan.items.all()]
        self.assertEqual(names, ['Work Permit', 'Express Entry'])


class VisaPlanApiTests(APITestCase, VisaFixtureMixin):
    def setUp(self):
        self.make_visas()
        self.user = make_member()
        self.client.force_authenticate(self.user)

    def test_create_and_list_own(self):
        response = self.client.post(
            reverse('visa:visa-plan-list'),
            {'name': 'カナダ移住', 'items': [{'visa_type': self.study.pk}, {'visa_type': self.pr.pk}]},
            format='json',
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['status'], 'draft')
        self.assertEqual([i['visa_type'] for i in response.data['items']], [self.study.pk, self.pr.pk])

        other = make_member('other@example.com')
        services.create_plan(other)

        response = self.client.get(reverse('visa:visa-plan-list'))
        self.assertEqual(len(response.data), 1)

    @patch('visa.services.slack_service.notify_new_visa_plan_message')
    def test_member_message_notifies_staff(self, notify):
        plan = services.create_plan(self.user)

        response = self.client.post(
            reverse('visa:visa-plan-messages', args=[plan.pk]),
            {'title': '質問', 'content': '学生ビザの期間について'},
            format='json',
        )

        self.assertEqual(response.status_code, 201)
        self.assertFalse(response.data['is_admin'])
        notify.assert_called_once_with(plan.pk, 'Hanako Kaeru', '質問', '学生ビザの期間について')

    @patch('visa.services.slack_service.notify_new_visa_plan_message')
    def test_staff_message_does_not_notify(self, notify):
        plan = services.create_plan(self.user)
        staff = CustomUser.objects.create_user(email='staff@example.com', password='StrongPass123')
        AdminRole.objects.create(user=staff)
        self.client.force_authenticate(staff)

        response = self.client.post(
            reverse('visa:visa-plan-messages', args=[plan.pk]),
            {'content': '確認しました'},
            format='json',
        )

        self.assertEqual(response.status_code, 201)
        self.assertTrue(VisaPlanMessage.objects.get().is_admin)
        notify.assert_not_called()

    def test_review_queue_is_staff_only(self):
        response = self.client.get(reverse('visa:visa-review-pending-count'))
        self.assertEqual(response.status_code, 403)


@patch('visa.services.slack_service.notify_new_visa_review', return_value=SlackResult(ok=True))
class ReviewApiTests(APITestCase, VisaFixtureMixin):
    def setUp(self):
        self.make_visas()
        self.user = make_member()
        self.staff = CustomUser.objects.create_user(email='staff@example.com', password='StrongPass123')
        AdminRole.objects.create(user=self.staff)
        self.plan = services.create_plan(self.user, items=[{'visa_type': self.study.pk}])

    def request_review(self):
        return services.request_review(self.plan, self.user)

    def test_staff_completes_review(self, notify):
        review = self.request_review()
        self.client.force_authenticate(self.staff)

        response = self.client.patch(
            reverse('visa:visa-review-detail', args=[review.pk]),
            {'status': 'completed', 'admin_comment': '書類は揃っています'},
            format='json',
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['status'], 'completed')
        review.refresh_from_db()
        self.plan.refresh_from_db()
        self.assertEqual(review.admin, self.staff)
        self.assertEqual(review.admin_comment, '書類は揃っています')
        self.assertIsNotNone(review.completed_at)
        self.assertEqual(self.plan.status, VisaPlan.STATUS_REVIEWED)

    def test_staff_cancels_review(self, notify):
        review = self.request_review()
        self.client.force_authenticate(self.staff)

        response = self.client.patch(
            reverse('visa:visa-review-detail', args=[review.pk]),
            {'status': 'cancelled'},
            format='json',
        )

        self.assertEqual(response.status_code, 200)
        self.plan.refresh_from_db()
        self.assertEqual(self.plan.status, VisaPlan.STATUS_DRAFT)

    def test_invalid_status_rejected(self, notify):
        review = self.request_review()
        self.client.force_authenticate(self.staff)

        response = self.client.patch(
            reverse('visa:visa-review-detail', args=[review.pk]),
            {'status': 'approved'},
            format='json',
        )

        self.assertEqual(response.status_code, 400)
        review.refresh_from_db()
        self.assertEqual(review.status, VisaPlanReview.STATUS_PENDING)

    def test_member_cannot_update_review(self, notify):
        review = self.request_review()
        self.client.force_authenticate(self.user)

        response = self.client.patch(
            reverse('visa:visa-review-detail', args=[review.pk]),
            {'status': 'completed'},
            format='json',
        )

        self.assertEqual(response.status_code, 403)


class SiteSearchTests(APITestCase, VisaFixtureMixin):
    def setUp(self):
        self.make_visas()
        self.client.force_authenticate(make_member())

    @patch('visa.views.cms_content.get_interviews')
    def test_combines_visa_and_interviews(self, get_interviews):
        get_interviews.return_value = {'contents': [{'id': 'i1', 'title': 'Work Permitで働く'}], 'totalCount': 1}

        response = self.client.get(reverse('visa:search'), {'q': 'Work'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual([v['slug'] for v in response.data['visa']], ['work-permit'])
        self.assertEqual(response.data['interviews'][0]['id'], 'i1')
        get_interviews.assert_called_once_with(q='Work')

    @patch('visa.views.cms_content.get_interviews', side_effect=CMSError('down'))
    def test_cms_failure_still_answers_visa(self, get_interviews):
        response = self.client.get(reverse('visa:search'), {'q': 'Study'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['interviews'], [])

    def test_query_required(self):
        response = self.client.get(reverse('visa:search'))
        self.assertEqual(response.status_code, 400)
