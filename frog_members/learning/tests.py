from datetime import timedelta

from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APITestCase

from accounts.models import AdminRole, CustomUser
from learning import services
from learning.models import LearningVideo, VideoProgress, VideoResource, VideoSection


def make_user(email='member@example.com', member=True):
    user = CustomUser.objects.create_user(email=email, password='StrongPass123')
    user.profile.onboarding_completed = True
    user.profile.is_member = member
    user.profile.subscription_status = 'active' if member else ''
    user.profile.save()
    return user


class LearningFixtureMixin:
    def make_videos(self):
        self.basics = VideoSection.objects.create(title='基礎編', order_index=1)
        self.intro = VideoSection.objects.create(title='はじめに', order_index=0)
        self.video_a = LearningVideo.objects.create(section=self.intro, title='留学の流れ', duration='12:30', order_index=0)
        self.video_b = LearningVideo.objects.create(section=self.basics, title='ビザの基本', order_index=0)
        VideoResource.objects.create(video=self.video_a, title='チェックリスト', url='https://example.com/list.pdf', type='document')


class ProgressServiceTests(TestCase, LearningFixtureMixin):
    def setUp(self):
        self.make_videos()
        self.user = make_user()

    def test_progress_is_upserted(self):
        services.record_progress(self.user, self.video_a, 30)
        services.record_progress(self.user, self.video_a, 95)

        self.assertEqual(VideoProgress.objects.count(), 1)
        self.assertEqual(VideoProgress.objects.get().progress_seconds, 95)

    def test_completion_sticks(self):
        services.record_progress(self.user, self.video_a, 600, completed=True)
        progress = services.record_progress(self.user, self.video_a, 10, completed=False)

        self.assertTrue(progress.completed)
        self.assertEqual(progress.progress_seconds, 10)

    def test_member_summary(self):
        services.record_progress(self.user, self.video_a, 600, completed=True)

        self.assertEqual(
            services.member_summary(self.user),
            {'total_videos': 2, 'completed_videos': 1, 'completion_rate': 50},
        )

    def test_overview_without_videos(self):
        LearningVideo.objects.all().delete()

        self.assertEqual(services.overview_stats()['completion_rate'], 0)


class LearningApiTests(APITestCase, LearningFixtureMixin):
    def setUp(self):
        self.make_videos()
        self.member = make_user()

    def test_non_member_is_sent_to_learning_page(self):
        self.client.force_authenticate(make_user('free@example.com', member=False))

        response = self.client.get(reverse('learning:sections'))

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data['redirect'], '/learning')

    def test_anonymous_is_rejected(self):
        response = self.client.get(reverse('learning:sections'))

        self.assertIn(response.status_code, (401, 403))

    def test_sections_in_order_with_progress(self):
        services.record_progress(self.member, self.video_a, 120)
        self.client.force_authenticate(self.member)

        response = self.client.get(reverse('learning:sections'))

        self.assertEqual(response.status_code, 200)
        sections = response.data['sections']
        self.assertEqual([s['title'] for s in sections], ['はじめに', '基礎編'])
        video = sections[0]['videos'][0]
        self.assertEqual(video['resources'][0]['type'], 'document')
        self.assertEqual(video['progress']['progress_seconds'], 120)
        self.assertIsNone(sections[1]['videos'][0]['progress'])

    def test_access_ends_with_the_canceled_period(self):
        profile = self.member.profile
        profile.subscription_status = 'canceling'
        profile.subscription_period_end = timezone.now() - timedelta(days=1)
        profile.save()
        self.client.force_authenticate(self.member)

        response = self.client.get(reverse('learning:sections'))

        self.assertEqual(response.status_code, 403)

    def test_update_progress(self):
        self.client.force_authenticate(self.member)
        url = reverse('learning:video-progress', args=[self.video_b.pk])

        response = self.client.put(url, {'progress_seconds': 300, 'completed': True}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['completed'])
        summary = self.client.get(reverse('learning:progress-summary')).data
        self.assertEqual(summary['completed_videos'], 1)

    def test_negative_progress_is_400(self):
        self.client.force_authenticate(self.member)
        url = reverse('learning:video-progress', args=[self.video_b.pk])

        response = self.client.put(url, {'progress_seconds': -1}, format='json')

        self.assertEqual(response.status_code, 400)

    def test_unknown_video_is_404(self):
        self.client.force_authenticate(self.member)

        response = self.client.get(reverse('learning:video-detail', args=[9999]))

        self.assertEqual(response.status_code, 404)


class LearningAdminApiTests(APITestCase, LearningFixtureMixin):
    def setUp(self):
        self.make_videos()
        self.staff = CustomUser.objects.create_user(email='staff@example.com', password='StrongPass123')
        AdminRole.objects.create(user=self.staff)

    def test_staff_reads_member_pages_without_membership(self):
        self.client.force_authenticate(self.staff)

        response = self.client.get(reverse('learning:sections'))

        self.assertEqual(response.status_code, 200)

    def test_overview(self):
        member = make_user()
        make_user('free@example.com', member=False)
        services.record_progress(member, self.video_a, 600, completed=True)
        self.client.force_authenticate(self.staff)

        response = self.client.get(reverse('learning:overview'))

        self.assertEqual(response.data, {'total_videos': 2, 'total_members': 1, 'completion_rate': 50})

    def test_member_cannot_manage_videos(self):
        self.client.force_authenticate(make_user())

        response = self.client.post(reverse('learning:admin-section-list'), {'title': '応用編'}, format='json')

        self.assertEqual(response.status_code, 403)

    def test_staff_creates_video_with_resource(self):
        self.client.force_authenticate(self.staff)

        video = self.client.post(
            reverse('learning:admin-video-list'),
            {'section': self.basics.pk, 'title': '英語学習', 'duration': '08:00'},
            format='json',
        )
        resource = self.client.post(
            reverse('learning:admin-resource-list'),
            {'video': video.data['id'], 'title': '単語帳', 'url': 'https://example.com/words', 'type': 'tool'},
            format='json',
        )

        self.assertEqual(video.status_code, 201)
        self.assertEqual(resource.status_code, 201)
        listed = self.client.get(reverse('learning:admin-video-list'), {'section': self.basics.pk}).data
        self.assertEqual(len(listed), 2)
