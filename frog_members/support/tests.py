from unittest.mock import patch

from django.core.cache import cache
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APITestCase

from accounts.models import AdminRole, CustomUser
from integrations.slack_service import SlackResult
from support import chat_service
from support.models import ChatMessage, ChatSession


@patch('support.chat_service.slack_service.notify_new_chat_message', return_value=SlackResult(ok=True))
class ChatServiceTests(TestCase):
    def setUp(self):
        cache.clear()
        self.member = CustomUser.objects.create_user(email='member@example.com', password='StrongPass123')
        self.staff = CustomUser.objects.create_user(email='staff@example.com', password='StrongPass123')
        AdminRole.objects.create(user=self.staff)

    def test_session_starts_unread_with_first_message(self, notify):
        with self.captureOnCommitCallbacks(execute=True):
            session = chat_service.create_session(self.member, 'ビザについて質問です')

        self.assertEqual(session.status, ChatSession.STATUS_UNREAD)
        self.assertEqual(session.messages.get().content, 'ビザについて質問です')
        notify.assert_called_once_with(session.pk, self.member.pk, 'member@example.com', 'ビザについて質問です')

    def test_notification_waits_for_commit(self, notify):
        with self.captureOnCommitCallbacks() as callbacks:
            chat_service.create_session(self.member, 'こんにちは')
            notify.assert_not_called()

        self.assertEqual(len(callbacks), 1)
        callbacks[0]()
        notify.assert_called_once()

    def test_status_follows_sender(self, notify):
        session = chat_service.create_session(self.member, 'こんにちは')

        chat_service.send_message(session, self.staff, 'お問い合わせありがとうございます')
        session.refresh_from_db()
        self.assertEqual(session.status, ChatSession.STATUS_ACTIVE)
        self.assertTrue(ChatMessage.objects.filter(sender=self.staff, is_staff_reply=True).exists())

        chat_service.send_message(session, self.member, 'もう一つ質問です')
        session.refresh_from_db()
        self.assertEqual(session.status, ChatSession.STATUS_UNREAD)

    def test_member_notifications_throttled(self, notify):
        with self.captureOnCommitCallbacks(execute=True):
            session = chat_service.create_session(self.member, '1')
        with self.captureOnCommitCallbacks(execute=True):
            chat_service.send_message(session, self.member, '2')
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            chat_service.send_message(session, self.staff, '3')

        self.assertEqual(callbacks, [])
        self.assertEqual(notify.call_count, 1)

    def test_throttle_is_per_member(self, notify):
        other = CustomUser.objects.create_user(email='other@example.com', password='StrongPass123')

        with self.captureOnCommitCallbacks(execute=True):
            chat_service.create_session(self.member, '1')
            chat_service.create_session(other, '2')

        self.assertEqual(notify.call_count, 2)

    def test_notification_resumes_after_interval(self, notify):
        with self.captureOnCommitCallbacks(execute=True):
            session = chat_service.create_session(self.member, '1')
        cache.delete(chat_service.notification_throttle_key(self.member.pk))
        with self.captureOnCommitCallbacks(execute=True):
            chat_service.send_message(session, self.member, '2')

        self.assertEqual(notify.call_count, 2)

    def test_throttle_key_lifetime(self, notify):
        with patch('support.chat_service.cache') as mock_cache:
            mock_cache.add.return_value = True
            chat_service.notify_staff(1, self.member, 'hi')

        mock_cache.add.assert_called_once_with(f'chat_notify:{self.member.pk}', True, 3600)


class ChatApiTests(APITestCase):
    def setUp(self):
        cache.clear()
        self.member = CustomUser.objects.create_user(email='member@example.com', password='StrongPass123')
        self.other = CustomUser.objects.create_user(email='other@example.com', password='StrongPass123')
        self.staff = CustomUser.objects.create_user(email='staff@example.com', password='StrongPass123')
        AdminRole.objects.create(user=self.staff)

    def test_member_flow(self):
        self.client.force_authenticate(self.member)
        response = self.client.post(reverse('support:chat-session-list'), {'content': '相談したいです'}, format='json')
        self.assertEqual(response.status_code, 201)
        session_id = response.data['id']

        response = self.client.post(
            reverse('support:chat-session-messages', args=[session_id]),
            {'content': '追加の質問'},
            format='json',
        )
        self.assertEqual(response.status_code, 201)

        self.client.force_authenticate(self.other)
        response = self.client.get(reverse('support:chat-session-detail', args=[session_id]))
        self.assertEqual(response.status_code, 404)

    def test_empty_message_rejected(self):
        self.client.force_authenticate(self.member)
        response = self.client.post(reverse('support:chat-session-list'), {'content': '   '}, format='json')
        self.assertEqual(response.status_code, 400)

    def test_staff_actions(self):
        session = ChatSession.objects.create(user=self.member)

        self.client.force_authenticate(self.member)
        response = self.client.post(reverse('support:chat-session-mark-read', args=[session.pk]))
        self.assertEqual(response.status_code, 403)

        self.client.force_authenticate(self.staff)
        self.assertEqual(self.client.get(reverse('support:unread-count')).data, {'count': 1})

        response = self.client.post(reverse('support:chat-session-mark-read', args=[session.pk]))
        self.assertEqual(response.data['status'], 'read')
        self.assertEqual(self.client.get(reverse('support:unread-count')).data, {'count': 0})

        response = self.client.post(reverse('support:chat-session-mark-active', args=[session.pk]))
        self.assertEqual(response.data['status'], 'active')
