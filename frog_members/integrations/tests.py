from datetime import datetime
from unittest.mock import MagicMock, patch
from urllib.parse import parse_qs, urlparse

import requests
from django.core.cache import cache
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from rest_framework.test import APITestCase

from accounts.models import AdminRole, CustomUser
from integrations import content_snare_service, google_calendar_service, slack_service
from integrations.content_snare_service import (
    ACCESS_TOKEN_CACHE_KEY,
    ContentSnareClient,
    ContentSnareError,
    ContentSnareNotConfiguredError,
    ContentSnareTokenManager,
    ReauthorizationRequired,
)
from integrations.models import RefreshToken

SLACK_URL = 'https://hooks.slack.test/services/T000/B000/main'
SLACK_CHAT_URL = 'https://hooks.slack.test/services/T000/B000/chat'


def fake_response(status_code=200, payload=None, text=''):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload or {}
    response.text = text
    response.content = b'{}' if payload is not None else b''
    return response


@override_settings(SLACK_WEBHOOK_URL=SLACK_URL, SLACK_CHAT_WEBHOOK_URL='', APP_URL='https://members.example.com')
class SlackServiceTests(SimpleTestCase):
    @patch('integrations.slack_service.requests.post')
    def test_admin_notification_payload(self, post):
        post.return_value = fake_response(200)

        result = slack_service.send_admin_notification('件名', '本文', [{'title': 'a', 'value': 'b', 'short': True}])

        self.assertTrue(result.ok)
        url = post.call_args.args[0]
        attachment = post.call_args.kwargs['json']['attachments'][0]
        self.assertEqual(url, SLACK_URL)
        self.assertEqual(attachment['title'], '件名')
        self.assertEqual(attachment['color'], '#36a64f')
        self.assertEqual(attachment['footer'], 'Frog Members Portal')
        self.assertEqual(post.call_args.kwargs['timeout'], 10)

    @patch('integrations.slack_service.requests.post')
    def test_test_mode_does_not_post(self, post):
        result = slack_service.send_admin_notification('件名', '本文', is_test=True)

        self.assertTrue(result.ok)
        post.assert_not_called()

    @patch('integrations.slack_service.requests.post')
    def test_error_codes(self, post):
        post.return_value = fake_response(500, text='boom')
        self.assertEqual(slack_service.send_test_notification().error, 'status_500')

        post.side_effect = requests.Timeout()
        self.assertEqual(slack_service.send_test_notification().error, 'timeout')

        post.side_effect = requests.ConnectionError()
        self.assertEqual(slack_service.send_test_notification().error, 'fetch_error')

    @override_settings(SLACK_WEBHOOK_URL='')
    def test_missing_webhook(self):
        result = slack_service.send_admin_notification('件名', '本文')
        self.assertFalse(result.ok)
        self.assertEqual(result.error, 'webhook_url_missing')

    @override_settings(SLACK_CHAT_WEBHOOK_URL=SLACK_CHAT_URL)
    @patch('integrations.slack_service.requests.post')
    def test_chat_message_uses_chat_webhook_and_truncates(self, post):
        post.return_value = fake_response(200)

        slack_service.notify_new_chat_message(7, 3, 'Taro', 'あ' * 150)

        self.assertEqual(post.call_args.args[0], SLACK_CHAT_URL)
        fields = post.call_args.kwargs['json']['attachments'][0]['fields']
        preview = next(f['value'] for f in fields if f['title'] == 'メッセージ')
        self.assertEqual(len(preview), 100)
        self.assertTrue(preview.endswith('...'))
        self.assertIn('https://members.example.com/admin/chats/7', fields[-1]['value'])


@override_settings(CONTENT_SNARE_CLIENT_ID='cs-id', CONTENT_SNARE_CLIENT_SECRET='cs-secret')
class TokenManagerTests(TestCase):
    def setUp(self):
        cache.clear()
        self.manager = ContentSnareTokenManager()
        RefreshToken.replace(RefreshToken.SERVICE_CONTENT_SNARE, 'refresh-1')

    @patch('integrations.content_snare_service.requests.post')
    def test_cached_token_is_reused(self, post):
        self.manager.store_access_token('access-1', 3600)

        self.assertEqual(self.manager.get_access_token(), 'access-1')
        post.assert_not_called()

    def test_token_cached_for_lifetime_minus_margin(self):
        with patch('integrations.content_snare_service.cache') as mock_cache:
            self.manager.store_access_token('access-1', 3600)
        mock_cache.set.assert_called_once_with(ACCESS_TOKEN_CACHE_KEY, 'access-1', 3570)

    @patch('integrations.content_snare_service.requests.post')
    def test_expired_token_is_refreshed(self, post):
        self.manager.store_access_token('access-1', 3600)
        cache.delete(ACCESS_TOKEN_CACHE_KEY)
        post.return_value = fake_response(200, {'access_token': 'access-2', 'expires_in': 3600})

        self.assertEqual(self.manager.get_access_token(), 'access-2')
        self.assertEqual(post.call_args.kwargs['json']['grant_type'], 'refresh_token')
        self.assertEqual(post.call_args.kwargs['json']['refresh_token'], 'refresh-1')
        self.assertEqual(cache.get(ACCESS_TOKEN_CACHE_KEY), 'access-2')

    @patch('integrations.content_snare_service.requests.post')
    def test_force_refresh_skips_cache(self, post):
        self.manager.store_access_token('access-1', 3600)
        post.return_value = fake_response(200, {'access_token': 'access-2', 'expires_in': 3600})

        self.assertEqual(self.manager.get_access_token(force_refresh=True), 'access-2')

    @patch('integrations.content_snare_service.requests.post')
    def test_rotated_refresh_token_is_stored(self, post):
        post.return_value = fake_response(200, {
            'access_token': 'access-2',
            'refresh_token': 'refresh-2',
            'expires_in': 7200,
        })

        self.manager.get_access_token()

        self.assertEqual(RefreshToken.objects.filter(service_name=RefreshToken.SERVICE_CONTENT_SNARE).count(), 1)
        self.assertEqual(RefreshToken.latest_for(RefreshToken.SERVICE_CONTENT_SNARE).refresh_token, 'refresh-2')

    @patch('integrations.content_snare_service.requests.post')
    def test_rejected_refresh_token_requires_reauthorization(self, post):
        post.return_value = fake_response(400, text='invalid_grant')

        with self.assertRaises(ReauthorizationRequired):
            self.manager.get_access_token()
        self.assertIsNone(RefreshToken.latest_for(RefreshToken.SERVICE_CONTENT_SNARE))

    def test_missing_refresh_token(self):
        RefreshToken.objects.all().delete()
        with self.assertRaises(ReauthorizationRequired):
            self.manager.get_access_token()

    @patch('integrations.content_snare_service.requests.post')
    def test_server_error_keeps_refresh_token(self, post):
        post.return_value = fake_response(503, text='unavailable')

        with self.assertRaises(ContentSnareError) as ctx:
            self.manager.get_access_token()

        self.assertNotIsInstance(ctx.exception, ReauthorizationRequired)
        self.assertIsNotNone(RefreshToken.latest_for(RefreshToken.SERVICE_CONTENT_SNARE))


@override_settings(
    CONTENT_SNARE_CLIENT_ID='cs-id',
    CONTENT_SNARE_CLIENT_SECRET='cs-secret',
    CONTENT_SNARE_REDIRECT_URI='https://api.example.com/api/integrations/content-snare/callback/',
)
class ContentSnareOAuthTests(TestCase):
    def setUp(self):
        cache.clear()

    def test_authorize_url(self):
        url = content_snare_service.build_authorize_url('state-1')

        parsed = urlparse(url)
        query = parse_qs(parsed.query)
        self.assertEqual(f"{parsed.scheme}://{parsed.netloc}{parsed.path}", content_snare_service.AUTHORIZE_URL)
        self.assertEqual(query['response_type'], ['code'])
        self.assertEqual(query['client_id'], ['cs-id'])
        self.assertEqual(query['redirect_uri'], ['https://api.example.com/api/integrations/content-snare/callback/'])
        self.assertEqual(query['state'], ['state-1'])

    @override_settings(CONTENT_SNARE_CLIENT_ID='')
    @patch.dict('os.environ', {'CONTENT_SNARE_CLIENT_ID': ''})
    def test_authorize_url_needs_client_id(self):
        with self.assertRaises(ContentSnareNotConfiguredError):
            content_snare_service.build_authorize_url()

    @patch('integrations.content_snare_service.requests.post')
    def test_exchange_code_replaces_stored_tokens(self, post):
        RefreshToken.replace(RefreshToken.SERVICE_CONTENT_SNARE, 'old-refresh')
        RefreshToken.objects.create(service_name=RefreshToken.SERVICE_CONTENT_SNARE, refresh_token='older-refresh')
        RefreshToken.replace(RefreshToken.SERVICE_GOOGLE_CALENDAR, 'google-refresh')
        post.return_value = fake_response(200, {
            'access_token': 'access-1',
            'refresh_token': 'new-refresh',
            'expires_in': 3600,
        })

        content_snare_service.exchange_code('auth-code')

        sent = post.call_args.kwargs['json']
        self.assertEqual(sent['grant_type'], 'authorization_code')
        self.assertEqual(sent['code'], 'auth-code')
        stored = RefreshToken.objects.filter(service_name=RefreshToken.SERVICE_CONTENT_SNARE)
        self.assertEqual(list(stored.values_list('refresh_token', flat=True)), ['new-refresh'])
        self.assertIsNotNone(RefreshToken.latest_for(RefreshToken.SERVICE_GOOGLE_CALENDAR))
        self.assertEqual(cache.get(ACCESS_TOKEN_CACHE_KEY), 'access-1')

    @patch('integrations.content_snare_service.requests.post')
    def test_exchange_code_failure_keeps_old_token(self, post):
        RefreshToken.replace(RefreshToken.SERVICE_CONTENT_SNARE, 'old-refresh')
        post.return_value = fake_response(400, text='invalid_code')

        with self.assertRaises(ContentSnareError):
            content_snare_service.exchange_code('bad-code')

        self.assertEqual(RefreshToken.latest_for(RefreshToken.SERVICE_CONTENT_SNARE).refresh_token, 'old-refresh')


@override_settings(
    APP_URL='https://members.example.com',
    CONTENT_SNARE_CLIENT_ID='cs-id',
    CONTENT_SNARE_CLIENT_SECRET='cs-secret',
)
class ContentSnareCallbackTests(APITestCase):
    admin_url = 'https://members.example.com/admin/content-snare'

    def setUp(self):
        self.staff = CustomUser.objects.create_user(email='staff@example.com', password='StrongPass123')
        AdminRole.objects.create(user=self.staff)

    def start_flow(self):
        self.client.force_authenticate(self.staff)
        response = self.client.get(reverse('integrations:content-snare-auth-url'))
        self.client.force_authenticate(None)
        return parse_qs(urlparse(response.data['auth_url']).query)['state'][0]

    @patch('integrations.views.content_snare_service.exchange_code')
    def test_connected(self, exchange_code):
        state = self.start_flow()

        response = self.client.get(reverse('integrations:content-snare-callback'), {'code': 'abc', 'state': state})

        self.assertEqual(response.status_code, 302)
        self.assertEqual(response['Location'], f'{self.admin_url}?connected=1')
        exchange_code.assert_called_once_with('abc')

    def test_provider_error_is_forwarded(self):
        response = self.client.get(reverse('integrations:content-snare-callback'), {'error': 'access_denied'})
        self.assertEqual(response['Location'], f'{self.admin_url}?error=access_denied')

    @patch('integrations.views.content_snare_service.exchange_code')
    def test_state_mismatch(self, exchange_code):
        self.start_flow()

        response = self.client.get(reverse('integrations:content-snare-callback'), {'code': 'abc', 'state': 'forged'})

        self.assertEqual(response['Location'], f'{self.admin_url}?error=invalid_state')
        exchange_code.assert_not_called()

    @patch('integrations.views.content_snare_service.exchange_code', side_effect=ContentSnareError('Token exchange failed', status_code=400))
    def test_exchange_failure(self, exchange_code):
        response = self.client.get(reverse('integrations:content-snare-callback'), {'code': 'abc'})
        self.assertEqual(response['Location'], f'{self.admin_url}?error=token_exchange_failed')


class ContentSnareClientTests(SimpleTestCase):
    def setUp(self):
        self.tokens = MagicMock()
        self.tokens.get_access_token.side_effect = lambda force_refresh=False: 'fresh' if force_refresh else 'stale'
        self.client = ContentSnareClient(tokens=self.tokens)

    @patch('integrations.content_snare_service.requests.request')
    def test_401_retries_with_fresh_token(self, request):
        request.side_effect = [fake_response(401), fake_response(200, {'id': 'req_1'})]

        result = self.client.get_request('req_1')

        self.assertEqual(result, {'id': 'req_1'})
        self.assertEqual(request.call_args.kwargs['headers']['Authorization'], 'Bearer fresh')

    @patch('integrations.content_snare_service.requests.request')
    def test_repeated_401_requires_reauthorization(self, request):
        request.return_value = fake_response(401)

        with self.assertRaises(ReauthorizationRequired):
            self.client.list_templates()
        self.assertEqual(request.call_count, 3)

    @patch('integrations.content_snare_service.requests.request')
    def test_api_error_carries_status(self, request):
        request.return_value = fake_response(422, {'error': 'template missing'})

        with self.assertRaises(ContentSnareError) as ctx:
            self.client.create_request('tpl_1', 'taro@example.com', 'Taro Kaeru', 'Course - Taro Kaeru')

        self.assertEqual(ctx.exception.status_code, 422)
        self.assertEqual(ctx.exception.details, {'error': 'template missing'})


class GoogleCalendarTests(TestCase):
    def test_month_window_spans_two_months(self):
        time_min, time_max = google_calendar_service.month_window(2025, 4)
        self.assertEqual((time_min.year, time_min.month, time_min.day), (2025, 4, 1))
        self.assertEqual((time_max.year, time_max.month, time_max.day), (2025, 6, 1))

    def test_month_window_crosses_year(self):
        _, time_max = google_calendar_service.month_window(2025, 12)
        self.assertEqual((time_max.year, time_max.month), (2026, 2))

    def test_missing_refresh_token_gives_empty_list(self):
        time_min, time_max = google_calendar_service.month_window(2025, 4)
        self.assertEqual(google_calendar_service.get_events(time_min, time_max), [])

    @patch('integrations.google_calendar_service.build')
    def test_events_query(self, build):
        RefreshToken.replace(RefreshToken.SERVICE_GOOGLE_CALENDAR, 'google-refresh')
        events = build.return_value.events.return_value
        events.list.return_value.execute.return_value = {'items': [{'id': 'evt_1'}]}

        result = google_calendar_service.get_events(datetime(2025, 4, 1), datetime(2025, 6, 1))

        self.assertEqual(result, [{'id': 'evt_1'}])
        kwargs = events.list.call_args.kwargs
        self.assertTrue(kwargs['singleEvents'])
        self.assertEqual(kwargs['orderBy'], 'startTime')


class IntegrationApiTests(APITestCase):
    def setUp(self):
        self.member = CustomUser.objects.create_user(email='member@example.com', password='StrongPass123')
        self.staff = CustomUser.objects.create_user(email='staff@example.com', password='StrongPass123')
        AdminRole.objects.create(user=self.staff)

    @patch('integrations.views.google_calendar_service.get_events', return_value=[{'id': 'evt_1'}])
    def test_events(self, get_events):
        self.client.force_authenticate(self.member)

        response = self.client.get(reverse('integrations:events'), {'year': 2025, 'month': 4})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['events'], [{'id': 'evt_1'}])
        time_min, time_max = get_events.call_args.args
        self.assertEqual((time_min.month, time_max.month), (4, 6))

    def test_events_rejects_bad_month(self):
        self.client.force_authenticate(self.member)
        response = self.client.get(reverse('integrations:events'), {'month': 13})
        self.assertEqual(response.status_code, 400)

    def test_status_is_staff_only(self):
        self.client.force_authenticate(self.member)
        self.assertEqual(self.client.get(reverse('integrations:content-snare-status')).status_code, 403)

        self.client.force_authenticate(self.staff)
        response = self.client.get(reverse('integrations:content-snare-status'))
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data['connected'])

    @patch('integrations.views.content_snare_service.token_manager')
    def test_refresh_reports_reauthorization(self, token_manager):
        token_manager.get_access_token.side_effect = ReauthorizationRequired('Refresh token rejected', status_code=401)
        self.client.force_authenticate(self.staff)

        response = self.client.post(reverse('integrations:content-snare-refresh'))

        self.assertEqual(response.status_code, 401)
        self.assertTrue(response.data['requireReauth'])

    @patch('integrations.views.slack_service.send_test_notification', return_value=slack_service.SlackResult(ok=False, error='webhook_url_missing'))
    def test_slack_test_failure(self, send):
        self.client.force_authenticate(self.staff)

        response = self.client.post(reverse('integrations:slack-test'))

        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.data['error'], 'webhook_url_missing')
