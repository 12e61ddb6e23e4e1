from unittest.mock import MagicMock, patch

from django.conf import settings
from django.test import SimpleTestCase, override_settings
from django.urls import reverse
from rest_framework.test import APITestCase

from accounts.models import CustomUser
from cms import client as cms_client
from cms.client import CMSError, CMSNotFound, MicroCMSClient, get_response_cache, get_with_cache, make_cache_key
from cms.content import get_optimized_image_url, get_related

CMS_SETTINGS = {
    'MICROCMS_SERVICE_DOMAIN': 'frog',
    'MICROCMS_API_KEY': 'cms-key',
}


class CacheKeyTests(SimpleTestCase):
    def test_key_ignores_param_order(self):
        self.assertEqual(
            make_cache_key('blogs', {'limit': 10, 'offset': 0}),
            make_cache_key('blogs', {'offset': 0, 'limit': 10}),
        )

    def test_key_differs_per_endpoint_and_query(self):
        self.assertNotEqual(make_cache_key('blogs', {'q': 'カナダ'}), make_cache_key('interviews', {'q': 'カナダ'}))
        self.assertNotEqual(make_cache_key('blogs', {'q': 'カナダ'}), make_cache_key('blogs', {'q': 'ビザ'}))

    def test_response_cache_is_bounded(self):
        max_entries = settings.CACHES['microcms']['OPTIONS']['MAX_ENTRIES']
        self.assertGreater(max_entries, 0)
        self.assertEqual(get_response_cache()._max_entries, max_entries)


@override_settings(**CMS_SETTINGS)
class MicroCMSClientTests(SimpleTestCase):
    def setUp(self):
        cms_client.clear_cache()

    def _response(self, status_code=200, payload=None):
        response = MagicMock(status_code=status_code, text='')
        response.json.return_value = payload if payload is not None else {}
        return response

    @patch('cms.client.requests.get')
    def test_request_shape(self, mock_get):
        mock_get.return_value = self._response(payload={'contents': [], 'totalCount': 0})

        MicroCMSClient().get('blogs', queries={'limit': 5, 'unknown': 'x', 'q': ''})

        args, kwargs = mock_get.call_args
        self.assertEqual(args[0], 'https://frog.microcms.io/api/v1/blogs')
        self.assertEqual(kwargs['headers'], {'X-MICROCMS-API-KEY': 'cms-key'})
        self.assertEqual(kwargs['params'], {'limit': 5})

    @patch('cms.client.requests.get')
    def test_cached_within_ttl(self, mock_get):
        mock_get.return_value = self._response(payload={'id': 'a1', 'title': 'Hello'})

        first = get_with_cache('blogs', {'content_id': 'a1'})
        second = get_with_cache('blogs', {'content_id': 'a1'})

        self.assertEqual(first, second)
        self.assertEqual(mock_get.call_count, 1)

        get_with_cache('blogs', {'content_id': 'a1'}, force_refresh=True)
        self.assertEqual(mock_get.call_count, 2)

    @patch('cms.client.requests.get')
    def test_errors(self, mock_get):
        mock_get.return_value = self._response(status_code=404)
        with self.assertRaises(CMSNotFound):
            MicroCMSClient().get('blogs', content_id='missing')

        mock_get.return_value = self._response(status_code=500)
        with self.assertRaises(CMSError) as ctx:
            MicroCMSClient().get('blogs')
        self.assertEqual(ctx.exception.status_code, 500)

    @override_settings(MICROCMS_SERVICE_DOMAIN='', MICROCMS_API_KEY='')
    @patch.dict('os.environ', {'MICROCMS_SERVICE_DOMAIN': '', 'MICROCMS_API_KEY': ''})
    def test_not_configured(self):
        with self.assertRaises(CMSError) as ctx:
            MicroCMSClient().get('blogs')
        self.assertEqual(ctx.exception.status_code, 503)

    @patch('cms.client.requests.get')
    def test_related_excludes_current(self, mock_get):
        mock_get.side_effect = [
            self._response(payload={'id': 'i1', 'category': {'id': 'nurse'}}),
            self._response(payload={'contents': [{'id': 'i1'}, {'id': 'i2'}, {'id': 'i3'}], 'totalCount': 3}),
        ]

        related = get_related('interviews', 'i1', limit=3)

        self.assertEqual([item['id'] for item in related], ['i2', 'i3'])
        self.assertEqual(mock_get.call_args[1]['params']['filters'], 'category[contains]nurse')

    @override_settings(MICROCMS_CACHE_TTL=0)
    @patch('cms.client.requests.get')
    def test_expired_response_is_fetched_again(self, mock_get):
        mock_get.return_value = self._response(payload={'contents': [], 'totalCount': 0})

        get_with_cache('blogs', {'limit': 10})
        get_with_cache('blogs', {'limit': 10})

        self.assertEqual(mock_get.call_count, 2)

    @patch('cms.client.requests.get')
    def test_clear_cache(self, mock_get):
        mock_get.return_value = self._response(payload={'contents': [], 'totalCount': 0})

        get_with_cache('blogs', {'limit': 10})
        cms_client.clear_cache()
        get_with_cache('blogs', {'limit': 10})

        self.assertEqual(mock_get.call_count, 2)


class ImageUrlTests(SimpleTestCase):
    def test_separator(self):
        self.assertEqual(
            get_optimized_image_url('https://images.microcms-assets.io/a.png', 400),
            'https://images.microcms-assets.io/a.png?w=400&fm=webp&q=80',
        )
        self.assertEqual(
            get_optimized_image_url('https://images.microcms-assets.io/a.png?fit=crop'),
            'https://images.microcms-assets.io/a.png?fit=crop&w=800&fm=webp&q=80',
        )
        self.assertEqual(get_optimized_image_url(''), '')


@override_settings(**CMS_SETTINGS)
class ContentViewTests(APITestCase):
    def setUp(self):
        cms_client.clear_cache()
        self.user = CustomUser.objects.create_user(email='reader@example.com', password='StrongPass123')
        self.client.force_authenticate(self.user)

    def test_unknown_endpoint_is_404(self):
        response = self.client.get(reverse('cms:content-list', args=['secrets']))
        self.assertEqual(response.status_code, 404)

    @patch('cms.views.get_list_with_cache')
    def test_list_forwards_params(self, mock_list):
        mock_list.return_value = {'contents': [{'id': 'b1'}], 'totalCount': 1}

        response = self.client.get(reverse('cms:content-list', args=['blogs']), {'limit': '5', 'revalidate': 'true'})

        self.assertEqual(response.status_code, 200)
        mock_list.assert_called_once_with('blogs', {'limit': '5'}, force_refresh=True)

    @patch('cms.views.get_with_cache', side_effect=CMSError('boom', status_code=500))
    def test_cms_failure_is_502(self, mock_get):
        response = self.client.get(reverse('cms:content-detail', args=['blogs', 'b1']))
        self.assertEqual(response.status_code, 502)

    def test_requires_login(self):
        self.client.force_authenticate(None)
        response = self.client.get(reverse('cms:content-list', args=['blogs']))
        self.assertEqual(response.status_code, 401)
