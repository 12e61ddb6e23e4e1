from datetime import datetime, timezone as dt_timezone
from unittest.mock import MagicMock, patch

from django.core.cache import cache
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from rest_framework.test import APITestCase
from slack_sdk.errors import SlackApiError

from accounts.models import AdminRole, CustomUser
from community import slack_directory
from community.slack_directory import SlackDirectory, get_all_category_info

SLACK_SETTINGS = {
    'SLACK_WORKSPACE_ID': 'T0FROG',
    'SLACK_GENERAL_CHANNEL_ID': 'CGENERAL',
    'COMMUNITY_CACHE_TTL': 3600,
}

NOW = datetime(2025, 5, 31, tzinfo=dt_timezone.utc)


def slack_error(error='channel_not_found'):
    return SlackApiError(error, response={'ok': False, 'error': error})


def user(user_id, joined, **extra):
    return {'id': user_id, 'updated': int(joined.timestamp()), **extra}


@override_settings(**SLACK_SETTINGS)
class ChannelCountTests(SimpleTestCase):
    def setUp(self):
        self.client = MagicMock()
        self.directory = SlackDirectory(client=self.client)

    def test_channel_member_count(self):
        self.client.conversations_info.return_value = {'channel': {'id': 'C1', 'num_members': 42}}
        self.assertEqual(self.directory.channel_member_count('C1'), 42)

        self.client.conversations_info.side_effect = slack_error()
        self.assertEqual(self.directory.channel_member_count('C1'), 0)

    def test_channel_members_follow_cursor(self):
        self.client.conversations_members.side_effect = [
            {'members': ['U1', 'U2'], 'response_metadata': {'next_cursor': 'page2'}},
            {'members': ['U3'], 'response_metadata': {'next_cursor': ''}},
        ]

        self.assertEqual(self.directory.channel_members('C1'), ['U1', 'U2', 'U3'])
        self.assertEqual(self.client.conversations_members.call_args.kwargs['cursor'], 'page2')
        self.assertEqual(self.client.conversations_members.call_args.kwargs['limit'], 1000)

    def test_general_count_falls_back_to_channel_list(self):
        self.client.conversations_info.side_effect = slack_error('missing_scope')
        self.client.conversations_list.return_value = {'channels': [
            {'id': 'CRANDOM', 'name': 'random', 'num_members': 5},
            {'id': 'COTHER', 'name': 'general', 'num_members': 300},
        ]}

        self.assertEqual(self.directory.general_channel_member_count(), 300)
        kwargs = self.client.conversations_list.call_args.kwargs
        self.assertEqual(kwargs['team_id'], 'T0FROG')
        self.assertTrue(kwargs['exclude_archived'])

    def test_general_count_last_resort_counts_members(self):
        self.client.conversations_info.side_effect = slack_error('missing_scope')
        self.client.conversations_list.side_effect = slack_error('missing_scope')
        self.client.conversations_members.return_value = {'members': ['U1', 'U2', 'U3']}

        self.assertEqual(self.directory.general_channel_member_count(), 3)

    def test_workspace_user_count_skips_bots_and_deleted(self):
        self.client.users_list.return_value = {'members': [
            {'id': 'U1'},
            {'id': 'U2', 'is_bot': True},
            {'id': 'U3', 'deleted': True},
            {'id': 'U4'},
        ]}
        self.assertEqual(self.directory.workspace_user_count(), 2)

    def test_category_without_channel_uses_default(self):
        with patch.dict(slack_directory.CATEGORY_CHANNELS, {slack_directory.CREATIVE: []}):
            self.assertEqual(self.directory.category_member_count(slack_directory.CREATIVE), 150)


@override_settings(**SLACK_SETTINGS)
class NewMembersTests(SimpleTestCase):
    def setUp(self):
        self.client = MagicMock()
        self.directory = SlackDirectory(client=self.client)

    def test_counts_recent_channel_members_only(self):
        self.client.users_list.return_value = {'members': [
            user('U1', datetime(2025, 5, 20, tzinfo=dt_timezone.utc)),
            user('U2', datetime(2025, 5, 25, tzinfo=dt_timezone.utc)),
            user('U3', datetime(2025, 5, 28, tzinfo=dt_timezone.utc), is_bot=True),
            user('U4', datetime(2025, 5, 29, tzinfo=dt_timezone.utc)),
            user('U5', datetime(2025, 3, 1, tzinfo=dt_timezone.utc)),
        ]}
        self.client.conversations_members.return_value = {'members': ['U1', 'U2', 'U3', 'U5']}

        self.assertEqual(self.directory.new_members_count('C1', now=NOW), 2)

    def test_user_list_failure_estimates_five_percent(self):
        self.client.users_list.side_effect = slack_error('missing_scope')
        self.client.conversations_info.return_value = {'channel': {'num_members': 200}}

        self.assertEqual(self.directory.new_members_count('C1', now=NOW), 10)


@override_settings(**SLACK_SETTINGS)
class CategoryInfoTests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = MagicMock()
        self.directory = SlackDirectory(client=self.client)

    def test_tech_uses_general_channel(self):
        self.client.conversations_info.return_value = {'channel': {'num_members': 400}}

        info = self.directory.category_info(slack_directory.TECH)

        self.assertEqual(info['memberCount'], 400)
        self.assertEqual(info['generalChannelMembers'], 400)
        self.assertEqual(info['newMembersCount'], 20)
        self.assertEqual(info['growthRate'], 5.0)
        self.assertEqual(info['returneeCount'], 60)
        self.assertEqual(info['positions'][0], 'ソフトウェアエンジニア')

    def test_tech_falls_back_to_workspace_users(self):
        self.client.conversations_info.side_effect = slack_error()
        self.client.conversations_list.return_value = {'channels': []}
        self.client.conversations_members.return_value = {'members': []}
        self.client.users_list.return_value = {'members': [{'id': 'U1'}, {'id': 'U2'}]}

        info = self.directory.category_info(slack_directory.TECH)

        self.assertEqual(info['memberCount'], 2)
        self.assertEqual(info['generalChannelMembers'], 0)
        self.assertEqual(info['growthRate'], 0)

    def test_other_category_sums_channel_new_members_when_detailed(self):
        self.client.conversations_info.return_value = {'channel': {'num_members': 80}}
        with patch.object(SlackDirectory, 'new_members_count', return_value=4) as new_members:
            info = self.directory.category_info(slack_directory.BUSINESS, skip_new_members=False)

        new_members.assert_called_once_with('C02PZPZR9HZ')
        self.assertEqual(info['memberCount'], 80)
        self.assertEqual(info['newMembersCount'], 4)
        self.assertEqual(info['growthRate'], 5.0)
        self.assertNotIn('generalChannelMembers', info)

    def test_all_categories_in_order(self):
        self.client.conversations_info.return_value = {'channel': {'num_members': 10}}

        names = [c['name'] for c in self.directory.all_category_info()]

        self.assertEqual(names, ['Tech', 'Business', 'Hospitality', 'Healthcare', 'Creative'])

    def test_directory_is_cached(self):
        directory = MagicMock()
        directory.all_category_info.return_value = [{'name': 'Tech'}]

        first = get_all_category_info(directory=directory)
        second = get_all_category_info(directory=directory)
        get_all_category_info(directory=directory, force_refresh=True)

        self.assertEqual(first, second)
        self.assertEqual(directory.all_category_info.call_count, 2)

    def test_failure_gives_empty_directory(self):
        directory = MagicMock()
        directory.all_category_info.side_effect = slack_error('invalid_auth')

        self.assertEqual(get_all_category_info(directory=directory), [])


class CommunityApiTests(APITestCase):
    def setUp(self):
        cache.clear()

    @patch('community.views.get_all_category_info', return_value=[{'name': 'Tech', 'memberCount': 10}])
    def test_public_directory(self, get_info):
        response = self.client.get(reverse('community:categories'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['categories'][0]['name'], 'Tech')
        get_info.assert_called_once_with(skip_new_members=True, force_refresh=False)

    @patch('community.views.get_all_category_info', return_value=[])
    def test_refresh_is_staff_only(self, get_info):
        self.client.get(reverse('community:categories'), {'detailed': '1', 'refresh': '1'})
        get_info.assert_called_with(skip_new_members=False, force_refresh=False)

        staff = CustomUser.objects.create_user(email='staff@example.com', password='StrongPass123')
        AdminRole.objects.create(user=staff)
        self.client.force_authenticate(staff)
        self.client.get(reverse('community:categories'), {'refresh': '1'})
        get_info.assert_called_with(skip_new_members=True, force_refresh=True)
