"""
Community directory built from the Frog Slack workspace.

Every category maps to one or more Slack channels; the first channel is the
category's main channel. Tech is the workspace-wide community and is counted
from #general, falling back to the workspace user count.

    from community.slack_directory import get_all_category_info

    categories = get_all_category_info()  # cached for COMMUNITY_CACHE_TTL

Slack failures never propagate: a count that cannot be read is 0 and a
directory that cannot be built is an empty list.
"""
import logging
from datetime import datetime, timedelta, timezone as dt_timezone

from django.conf import settings
from django.core.cache import cache
from django.utils import timezone
from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

logger = logging.getLogger(__name__)

TECH = 'Tech'
BUSINESS = 'Business'
HOSPITALITY = 'Hospitality'
HEALTHCARE = 'Healthcare'
CREATIVE = 'Creative'

CATEGORIES = (TECH, BUSINESS, HOSPITALITY, HEALTHCARE, CREATIVE)

CATEGORY_CHANNELS = {
    TECH: ['C02PZPZR9HY'],
    BUSINESS: ['C02PZPZR9HZ'],
    HOSPITALITY: ['C02PZPZR9I0'],
    HEALTHCARE: ['C02PZPZR9I1'],
    CREATIVE: ['C02PZPZR9I2'],
}

CATEGORY_POSITIONS = {
    TECH: ['ソフトウェアエンジニア', 'プロダクトマネージャー', 'データサイエンティスト'],
    BUSINESS: ['マーケティングマネージャー', 'ビジネスアナリスト', 'セールスディレクター'],
    HOSPITALITY: ['ホテルマネージャー', 'レストランオーナー', 'ツアーコーディネーター'],
    HEALTHCARE: ['医師', '看護師', '医療研究者'],
    CREATIVE: ['グラフィックデザイナー', 'UX/UIデザイナー', 'コンテンツクリエイター'],
}

DEFAULT_CATEGORY_MEMBERS = 150
MEMBERS_PAGE_SIZE = 1000
WORKSPACE_USERS_LIMIT = 1000
RECENT_USERS_LIMIT = 200
RECENT_MEMBERS_CHECKED = 30
ESTIMATED_NEW_RATIO = 0.05
ESTIMATED_NEW_RATIO_NO_CHANNEL = 0.1
RETURNEE_RATIO = 0.15
CACHE_KEY = 'community_categories:{mode}'


def get_slack_client():
    token = getattr(settings, 'SLACK_BOT_TOKEN', '') or getattr(settings, 'SLACK_XAPP_TOKEN', '')
    return WebClient(token=token, timeout=getattr(settings, 'SLACK_TIMEOUT_SECONDS', 10))


def _workspace_id():
    return getattr(settings, 'SLACK_WORKSPACE_ID', '')


def _general_channel_id():
    return getattr(settings, 'SLACK_GENERAL_CHANNEL_ID', '')


def _is_real_user(member):
    return not member.get('is_bot') and not member.get('deleted')


def _joined_at(member):
    """Unix time the member last changed, falling back to creation."""
    return int(member.get('updated') or member.get('created') or 0)


class SlackDirectory:
    def __init__(self, client=None):
        self.client = client or get_slack_client()

    def channel_member_count(self, channel_id):
        try:
            response = self.client.conversations_info(channel=channel_id)
        except SlackApiError as e:
            logger.warning("conversations.info failed for %s: %s", channel_id, e.response.get('error'))
            return 0
        return (response.get('channel') or {}).get('num_members') or 0

    def channel_members(self, channel_id):
        """Every member id of the channel, following pagination cursors."""
        members = []
        cursor = None
        try:
            while True:
                response = self.client.conversations_members(channel=channel_id, cursor=cursor, limit=MEMBERS_PAGE_SIZE)
                members.extend(response.get('members') or [])
                cursor = (response.get('response_metadata') or {}).get('next_cursor')
                if not cursor:
                    return members
        except SlackApiError as e:
            logger.warning("conversations.members failed for %s: %s", channel_id, e.response.get('error'))
            return []

    def general_channel_member_count(self):
        """
        Member count of #general: conversations.info first, then the public
        channel list, then counting conversations.members.
        """
        channel_id = _general_channel_id()
        count = self.channel_member_count(channel_id)
        if count:
            return count

        try:
            response = self.client.conversations_list(
                types='public_channel',
                team_id=_workspace_id(),
                exclude_archived=True,
            )
        except SlackApiError as e:
            logger.warning("conversations.list failed: %s", e.response.get('error'))
        else:
            for channel in response.get('channels') or []:
                if channel.get('id') == channel_id or channel.get('name') == 'general' or channel.get('is_general'):
                    if channel.get('num_members'):
                        return channel['num_members']
                    break

        return len(self.channel_members(channel_id))

    def workspace_user_count(self):
        try:
            response = self.client.users_list(team_id=_workspace_id(), limit=WORKSPACE_USERS_LIMIT)
        except SlackApiError as e:
            logger.warning("users.list failed: %s", e.response.get('error'))
            return 0
        return sum(1 for member in response.get('members') or [] if _is_real_user(member))

    def new_members_count(self, channel_id, now=None):
        """
        Channel members who joined in the last month.

        Only the RECENT_MEMBERS_CHECKED most recently joined members are
        looked at; counting stops at the first one older than a month.
        When the user list cannot be read, 5% of the channel is assumed.
        """
        since = (now or timezone.now()) - timedelta(days=30)
        try:
            response = self.client.users_list(team_id=_workspace_id(), limit=RECENT_USERS_LIMIT)
        except SlackApiError as e:
            logger.warning("users.list failed, estimating new members of %s: %s", channel_id, e.response.get('error'))
            return int(self.channel_member_count(channel_id) * ESTIMATED_NEW_RATIO)

        users = sorted(
            (member for member in response.get('members') or [] if _is_real_user(member)),
            key=_joined_at,
            reverse=True,
        )
        channel_members = set(self.channel_members(channel_id))
        recent = [user for user in users if user.get('id') in channel_members][:RECENT_MEMBERS_CHECKED]

        count = 0
        for user in recent:
            joined = _joined_at(user)
            if not joined:
                continue
            if datetime.fromtimestamp(joined, tz=dt_timezone.utc) <= since:
                break
            count += 1
        return count

    def category_member_count(self, category):
        channels = CATEGORY_CHANNELS.get(category) or []
        if not channels:
            return DEFAULT_CATEGORY_MEMBERS
        return self.channel_member_count(channels[0])

    def category_info(self, category, skip_new_members=True):
        if category == TECH:
            general_members = self.general_channel_member_count()
            member_count = general_members or self.workspace_user_count()
            if skip_new_members:
                new_members = int(general_members * ESTIMATED_NEW_RATIO)
            else:
                new_members = self.new_members_count(_general_channel_id())
        else:
            general_members = None
            member_count = self.category_member_count(category)
            channels = CATEGORY_CHANNELS.get(category) or []
            if skip_new_members:
                new_members = int(member_count * ESTIMATED_NEW_RATIO)
            elif channels:
                new_members = sum(self.new_members_count(channel_id) for channel_id in channels)
            else:
                new_members = int(member_count * ESTIMATED_NEW_RATIO_NO_CHANNEL)

        growth_rate = round(new_members / member_count * 100, 1) if member_count else 0
        info = {
            'name': category,
            'memberCount': member_count,
            'newMembersCount': new_members,
            'growthRate': growth_rate,
            'positions': CATEGORY_POSITIONS.get(category, []),
            'returneeCount': int(member_count * RETURNEE_RATIO),
        }
        if general_members is not None:
            info['generalChannelMembers'] = general_members
        return info

    def all_category_info(self, skip_new_members=True):
        return [self.category_info(category, skip_new_members) for category in CATEGORIES]


def get_all_category_info(skip_new_members=True, force_refresh=False, directory=None):
    """Directory for every category, kept in the cache for COMMUNITY_CACHE_TTL seconds."""
    key = CACHE_KEY.format(mode='estimated' if skip_new_members else 'detailed')
    if not force_refresh:
        cached = cache.get(key)
        if cached is not None:
            return cached

    try:
        categories = (directory or SlackDirectory()).all_category_info(skip_new_members)
    except SlackApiError as e:
        logger.error("Community directory could not be built: %s", e)
        return []

    cache.set(key, categories, getattr(settings, 'COMMUNITY_CACHE_TTL', 3600))
    return categories
