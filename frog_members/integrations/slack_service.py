"""
Slack notifications for portal staff.

Every helper is best-effort: it returns a SlackResult and never raises, so a
Slack outage can not break the request that triggered the notification.
"""
import logging
import os
import time
from dataclasses import dataclass
from typing import Optional

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

FOOTER = 'Frog Members Portal'
ATTACHMENT_COLOR = '#36a64f'
CHAT_PREVIEW_LENGTH = 100


@dataclass
class SlackResult:
    ok: bool
    error: Optional[str] = None


def _setting(name):
    return getattr(settings, name, None) or os.environ.get(name, '')


def _app_url():
    return (_setting('APP_URL') or '').rstrip('/')


def _truncate(text, limit=CHAT_PREVIEW_LENGTH):
    text = text or ''
    if len(text) > limit:
        return text[:limit - 3] + '...'
    return text


def send_slack_notification(webhook_url, payload, timeout=None) -> SlackResult:
    """
    POST a JSON payload to a Slack incoming webhook.

    Error codes: webhook_url_missing, status_<code>, timeout, fetch_error.
    """
    if not webhook_url:
        return SlackResult(ok=False, error='webhook_url_missing')

    if timeout is None:
        timeout = getattr(settings, 'SLACK_TIMEOUT_SECONDS', 10)

    try:
        response = requests.post(webhook_url, json=payload, timeout=timeout)
    except requests.Timeout:
        logger.warning("Slack webhook timed out after %ss", timeout)
        return SlackResult(ok=False, error='timeout')
    except requests.RequestException as e:
        logger.warning("Slack webhook request failed: %s", e)
        return SlackResult(ok=False, error='fetch_error')

    if response.status_code >= 400:
        logger.warning("Slack webhook answered %s: %s", response.status_code, response.text[:200])
        return SlackResult(ok=False, error=f'status_{response.status_code}')

    return SlackResult(ok=True)


def send_admin_notification(title, message, fields=None, is_test=False, webhook_url=None) -> SlackResult:
    """
    Send an attachment-style message to the staff channel.

    Args:
        title: attachment title
        message: attachment body
        fields: list of {'title', 'value', 'short'} dicts
        is_test: build the payload but do not send it
        webhook_url: override for SLACK_WEBHOOK_URL
    """
    webhook_url = webhook_url or _setting('SLACK_WEBHOOK_URL')
    if not webhook_url:
        return SlackResult(ok=False, error='webhook_url_missing')

    payload = {
        'attachments': [
            {
                'color': ATTACHMENT_COLOR,
                'title': title,
                'text': message,
                'fields': fields or [],
                'footer': FOOTER,
                'ts': int(time.time()),
            }
        ]
    }

    if is_test:
        return SlackResult(ok=True)

    return send_slack_notification(webhook_url, payload)


def send_test_notification() -> SlackResult:
    """Post a plain block message so staff can confirm the webhook works."""
    payload = {
        'blocks': [
            {
                'type': 'section',
                'text': {'type': 'mrkdwn', 'text': ':white_check_mark: *Slack通知テスト*\n通知が正常に送信されました。'},
            },
            {
                'type': 'section',
                'text': {'type': 'mrkdwn', 'text': f"*タイムスタンプ*: {time.strftime('%Y-%m-%dT%H:%M:%S')}"},
            },
        ]
    }
    return send_slack_notification(_setting('SLACK_WEBHOOK_URL'), payload)


def notify_new_user(profile, is_test=False) -> SlackResult:
    display_name = profile.full_name or profile.email
    fields = [
        {'title': 'ユーザーID', 'value': str(profile.user_id), 'short': True},
        {'title': 'メールアドレス', 'value': profile.email, 'short': True},
    ]
    if profile.goal_location:
        fields.append({'title': '留学希望先', 'value': profile.goal_location, 'short': True})
    if profile.visa_status:
        fields.append({'title': 'ビザステータス', 'value': profile.visa_status, 'short': True})

    app_url = _app_url()
    if app_url:
        fields.append({
            'title': '管理画面',
            'value': f"<{app_url}/admin/profiles/{profile.user_id}|ユーザー詳細を見る>",
            'short': False,
        })

    return send_admin_notification(
        '🎉 新規ユーザー登録',
        f"{display_name}さんが新規登録しました。",
        fields,
        is_test,
    )


def notify_onboarding_completed(profile, is_test=False) -> SlackResult:
    fields = [
        {'title': 'メールアドレス', 'value': profile.email, 'short': True},
        {'title': '移住の目的', 'value': profile.migration_goal or '-', 'short': True},
        {'title': '将来の職業', 'value': profile.future_occupation or '-', 'short': True},
        {'title': '留学希望先', 'value': profile.goal_location or '-', 'short': True},
    ]
    return send_admin_notification(
        '✅ オンボーディング完了',
        f"{profile.full_name or profile.email}さんがオンボーディングを完了しました。",
        fields,
        is_test,
    )


def notify_new_chat_message(session_id, user_id, user_name, message, is_test=False) -> SlackResult:
    """Support chat messages go to SLACK_CHAT_WEBHOOK_URL when it is configured."""
    webhook_url = _setting('SLACK_CHAT_WEBHOOK_URL') or _setting('SLACK_WEBHOOK_URL')
    if not webhook_url:
        return SlackResult(ok=False, error='webhook_url_missing')

    fields = [
        {'title': 'ユーザー', 'value': user_name, 'short': True},
        {'title': 'ユーザーID', 'value': str(user_id), 'short': True},
        {'title': 'メッセージ', 'value': _truncate(message), 'short': False},
    ]
    app_url = _app_url()
    if app_url:
        fields.append({
            'title': 'チャット',
            'value': f"<{app_url}/admin/chats/{session_id}|こちらから返信する>",
            'short': False,
        })

    return send_admin_notification(
        '💬 新着メッセージ',
        f"{user_name}さんから新着メッセージがあります。",
        fields,
        is_test,
        webhook_url=webhook_url,
    )


def notify_new_course_application(application_id, user_name, course_name, is_test=False) -> SlackResult:
    return send_admin_notification(
        '新規コース申請',
        f"{user_name}さんから{course_name}への申し込みがありました",
        [
            {'title': 'ユーザー', 'value': user_name, 'short': True},
            {'title': 'コース', 'value': course_name, 'short': True},
            {'title': 'リンク', 'value': f"{_app_url()}/admin/applications/{application_id}"},
        ],
        is_test,
    )


def notify_course_application_submitted(application_id, user_name, course_name, is_test=False) -> SlackResult:
    return send_admin_notification(
        '📄 申請書類の提出',
        f"{user_name}さんが{course_name}の申請書類を提出しました",
        [
            {'title': 'ユーザー', 'value': user_name, 'short': True},
            {'title': 'コース', 'value': course_name, 'short': True},
            {'title': 'リンク', 'value': f"{_app_url()}/admin/applications/{application_id}"},
        ],
        is_test,
    )


def notify_new_visa_review(review_id, user_name, visa_type, is_test=False) -> SlackResult:
    return send_admin_notification(
        '新規ビザ相談',
        f"{user_name}さんから{visa_type}についての相談がありました",
        [
            {'title': 'ユーザー', 'value': user_name, 'short': True},
            {'title': 'ビザタイプ', 'value': visa_type, 'short': True},
            {'title': 'リンク', 'value': f"{_app_url()}/admin/visa-reviews/{review_id}"},
        ],
        is_test,
    )


def notify_new_visa_plan_message(plan_id, user_name, title, content, is_test=False) -> SlackResult:
    return send_admin_notification(
        '新規ビザプランメッセージ',
        f"{user_name}さんからビザプランについて新しいメッセージが届きました",
        [
            {'title': 'ユーザー', 'value': user_name, 'short': True},
            {'title': 'タイトル', 'value': title or '(タイトルなし)', 'short': True},
            {'title': 'メッセージ', 'value': _truncate(content)},
            {'title': 'リンク', 'value': f"{_app_url()}/admin/visa-plan-messages/{plan_id}"},
        ],
        is_test,
    )
