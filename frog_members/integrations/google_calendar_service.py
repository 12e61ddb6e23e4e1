"""
Google Calendar read access for the member events page.

The portal reads one shared calendar with a refresh token kept in the
RefreshToken store under GOOGLE_REFRESH_TOKEN.
"""
import logging
import os
from datetime import datetime

from django.conf import settings
from django.utils import timezone
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from .models import RefreshToken

logger = logging.getLogger(__name__)

SCOPES = ['https://www.googleapis.com/auth/calendar.readonly']
GOOGLE_TOKEN_URI = 'https://oauth2.googleapis.com/token'


class GoogleCalendarError(Exception):
    """Base exception for Google Calendar integration errors"""
    pass


def get_google_config():
    return {
        'client_id': getattr(settings, 'GOOGLE_CLIENT_ID', None) or os.environ.get('GOOGLE_CLIENT_ID', ''),
        'client_secret': getattr(settings, 'GOOGLE_CLIENT_SECRET', None) or os.environ.get('GOOGLE_CLIENT_SECRET', ''),
        'calendar_id': getattr(settings, 'GOOGLE_CALENDAR_ID', None) or os.environ.get('GOOGLE_CALENDAR_ID', 'primary'),
    }


def month_window(year=None, month=None):
    """
    First day of the given month up to the end of the following month.

    Returns (time_min, time_max) as aware datetimes; time_max is exclusive.
    """
    now = timezone.localtime()
    year = year or now.year
    month = month or now.month
    tz = timezone.get_current_timezone()

    time_min = datetime(year, month, 1, tzinfo=tz)
    end_month = month + 2
    end_year = year + (end_month - 1) // 12
    end_month = (end_month - 1) % 12 + 1
    time_max = datetime(end_year, end_month, 1, tzinfo=tz)
    return time_min, time_max


def _build_service():
    stored = RefreshToken.latest_for(RefreshToken.SERVICE_GOOGLE_CALENDAR)
    if not stored:
        raise GoogleCalendarError('Google Calendar refresh token not found')

    config = get_google_config()
    credentials = Credentials(
        token=None,
        refresh_token=stored.refresh_token,
        token_uri=GOOGLE_TOKEN_URI,
        client_id=config['client_id'],
        client_secret=config['client_secret'],
        scopes=SCOPES,
    )
    return build('calendar', 'v3', credentials=credentials, cache_discovery=False)


def get_events(time_min, time_max):
    """
    List single events between time_min and time_max ordered by start time.

    Any failure is logged and yields an empty list.
    """
    config = get_google_config()
    try:
        service = _build_service()
        response = service.events().list(
            calendarId=config['calendar_id'],
            timeMin=time_min.isoformat(),
            timeMax=time_max.isoformat(),
            singleEvents=True,
            orderBy='startTime',
        ).execute()
    except Exception as e:
        logger.error("Failed to fetch Google Calendar events: %s", e)
        return []

    items = response.get('items', [])
    logger.info("Fetched %s calendar events", len(items))
    return items
