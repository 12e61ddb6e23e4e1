"""
Concierge conversation flow: persist the question, build context, ask the
model, persist the answer and shape the API payload.
"""
import logging

from django.db import transaction

from accounts.profile_service import get_profile

from .ai_service import AIService
from .context_service import build_context, job_position_for
from .models import AIChatSession, AIMessage

logger = logging.getLogger(__name__)

TITLE_LENGTH = 100


class ConciergeError(Exception):
    def __init__(self, message, status_code=400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def get_or_create_session(user, session_key=None, first_query=''):
    if session_key:
        session = AIChatSession.objects.filter(session_key=session_key, user=user).first()
        if session is None:
            raise ConciergeError('会話が見つかりません', status_code=404)
        return session
    return AIChatSession.objects.create(user=user, title=first_query[:TITLE_LENGTH])


def history_for(session, limit=AIService.HISTORY_MESSAGES):
    recent = list(session.messages.order_by('-created_at', '-id')[:limit])
    return [{'role': m.sender, 'content': m.content} for m in reversed(recent)]


def _course_source(course):
    location = course.school.goal_location
    return {
        'id': course.pk,
        'title': course.name,
        'school': course.school.name,
        'location': f"{location.city}, {location.country}" if location else '',
        'tuition': course.tuition_and_others,
    }


def _relevant_interviews(query, interviews):
    if 'カナダ' in query and ('就職' in query or '仕事' in query):
        interviews = [i for i in interviews if i['isCanadaJob']]
    return [{'title': i['title'], 'slug': i['slug'], 'publishedAt': i['publishedAt']} for i in interviews]


def _recommendations(profile, courses):
    if not courses:
        return None
    position = job_position_for(profile)
    return {
        'migrationGoal': profile.migration_goal,
        'futureOccupation': {
            'id': position.pk,
            'title': position.title,
            'industry': position.industry,
        } if position else None,
        'courses': [_course_source(course) for course in courses],
    }


def ask(user, query, session_key=None):
    """
    Answer a member's question.

    Returns the response payload: answer, sessionId, sources, analysis and
    recommendations (None when nothing was recommended).
    """
    query = (query or '').strip()
    if not query:
        raise ConciergeError('質問が指定されていません', status_code=400)

    session = get_or_create_session(user, session_key, query)
    history = history_for(session)
    AIMessage.objects.create(session=session, sender=AIMessage.SENDER_USER, content=query)

    profile = get_profile(user)
    context = build_context(query, profile)
    response = AIService.generate_answer(query, context.blocks, history)

    with transaction.atomic():
        AIMessage.objects.create(
            session=session,
            sender=AIMessage.SENDER_ASSISTANT,
            content=response.text,
            metadata={
                'model': response.model,
                'tokensUsed': response.tokens_used,
                'failed': response.failed,
                'relevantInfo': {
                    'visaSources': len(context.visa_types),
                    'courseSources': len(context.courses),
                    'interviewSources': len(context.interviews),
                },
            },
        )
        # bump updated_at so the session list stays in recency order
        session.save(update_fields=['updated_at'])

    logger.info(
        "Concierge answered session %s (visa=%s courses=%s interviews=%s failed=%s)",
        session.session_key, len(context.visa_types), len(context.courses), len(context.interviews), response.failed,
    )

    return {
        'answer': response.text,
        'sessionId': str(session.session_key),
        'sources': {
            'visa': [{'title': v.name, 'url': v.official_url} for v in context.visa_types],
            'courses': [_course_source(course) for course in context.courses],
            'interviews': _relevant_interviews(query, context.interviews),
        },
        'analysis': {
            'keywords': context.keywords,
            'total': len(context.interviews),
            'canadaJobs': context.canada_jobs,
        },
        'recommendations': _recommendations(profile, context.recommended),
    }
