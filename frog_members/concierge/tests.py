from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import openai
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from rest_framework.test import APITestCase

from accounts.models import CustomUser
from cms.client import CMSError
from concierge import context_service
from concierge.ai_service import FALLBACK_ANSWER, AIService
from concierge.models import AIChatSession, AIMessage
from courses.models import Course, CourseJobPosition, CourseSubject, GoalLocation, JobPosition, School
from visa.models import VisaType


def make_member(email='member@example.com', **profile_fields):
    user = CustomUser.objects.create_user(email=email, password='StrongPass123')
    profile = user.profile
    profile.onboarding_completed = True
    for field, value in profile_fields.items():
        setattr(profile, field, value)
    profile.save()
    return user


def fake_completion(text='回答です', tokens=42):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=text))],
        usage=SimpleNamespace(total_tokens=tokens),
        model='gpt-4o-mini',
    )


def interview(content_id, published_at, contents=''):
    return {
        'id': content_id,
        'title': f'Interview {content_id}',
        'slug': content_id,
        'contents': contents,
        'publishedAt': published_at,
    }


class KeywordExtractionTests(SimpleTestCase):
    def test_domain_keywords_then_other_words(self):
        keywords = context_service.extract_keywords('ワーホリ ビザ について')
        self.assertEqual(keywords, ['ビザ', 'ワーホリ', 'について'])

    def test_at_most_three_general_words(self):
        keywords = context_service.extract_keywords('alpha beta gamma delta')
        self.assertEqual(keywords, ['alpha', 'beta', 'gamma'])

    def test_english_mentions_add_canonical_keywords(self):
        keywords = context_service.extract_keywords('frog visa course')
        self.assertIn('Frog', keywords)
        self.assertIn('ビザ', keywords)
        self.assertIn('コース', keywords)

    def test_detail_questions(self):
        self.assertTrue(context_service.requires_detailed_info('どんな科目がありますか'))
        self.assertFalse(context_service.requires_detailed_info('学費はいくらですか'))


class InterviewInfoTests(SimpleTestCase):
    def test_canada_job_detection_strips_html(self):
        is_canada_job, text = context_service.extract_interview_info('<p>バンクーバーで</p><p>エンジニアとして就職</p>')
        self.assertTrue(is_canada_job)
        self.assertEqual(text, 'バンクーバーでエンジニアとして就職')

    def test_unrelated_interview(self):
        is_canada_job, _ = context_service.extract_interview_info('<p>英語の勉強法について</p>')
        self.assertFalse(is_canada_job)


class InterviewSearchTests(SimpleTestCase):
    @patch('concierge.context_service.get_interviews')
    def test_deduplicated_newest_first(self, get_interviews):
        responses = {
            'カナダ 就職': [interview('a', '2024-01-01T00:00:00Z'), interview('b', '2024-06-01T00:00:00Z')],
            'カナダ': [interview('b', '2024-06-01T00:00:00Z'), interview('c', '2025-02-01T00:00:00Z')],
            '就職': [],
        }
        get_interviews.side_effect = lambda limit, q: {'contents': responses.get(q, [])}

        results = context_service.search_interviews('カナダ 就職', ['カナダ', '就職'])

        self.assertEqual([i['id'] for i in results], ['c', 'b', 'a'])

    @patch('concierge.context_service.get_interviews')
    def test_capped_at_thirty(self, get_interviews):
        get_interviews.return_value = {
            'contents': [interview(str(n), f'2024-01-{n % 28 + 1:02d}T00:00:00Z') for n in range(45)],
        }
        self.assertEqual(len(context_service.search_interviews('体験談', [])), 30)

    @patch('concierge.context_service.get_interviews', side_effect=CMSError('microCMS unavailable', status_code=503))
    def test_cms_failure_gives_no_interviews(self, get_interviews):
        self.assertEqual(context_service.search_interviews('カナダ', ['カナダ']), [])


class CatalogueMixin:
    def make_catalogue(self):
        location = GoalLocation.objects.create(city='Vancouver', country='Canada')
        school = School.objects.create(name='Frog College', goal_location=location)
        self.course = Course.objects.create(
            school=school,
            name='Web Development Co-op',
            category='IT',
            description='プログラミングを学ぶコース',
            total_weeks=52,
            lecture_weeks=26,
            work_permit_weeks=26,
            tuition_and_others='CAD 18,000',
        )
        CourseSubject.objects.create(course=self.course, title='JavaScript', description='Frontend basics')
        self.visa = VisaType.objects.create(
            name='学生ビザ',
            slug='study-permit',
            description='カナダで学ぶためのビザ',
            official_url='https://www.canada.ca/study',
        )


@patch('concierge.context_service.get_interviews', return_value={'contents': []})
class BuildContextTests(CatalogueMixin, TestCase):
    def setUp(self):
        self.make_catalogue()

    def test_course_block_lists_subjects_for_course_questions(self, get_interviews):
        context = context_service.build_context('ITのコースについて教えて')

        self.assertEqual(context.courses, [self.course])
        course_block = next(b for b in context.blocks if b.startswith('【コース情報】'))
        self.assertIn('名前: **Web Development Co-op**', course_block)
        self.assertIn('場所: Vancouver, Canada', course_block)
        self.assertIn('- JavaScript: Frontend basics', course_block)

    def test_visa_block_and_empty_interview_analysis(self, get_interviews):
        context = context_service.build_context('学生ビザの要件は？')

        self.assertIn(self.visa, context.visa_types)
        self.assertTrue(any('タイプ: 学生ビザ' in b for b in context.blocks))
        self.assertIn('インタビュー記事は見つかりませんでした。', context.blocks[-1])

    def test_recommended_courses_for_profile_occupation(self, get_interviews):
        position = JobPosition.objects.create(title='Web Developer', industry='IT')
        CourseJobPosition.objects.create(course=self.course, job_position=position)
        user = make_member(future_occupation=str(position.pk))

        context = context_service.build_context('おすすめは？', user.profile)

        self.assertEqual(context.recommended, [self.course])
        self.assertTrue(any('希望職種「Web Developer」（IT業界）' in b for b in context.blocks))


class AIServiceTests(SimpleTestCase):
    def setUp(self):
        self.client_patch = patch.object(AIService, '_get_client')
        self.get_client = self.client_patch.start()
        self.addCleanup(self.client_patch.stop)
        self.openai_client = MagicMock()
        self.get_client.return_value = self.openai_client

    def test_completion_parameters(self):
        self.openai_client.chat.completions.create.return_value = fake_completion()
        history = [{'role': 'user', 'content': str(n)} for n in range(8)]

        response = AIService.generate_answer('質問', ['【ビザ情報】'], history)

        self.assertEqual(response.text, '回答です')
        self.assertEqual(response.tokens_used, 42)
        kwargs = self.openai_client.chat.completions.create.call_args.kwargs
        self.assertEqual(kwargs['model'], 'gpt-4o-mini')
        self.assertEqual(kwargs['temperature'], 0.7)
        self.assertEqual(kwargs['max_tokens'], 1000)
        self.assertEqual(kwargs['top_p'], 0.9)
        self.assertEqual(kwargs['frequency_penalty'], 0.5)
        self.assertEqual(kwargs['presence_penalty'], 0.5)
        messages = kwargs['messages']
        self.assertEqual(messages[0]['role'], 'system')
        self.assertEqual([m['content'] for m in messages[1:-1]], ['3', '4', '5', '6', '7'])
        self.assertIn('質問: 質問', messages[-1]['content'])
        self.assertIn('【ビザ情報】', messages[-1]['content'])

    def test_failure_returns_fallback(self):
        self.openai_client.chat.completions.create.side_effect = openai.OpenAIError('boom')

        response = AIService.generate_answer('質問', [])

        self.assertTrue(response.failed)
        self.assertEqual(response.text, FALLBACK_ANSWER)


@patch('concierge.context_service.get_interviews', return_value={'contents': []})
class ConciergeApiTests(CatalogueMixin, APITestCase):
    def setUp(self):
        self.make_catalogue()
        self.user = make_member()
        self.client.force_authenticate(self.user)
        self.client_patch = patch.object(AIService, '_get_client')
        get_client = self.client_patch.start()
        self.addCleanup(self.client_patch.stop)
        self.openai_client = MagicMock()
        self.openai_client.chat.completions.create.return_value = fake_completion()
        get_client.return_value = self.openai_client

    def test_ask_returns_answer_and_persists_turns(self, get_interviews):
        response = self.client.post(reverse('concierge:ask'), {'query': 'ITのコースは？'}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['answer'], '回答です')
        session = AIChatSession.objects.get(user=self.user)
        self.assertEqual(response.data['sessionId'], str(session.session_key))
        self.assertEqual(
            list(session.messages.values_list('sender', flat=True)),
            [AIMessage.SENDER_USER, AIMessage.SENDER_ASSISTANT],
        )
        self.assertEqual(response.data['sources']['courses'][0]['title'], 'Web Development Co-op')
        self.assertIn('コース', response.data['analysis']['keywords'])
        self.assertEqual(response.data['analysis']['total'], 0)

    def test_follow_up_sends_history(self, get_interviews):
        first = self.client.post(reverse('concierge:ask'), {'query': '最初の質問'}, format='json')
        self.client.post(
            reverse('concierge:ask'),
            {'query': '次の質問', 'sessionId': first.data['sessionId']},
            format='json',
        )

        messages = self.openai_client.chat.completions.create.call_args.kwargs['messages']
        self.assertEqual(messages[1], {'role': 'user', 'content': '最初の質問'})
        self.assertEqual(messages[2], {'role': 'assistant', 'content': '回答です'})
        self.assertEqual(AIChatSession.objects.count(), 1)

    def test_missing_query(self, get_interviews):
        response = self.client.post(reverse('concierge:ask'), {'query': ''}, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['detail'], '質問が指定されていません')

    def test_other_members_session_is_not_found(self, get_interviews):
        other = make_member('other@example.com')
        session = AIChatSession.objects.create(user=other)

        response = self.client.post(
            reverse('concierge:ask'),
            {'query': '質問', 'sessionId': str(session.session_key)},
            format='json',
        )

        self.assertEqual(response.status_code, 404)

    def test_onboarding_required(self, get_interviews):
        user = CustomUser.objects.create_user(email='new@example.com', password='StrongPass123')
        self.client.force_authenticate(user)

        response = self.client.post(reverse('concierge:ask'), {'query': '質問'}, format='json')

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data['redirect'], '/onboarding')

    def test_session_history_endpoints(self, get_interviews):
        self.client.post(reverse('concierge:ask'), {'query': '質問'}, format='json')
        session = AIChatSession.objects.get(user=self.user)

        listing = self.client.get(reverse('concierge:ai-session-list'))
        detail = self.client.get(reverse('concierge:ai-session-detail', args=[session.session_key]))

        self.assertEqual(len(listing.data), 1)
        self.assertEqual(len(detail.data['messages']), 2)
