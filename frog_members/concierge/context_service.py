"""
Context assembly for the AI concierge.

Collects visa types, courses, recommended courses and CMS interviews
relevant to a question and renders them as Japanese text blocks for the
completion prompt.
"""
import logging
import re
from dataclasses import dataclass, field
from functools import reduce
from operator import or_
from typing import List

from django.db.models import Q

from cms.client import CMSError
from cms.content import get_interviews
from courses.models import Course, JobPosition
from courses.school_service import recommend_courses
from visa.services import search_visa_types

logger = logging.getLogger(__name__)

IMPORTANT_KEYWORDS = (
    'エンジニア', 'プログラマー', 'デベロッパー', 'デザイナー', '開発者', 'IT', 'テック', 'テクノロジー',
    'カナダ', 'バンクーバー', 'トロント', 'カルガリー', 'モントリオール', 'オタワ',
    '就職', '仕事', 'ジョブ', '転職', 'キャリア', '働く', '勤務',
    'ビザ', 'ワーホリ', 'ワーキングホリデー', '永住権', 'PR', '学生ビザ',
    'Frog', 'フロッグ', 'インタビュー', '体験談',
    'コース', 'プログラム', 'カリキュラム', '学校', 'カレッジ', '大学', '留学',
)

COURSE_KEYWORDS = (
    'コース', 'course', 'プログラム', 'program', 'カリキュラム', 'curriculum',
    '学校', 'school', '大学', 'university', 'カレッジ', 'college',
    '留学', 'study', '勉強', 'learn', '学ぶ', '授業', 'class',
    'IT', 'Web', 'プログラミング', 'programming', 'デザイン', 'design',
    'ビジネス', 'business', '英語', 'English', '語学', 'language',
    'データサイエンス', 'data science', 'AI', '人工知能',
    'マーケティング', 'marketing', '会計', 'accounting', '金融', 'finance',
    'ホスピタリティ', 'hospitality', '観光', 'tourism', 'ホテル', 'hotel',
    '料理', 'cooking', 'culinary', '美容', 'beauty', 'ファッション', 'fashion',
    '医療', 'medical', '看護', 'nursing', 'ヘルスケア', 'healthcare',
    '建築', 'architecture', '工学', 'engineering',
)

DETAIL_KEYWORDS = (
    '詳細', '詳しく', '科目', 'カリキュラム', '内容', 'subject', 'curriculum', 'detail',
    '何を学ぶ', '何を勉強', 'どんな内容', 'どんな科目', '授業内容', '授業科目',
)

GOAL_LABELS = {
    'overseas_employment': '海外就職',
    'permanent_residency': '永住権取得',
    'study_abroad': '留学',
    'working_holiday': 'ワーキングホリデー',
    'other': 'その他',
}

MAX_GENERAL_KEYWORDS = 3
MAX_INTERVIEWS = 30
COURSE_LIMIT = 20
INTERVIEW_QUERY_LIMIT = 100
INTERVIEW_KEYWORD_LIMIT = 50
INTERVIEW_EXCERPT_LENGTH = 500
NOT_AVAILABLE = '情報なし'

_CITIES = 'カナダ|バンクーバー|トロント|カルガリー|モントリオール'
_WORK = '就職|仕事|ジョブ|エンジニア|働く|勤務|オフィス'
CANADA_JOB_PATTERN = re.compile(rf'({_CITIES}).*?({_WORK})|({_WORK}).*?({_CITIES})', re.IGNORECASE | re.DOTALL)
TAG_PATTERN = re.compile(r'<[^>]*>')


@dataclass
class ConciergeContext:
    keywords: List[str]
    blocks: List[str] = field(default_factory=list)
    visa_types: list = field(default_factory=list)
    courses: list = field(default_factory=list)
    recommended: list = field(default_factory=list)
    interviews: List[dict] = field(default_factory=list)
    canada_jobs: int = 0


def extract_keywords(query):
    """
    Domain keywords found in the question, then up to three other words of
    three or more characters. Frog, ビザ and コース are added when the
    question mentions them in any spelling.
    """
    lowered = query.lower()
    keywords = [k for k in IMPORTANT_KEYWORDS if k.lower() in lowered]
    known = {k.lower() for k in keywords}
    general = [w for w in lowered.split() if len(w) >= 3 and w not in known]
    keywords.extend(general[:MAX_GENERAL_KEYWORDS])

    if 'frog' in lowered and 'Frog' not in keywords:
        keywords.append('Frog')
    if ('ビザ' in lowered or 'visa' in lowered) and 'ビザ' not in keywords:
        keywords.append('ビザ')
    if any(term in lowered for term in ('コース', 'course', 'プログラム', 'カリキュラム')) and 'コース' not in keywords:
        keywords.append('コース')
    return keywords


def requires_detailed_info(query):
    lowered = query.lower()
    return any(keyword.lower() in lowered for keyword in DETAIL_KEYWORDS)


def search_courses(query):
    """Courses whose name, description or category mention a course keyword"""
    lowered = query.lower()
    terms = [k for k in COURSE_KEYWORDS if k.lower() in lowered] or ['コース']
    conditions = reduce(or_, (
        Q(name__icontains=term) | Q(description__icontains=term) | Q(category__icontains=term)
        for term in terms
    ))
    base = Course.objects.select_related('school', 'school__goal_location').prefetch_related('subjects')
    matches = list(base.filter(conditions).distinct()[:COURSE_LIMIT])
    return matches or list(base[:COURSE_LIMIT])


def extract_interview_info(content):
    plain_text = TAG_PATTERN.sub('', content or '')
    return bool(CANADA_JOB_PATTERN.search(plain_text)), plain_text[:1000]


def _interview_date(interview):
    return interview.get('publishedAt') or interview.get('revisedAt') or interview.get('createdAt') or ''


def _interview_contents(q, limit):
    try:
        return get_interviews(limit=limit, q=q).get('contents') or []
    except CMSError as e:
        logger.warning("Interview search for %r failed: %s", q, e)
        return []


def search_interviews(query, keywords):
    """
    Interviews matching the whole question or any keyword, deduplicated by
    id, newest first, at most MAX_INTERVIEWS.
    """
    found = {}
    results = _interview_contents(query, INTERVIEW_QUERY_LIMIT)
    for keyword in keywords:
        results += _interview_contents(keyword, INTERVIEW_KEYWORD_LIMIT)
    for interview in results:
        if interview.get('id'):
            found.setdefault(interview['id'], interview)
    # ISO 8601 timestamps sort lexically
    ordered = sorted(found.values(), key=_interview_date, reverse=True)
    return ordered[:MAX_INTERVIEWS]


def _location_text(course):
    location = course.school.goal_location if course.school_id else None
    if location is None:
        return NOT_AVAILABLE
    return f"{location.city or NOT_AVAILABLE}, {location.country or NOT_AVAILABLE}"


def format_visa_block(visa):
    return (
        "【ビザ情報】\n"
        f"タイプ: {visa.name}\n"
        f"説明: {visa.description}\n"
        f"要件: {visa.requirements or NOT_AVAILABLE}\n"
        f"申請プロセス: {visa.process or NOT_AVAILABLE}\n"
        f"公式URL: {visa.official_url or NOT_AVAILABLE}"
    )


def format_course_block(course, with_subjects=True):
    lines = [
        "【コース情報】",
        f"名前: **{course.name}**",
        f"カテゴリ: {course.category or NOT_AVAILABLE}",
        f"説明: {course.description or NOT_AVAILABLE}",
        f"期間: {course.total_weeks or 0}週間（授業: {course.lecture_weeks or 0}週間、就労: {course.work_permit_weeks or 0}週間）",
        f"学費: {course.tuition_and_others or NOT_AVAILABLE}",
        f"開始日: {course.start_date or NOT_AVAILABLE}",
        f"学校: {course.school.name if course.school_id else NOT_AVAILABLE}",
        f"場所: {_location_text(course)}",
    ]
    if with_subjects:
        subjects = [f"- {s.title}: {s.description or 'No description'}" for s in course.subjects.all()]
        lines.append("【科目情報】")
        lines.append("\n".join(subjects) if subjects else "科目情報なし")
    return "\n".join(lines)


def job_position_for(profile):
    occupation = (profile.future_occupation or '').strip()
    if not occupation.isdigit():
        return None
    return JobPosition.objects.filter(pk=int(occupation)).first()


def format_recommended_block(profile, courses):
    goal = GOAL_LABELS.get(profile.migration_goal, profile.migration_goal or NOT_AVAILABLE)
    position = job_position_for(profile)
    target = f"あなたの目標「{goal}」"
    if position is not None:
        industry = f"（{position.industry}業界）" if position.industry else ''
        target += f"と希望職種「{position.title}」{industry}"

    lines = [f"【{target}に基づく推奨コース】", "以下のコースはあなたの目標に合わせて推奨されています:"]
    for index, course in enumerate(courses, start=1):
        lines.append(f"{index}. **{course.name}**（{course.school.name}）")
        lines.append(f"   場所: {_location_text(course)}")
        lines.append(f"   期間: {course.total_weeks or NOT_AVAILABLE}週間")
        lines.append(f"   学費: {course.tuition_and_others or NOT_AVAILABLE}")
    return "\n".join(lines)


def format_interview_block(interview, is_canada_job, plain_text):
    return (
        "【インタビュー記事】\n"
        f"タイトル: {interview.get('title', '')}\n"
        f"URL: /interviews/{interview.get('slug') or interview.get('id')}\n"
        f"公開日: {_interview_date(interview)[:10]}\n"
        f"カナダ就職: {'はい' if is_canada_job else 'いいえ'}\n"
        f"内容: {plain_text[:INTERVIEW_EXCERPT_LENGTH]}..."
    )


def build_context(query, profile=None):
    """Everything the concierge knows about a question, ready for the prompt."""
    keywords = extract_keywords(query)
    context = ConciergeContext(keywords=keywords)

    context.visa_types = search_visa_types(query)
    context.blocks.extend(format_visa_block(visa) for visa in context.visa_types)

    context.courses = search_courses(query)
    with_subjects = requires_detailed_info(query) or 'コース' in keywords
    context.blocks.extend(format_course_block(course, with_subjects) for course in context.courses)

    if profile is not None and (profile.migration_goal or profile.future_occupation):
        context.recommended = recommend_courses(profile)
        if context.recommended:
            context.blocks.append(format_recommended_block(profile, context.recommended))

    for interview in search_interviews(query, keywords):
        is_canada_job, plain_text = extract_interview_info(interview.get('contents', ''))
        if is_canada_job:
            context.canada_jobs += 1
        context.interviews.append({
            'id': interview.get('id'),
            'title': interview.get('title', ''),
            'slug': interview.get('slug') or interview.get('id'),
            'publishedAt': _interview_date(interview),
            'isCanadaJob': is_canada_job,
        })
        context.blocks.append(format_interview_block(interview, is_canada_job, plain_text))

    if context.interviews:
        context.blocks.append(
            "【インタビュー記事の分析結果】\n"
            f"総記事数: {len(context.interviews)}件\n"
            f"カナダ就職の記事: {context.canada_jobs}件\n"
            "※記事は公開日の新しい順に参照しています\n"
            f"※最新の{MAX_INTERVIEWS}件のみを表示しています"
        )
    else:
        context.blocks.append("【インタビュー記事の分析結果】\nインタビュー記事は見つかりませんでした。")

    return context
