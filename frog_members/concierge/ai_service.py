"""
AIService: answer generation for the AI concierge.

The prompt is the system instructions, the last few turns of the
conversation and the question together with the context blocks built by
context_service. Any OpenAI failure returns a fixed apology instead of
raising.
"""
import logging
import os
from dataclasses import dataclass
from typing import List, Optional

import openai
from django.conf import settings
from openai import OpenAI

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """
あなたはFrog Membersのカナダビザ・留学・海外就職に関するAIアシスタントです。
ユーザーの質問に対して、提供されたコンテキスト情報を元に回答してください。

以下のガイドラインに従ってください：
1. 提供されたコンテキスト情報のみを使用して回答してください。
2. コンテキスト情報に含まれていない場合は、「その情報は持ち合わせていません」と正直に伝えてください。
3. 回答は日本語で、丁寧かつ親しみやすい口調で行ってください。
4. 回答は簡潔に、かつ具体的な情報を含めるようにしてください。

情報の種類に応じた回答方法：
- ビザ情報: ビザの種類、要件、申請プロセスなどの基本情報を提供してください。
- コース情報: 学校名、コース名、期間、学費、カテゴリなどの基本情報を提供してください。
- コース科目情報: ユーザーが特定のコースの詳細や科目内容について質問した場合のみ、科目情報を提供してください。
- インタビュー記事: 就職事例や体験談として、関連するインタビュー記事の情報を提供してください。

回答の最後には、必要に応じて以下のいずれかを追加してください：
- ビザに関する質問の場合：「より詳しいビザ情報は、カナダ政府の公式サイトでご確認ください。」
- コースに関する質問の場合：「コースの詳細や最新情報は、各学校の公式サイトでご確認ください。」
- 就職に関する質問の場合：「就職活動のサポートが必要な場合は、Frogのキャリアアドバイザーにご相談ください。」
""".strip()

FALLBACK_ANSWER = '申し訳ありませんが、回答の生成中にエラーが発生しました。しばらく経ってからもう一度お試しください。'
EMPTY_ANSWER = '申し訳ありませんが、回答を生成できませんでした。'


@dataclass
class AIResponse:
    """Answer returned to the concierge view"""

    text: str
    model: str = ''
    tokens_used: int = 0
    failed: bool = False


class AIService:
    OPENAI_MODEL = 'gpt-4o-mini'
    TIMEOUT_SECONDS = 60
    MAX_TOKENS = 1000
    TEMPERATURE = 0.7
    TOP_P = 0.9
    FREQUENCY_PENALTY = 0.5
    PRESENCE_PENALTY = 0.5
    HISTORY_MESSAGES = 5

    _client: Optional[OpenAI] = None

    @classmethod
    def _get_client(cls) -> OpenAI:
        if cls._client is None:
            api_key = getattr(settings, 'OPENAI_API_KEY', None) or os.environ.get('OPENAI_API_KEY', '')
            cls._client = OpenAI(api_key=api_key, timeout=cls.TIMEOUT_SECONDS)
        return cls._client

    @classmethod
    def build_messages(cls, query: str, context_blocks: List[str], history: List[dict]) -> List[dict]:
        """
        Chat messages for the completion call.

        history items are {'role': 'user'|'assistant', 'content': str};
        only the last HISTORY_MESSAGES are sent.
        """
        context_text = '\n\n'.join(context_blocks)
        return [
            {'role': 'system', 'content': SYSTEM_PROMPT},
            *history[-cls.HISTORY_MESSAGES:],
            {'role': 'user', 'content': f"質問: {query}\n\nコンテキスト情報:\n{context_text}"},
        ]

    @classmethod
    def generate_answer(cls, query: str, context_blocks: List[str], history: Optional[List[dict]] = None) -> AIResponse:
        messages = cls.build_messages(query, context_blocks, history or [])
        model = getattr(settings, 'OPENAI_MODEL', None) or cls.OPENAI_MODEL

        try:
            completion = cls._get_client().chat.completions.create(
                model=model,
                messages=messages,
                temperature=cls.TEMPERATURE,
                max_tokens=cls.MAX_TOKENS,
                top_p=cls.TOP_P,
                frequency_penalty=cls.FREQUENCY_PENALTY,
                presence_penalty=cls.PRESENCE_PENALTY,
            )
        except openai.OpenAIError as e:
            logger.error("OpenAI completion failed: %s", e)
            return AIResponse(text=FALLBACK_ANSWER, model=model, failed=True)

        choice = completion.choices[0] if completion.choices else None
        text = (choice.message.content if choice and choice.message else None) or EMPTY_ANSWER
        usage = getattr(completion, 'usage', None)
        return AIResponse(
            text=text,
            model=getattr(completion, 'model', model) or model,
            tokens_used=getattr(usage, 'total_tokens', 0) or 0,
        )
