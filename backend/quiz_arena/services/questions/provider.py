import json
import logging
import random
from typing import Any, List, Optional

from openai import OpenAI

from quiz_arena.models import QuizQuestion
from .fallback import FALLBACK_QUESTIONS

logger = logging.getLogger(__name__)

PLACEHOLDER_KEYS = {'', 'YOUR_OPENROUTER_AI_KEY_HERE'}
OPTIONS_PER_QUESTION = 4

SYSTEM_PROMPT = (
    'Ты эксперт по созданию вопросов для викторин. Твоя единственная задача: генерировать вопросы '
    'для викторины в очень специфическом формате JSON. НЕ включай никакой другой текст, объяснения '
    'или форматирование за пределами массива JSON. Массив JSON должен содержать ровно {count} '
    'уникальных и неповторяющихся вопросов. Каждый объект вопроса должен иметь поля "question" '
    '(строка), "options" (массив из 4 строк) и "correct_answer" (строка, точно соответствующая '
    'одному из вариантов). Все вопросы и варианты ответов должны быть на русском языке. '
    'Пример: [{{"question": "...", "options": ["...", "...", "...", "..."], "correct_answer": "..."}}]'
)

USER_PROMPT = (
    'Сгенерируй {count} разнообразных, оригинальных и уникальных вопросов для викторины на различные '
    'темы, такие как: {topic}. Избегай повторений. Смешивай легкие, средние и сложные вопросы. '
    'Каждый вопрос должен иметь 4 варианта ответа и один правильный ответ, который является частью '
    'вариантов. Выводи только JSON массив вопросов. Игнорируй следующий случайный идентификатор: {nonce}.'
)


def extract_json_array(text: str) -> Optional[str]:
    """Cut the outermost ``[...]`` out of a model reply.

    Replies often wrap the payload in prose or a ```json fence.
    """
    if not text:
        return None
    start = text.find('[')
    end = text.rfind(']')
    if start == -1 or end <= start:
        return None
    return text[start:end + 1]


def build_question(item: Any) -> Optional[QuizQuestion]:
    if not isinstance(item, dict):
        return None
    question = item.get('question')
    options = item.get('options')
    correct = item.get('correct_answer')
    if not isinstance(question, str) or not question.strip():
        return None
    if not isinstance(options, list) or len(options) != OPTIONS_PER_QUESTION:
        return None
    if not all(isinstance(o, str) and o for o in options) or len(set(options)) != OPTIONS_PER_QUESTION:
        return None
    if not isinstance(correct, str) or correct not in options:
        return None
    return QuizQuestion(question=question.strip(), options=tuple(options), correct_answer=correct)


def parse_questions(raw: str, limit: int) -> List[QuizQuestion]:
    """Parse a model reply into at most ``limit`` valid questions.

    Raises ValueError when no JSON array can be recovered.
    """
    payload = extract_json_array(raw)
    if payload is None:
        raise ValueError('no JSON array in response')
    data = json.loads(payload)
    if not isinstance(data, list):
        raise ValueError('response is not a JSON array')

    questions = []
    for item in data:
        question = build_question(item)
        if question is None:
            logger.warning(f"[questions] dropping malformed item: {str(item)[:200]}")
            continue
        questions.append(question)

    if len(questions) > limit:
        logger.warning(f"[questions] got {len(questions)} questions, truncating to {limit}")
        questions = questions[:limit]
    elif len(questions) < limit:
        logger.warning(f"[questions] got only {len(questions)} questions, expected {limit}; using what's available")
    return questions


class QuestionProvider:
    """Generates quiz questions through OpenRouter's OpenAI-compatible API.

    ``fetch`` never raises: any failure yields the fallback set.
    """

    def __init__(self, api_key=None, model='deepseek/deepseek-chat', base_url='https://openrouter.ai/api/v1',
                 count=50, timeout=120.0, client=None):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.count = count
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_config(cls, config):
        return cls(
            api_key=config.get('OPENROUTER_API_KEY'),
            model=config.get('OPENROUTER_MODEL', 'deepseek/deepseek-chat'),
            base_url=config.get('OPENROUTER_BASE_URL', 'https://openrouter.ai/api/v1'),
            count=int(config.get('QUESTION_COUNT', 50)),
            timeout=float(config.get('OPENROUTER_TIMEOUT_SEC', 120)),
        )

    @property
    def configured(self) -> bool:
        return self._client is not None or (self.api_key or '').strip() not in PLACEHOLDER_KEYS

    @property
    def client(self):
        if self._client is None:
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                default_headers={'X-Title': 'Synapse Quiz Arena'},
            )
        return self._client

    def fallback(self) -> List[QuizQuestion]:
        return list(FALLBACK_QUESTIONS[:self.count])

    def fetch(self, topic: str) -> List[QuizQuestion]:
        if not self.configured:
            logger.warning("[questions] OpenRouter API key is not set, using fallback questions")
            return self.fallback()
        try:
            raw = self._complete(topic)
            logger.info(f"[questions] raw response length={len(raw or '')}")
            questions = parse_questions(raw, self.count)
        except Exception as exc:
            logger.error(f"[questions] generation failed, using fallback questions: {exc}")
            return self.fallback()
        if not questions:
            logger.error("[questions] no valid questions in response, using fallback questions")
            return self.fallback()
        logger.info(f"[questions] generated {len(questions)} questions")
        return questions

    def _complete(self, topic: str) -> str:
        resp = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {'role': 'system', 'content': SYSTEM_PROMPT.format(count=self.count)},
                {
                    'role': 'user',
                    'content': USER_PROMPT.format(count=self.count, topic=topic, nonce=random.random()),
                },
            ],
            temperature=0.9,
            max_tokens=8000,
        )
        return resp.choices[0].message.content or ''
