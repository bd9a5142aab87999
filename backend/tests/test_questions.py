import json
from types import SimpleNamespace

import pytest

from quiz_arena.services.questions import FALLBACK_QUESTIONS, QuestionProvider, extract_json_array, parse_questions


def _item(i, **overrides):
    item = {
        'question': f'Вопрос {i}?',
        'options': [f'A{i}', f'B{i}', f'C{i}', f'D{i}'],
        'correct_answer': f'C{i}',
    }
    item.update(overrides)
    return item


class FakeCompletions:
    def __init__(self, content=None, exc=None):
        self.content = content
        self.exc = exc
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.exc:
            raise self.exc
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(content=None, exc=None):
    completions = FakeCompletions(content, exc)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def test_extract_json_array_from_prose_and_fence():
    wrapped = 'Вот вопросы:\n```json\n[{"question": "x"}]\n```\nУдачи!'
    assert extract_json_array(wrapped) == '[{"question": "x"}]'
    assert extract_json_array('no array here') is None
    assert extract_json_array('') is None
    assert extract_json_array('] backwards [') is None


def test_parse_questions_drops_malformed_items():
    items = [
        _item(1),
        _item(2, options=['a', 'b', 'c']),
        _item(3, correct_answer='нет такого'),
        _item(4, options=['a', 'a', 'b', 'c'], correct_answer='a'),
        _item(5, question='   '),
        'not an object',
        _item(6),
    ]
    questions = parse_questions(json.dumps(items, ensure_ascii=False), limit=50)
    assert [q.question for q in questions] == ['Вопрос 1?', 'Вопрос 6?']
    assert questions[0].options == ('A1', 'B1', 'C1', 'D1')
    assert questions[0].correct_answer == 'C1'


def test_parse_questions_truncates_to_limit():
    raw = json.dumps([_item(i) for i in range(60)])
    assert len(parse_questions(raw, limit=50)) == 50


def test_parse_questions_keeps_short_sets():
    raw = json.dumps([_item(i) for i in range(7)])
    assert len(parse_questions(raw, limit=50)) == 7


def test_parse_questions_rejects_non_array():
    with pytest.raises(ValueError):
        parse_questions('{"question": "x"}', limit=50)


def test_fetch_without_key_uses_fallback():
    provider = QuestionProvider(api_key=None)
    assert provider.fetch('тема') == list(FALLBACK_QUESTIONS)


def test_fetch_with_placeholder_key_uses_fallback():
    provider = QuestionProvider(api_key='YOUR_OPENROUTER_AI_KEY_HERE')
    assert not provider.configured
    assert provider.fetch('тема') == list(FALLBACK_QUESTIONS)


def test_fetch_parses_wrapped_response():
    content = 'Конечно!\n```json\n' + json.dumps([_item(i) for i in range(3)], ensure_ascii=False) + '\n```'
    client = fake_client(content=content)
    provider = QuestionProvider(api_key='key', count=50, client=client)
    questions = provider.fetch('история')
    assert len(questions) == 3
    call = client.chat.completions.calls[0]
    assert call['model'] == 'deepseek/deepseek-chat'
    assert 'история' in call['messages'][1]['content']


def test_fetch_prompt_nonce_changes_between_calls():
    client = fake_client(content=json.dumps([_item(1)]))
    provider = QuestionProvider(api_key='key', client=client)
    provider.fetch('тема')
    provider.fetch('тема')
    first, second = (c['messages'][1]['content'] for c in client.chat.completions.calls)
    assert first != second


def test_fetch_upstream_error_uses_fallback():
    provider = QuestionProvider(api_key='key', client=fake_client(exc=RuntimeError('network down')))
    assert provider.fetch('тема') == list(FALLBACK_QUESTIONS)


def test_fetch_invalid_payload_uses_fallback():
    provider = QuestionProvider(api_key='key', client=fake_client(content='Извините, не могу.'))
    assert provider.fetch('тема') == list(FALLBACK_QUESTIONS)


def test_fetch_no_valid_items_uses_fallback():
    content = json.dumps([_item(1, correct_answer='???')])
    provider = QuestionProvider(api_key='key', client=fake_client(content=content))
    assert provider.fetch('тема') == list(FALLBACK_QUESTIONS)


def test_fallback_questions_are_well_formed():
    for q in FALLBACK_QUESTIONS:
        assert q.question
        assert len(q.options) == 4
        assert len(set(q.options)) == 4
        assert q.options.count(q.correct_answer) == 1


def test_from_config_reads_settings():
    provider = QuestionProvider.from_config({
        'OPENROUTER_API_KEY': 'abc',
        'OPENROUTER_MODEL': 'some/model',
        'QUESTION_COUNT': '10',
    })
    assert provider.api_key == 'abc'
    assert provider.model == 'some/model'
    assert provider.count == 10
    assert provider.configured
