import json
from unittest.mock import MagicMock

import pytest

from flashcards_api.services.ai_generator import DEFAULT_PROMPT, generate, parse_candidates
from flashcards_api.utils.errors import UpstreamGenerationError, ValidationError


def _completion(content):
    completion = MagicMock()
    completion.choices = [MagicMock()]
    completion.choices[0].message.content = content
    completion.usage.prompt_tokens = 100
    completion.usage.completion_tokens = 50
    return completion


def test_parse_filters_invalid_items_and_fills_prompt():
    content = json.dumps({'flashcards': [
        {'front': ' What is ATP? ', 'back': ' Energy currency ', 'prompt': ' tests ATP '},
        {'front': 'No back'},
        {'front': 'Q', 'back': 'A'},
        'garbage',
    ]})
    cards = parse_candidates(content)
    assert [(c.front, c.back, c.prompt) for c in cards] == [
        ('What is ATP?', 'Energy currency', 'tests ATP'),
        ('Q', 'A', DEFAULT_PROMPT),
    ]


def test_parse_clips_overlong_sides():
    content = json.dumps({'flashcards': [{'front': 'q' * 300, 'back': 'a' * 900}]})
    card = parse_candidates(content)[0]
    assert len(card.front) == 200
    assert len(card.back) == 500


@pytest.mark.parametrize('content', [
    'not json',
    json.dumps({'cards': []}),
    json.dumps({'flashcards': []}),
    json.dumps({'flashcards': [{'front': '', 'back': ''}]}),
    json.dumps(['flashcards']),
])
def test_parse_rejects_malformed_payloads(content):
    with pytest.raises(UpstreamGenerationError):
        parse_candidates(content)


def test_generate_calls_groq_in_json_mode(mock_groq_client, allow_test_models):
    mock_groq_client.chat.completions.create.return_value = _completion(
        json.dumps({'flashcards': [{'front': 'Q', 'back': 'A', 'prompt': 'p'}]})
    )
    result = generate('some text', 'm1')

    assert [c.front for c in result.candidates] == ['Q']
    assert result.duration_ms >= 0
    kwargs = mock_groq_client.chat.completions.create.call_args.kwargs
    assert kwargs['model'] == 'm1'
    assert kwargs['response_format'] == {'type': 'json_object'}
    assert 'some text' in kwargs['messages'][1]['content']


def test_generate_wraps_sdk_failures(mock_groq_client, allow_test_models):
    mock_groq_client.chat.completions.create.side_effect = RuntimeError('429 rate limited')
    with pytest.raises(UpstreamGenerationError) as exc:
        generate('some text', 'm1')
    assert '429' in exc.value.message
    # Sem retry interno
    assert mock_groq_client.chat.completions.create.call_count == 1


def test_generate_empty_content_is_upstream_error(mock_groq_client, allow_test_models):
    mock_groq_client.chat.completions.create.return_value = _completion(None)
    with pytest.raises(UpstreamGenerationError):
        generate('some text', 'm1')


def test_generate_rejects_unknown_model(mock_groq_client, allow_test_models):
    with pytest.raises(ValidationError):
        generate('some text', 'gpt-unknown')
    mock_groq_client.chat.completions.create.assert_not_called()
