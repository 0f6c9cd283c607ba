from types import SimpleNamespace
from unittest.mock import MagicMock, patch
from factdesk.integrations.ai_gateway import AIGateway, _parse_confidence, parse_structured_response


def fake_completion(content):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(total_tokens=321),
    )


class TestParseStructuredResponse:
    def test_full_response(self):
        parsed = parse_structured_response(
            "VERDICT: false\n"
            "CONFIDENCE: 0.85\n"
            "EXPLANATION: The ministry denied this.\n"
            "It was a satirical post.\n"
            "SOURCES: https://health.example/statement, https://news.example/satire"
        )
        assert parsed == {
            'verdict': 'false',
            'confidence': 0.85,
            'explanation': 'The ministry denied this. It was a satirical post.',
            'sources': ['https://health.example/statement', 'https://news.example/satire'],
        }

    def test_bracketed_and_spaced_verdict(self):
        parsed = parse_structured_response('VERDICT: [Needs Context]\nEXPLANATION: Unclear.')
        assert parsed['verdict'] == 'needs_context'
        assert parsed['confidence'] == 0.6
        assert parsed['sources'] == []

    def test_no_verdict(self):
        assert parse_structured_response('I cannot help with that.') is None
        assert parse_structured_response('VERDICT: probably\nEXPLANATION: hmm') is None
        assert parse_structured_response(None) is None

    def test_no_sources_phrase(self):
        parsed = parse_structured_response('VERDICT: true\nSOURCES: No specific sources found.')
        assert parsed['sources'] == []


class TestParseConfidence:
    def test_words_numbers_percentages(self):
        assert _parse_confidence('High') == 0.9
        assert _parse_confidence('low, little evidence') == 0.3
        assert _parse_confidence('0.42') == 0.42
        assert _parse_confidence('75%') == 0.75
        assert _parse_confidence('80') == 0.8
        assert _parse_confidence('') is None


class TestAIGateway:
    def test_unavailable_without_key(self, app):
        gateway = AIGateway({'OPENAI_API_KEY': None})
        assert gateway.available is False
        assert gateway.suggest('A claim') is None

    def test_suggest_parses_completion(self, app):
        client = MagicMock()
        client.chat.completions.create.return_value = fake_completion(
            'VERDICT: misleading\nCONFIDENCE: medium\nEXPLANATION: Old photo.\nSOURCES: https://archive.example/1'
        )
        with patch('openai.OpenAI', return_value=client) as openai_cls:
            result = AIGateway({'OPENAI_API_KEY': 'k', 'AI_MODEL': 'gpt-4.1-mini'}).suggest(
                'This flood photo is from today', 'environment',
            )

        openai_cls.assert_called_once_with(api_key='k')
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs['model'] == 'gpt-4.1-mini'
        assert 'This flood photo is from today' in kwargs['messages'][1]['content']
        assert result['verdict'] == 'misleading'
        assert result['confidence'] == 0.6
        assert result['model_name'] == 'gpt-4.1-mini'

    def test_call_failure_means_no_suggestion(self, app):
        client = MagicMock()
        client.chat.completions.create.side_effect = RuntimeError('rate limited')
        with patch('openai.OpenAI', return_value=client):
            assert AIGateway({'OPENAI_API_KEY': 'k'}).suggest('A claim') is None

    def test_base_url_passed_through(self, app):
        client = MagicMock()
        client.chat.completions.create.return_value = fake_completion('VERDICT: true')
        with patch('openai.OpenAI', return_value=client) as openai_cls:
            AIGateway({'OPENAI_API_KEY': 'k', 'AI_BASE_URL': 'http://llm.local/v1'}).suggest('A claim')
        openai_cls.assert_called_once_with(api_key='k', base_url='http://llm.local/v1')
