import logging
import re
import time
from flask import current_app

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a professional fact-checker. Analyze claims objectively and provide "
    "evidence-based verdicts.\n\n"
    "VERDICT DEFINITIONS:\n"
    '- "true": Claim is accurate and supported by evidence\n'
    '- "false": Claim is factually incorrect or contradicted by evidence\n'
    '- "misleading": Claim contains truth but is presented in a misleading way\n'
    '- "needs_context": Cannot determine without additional context\n\n'
    "Be decisive and specific in your analysis."
)

USER_PROMPT = """ANALYZE THIS CLAIM AND PROVIDE A STRUCTURED FACT-CHECK RESPONSE:

CLAIM: "{text}"
CATEGORY: {category}
SOURCE: {source}

YOU MUST RESPOND IN THIS EXACT FORMAT:

VERDICT: [true/false/misleading/needs_context]
CONFIDENCE: [a number between 0 and 1, or high/medium/low]
EXPLANATION: [Detailed explanation of your analysis and reasoning]
SOURCES: [Comma-separated sources or evidence. If none, write "No specific sources found."]

Start your response with "VERDICT:" exactly as shown above."""

VERDICT_VALUES = ('true', 'false', 'misleading', 'needs_context', 'unverifiable')

CONFIDENCE_WORDS = {
    'high': 0.9,
    'medium': 0.6,
    'low': 0.3,
}

SECTION_RE = re.compile(r'^(verdict|confidence|explanation|sources)\s*:\s*(.*)$', re.IGNORECASE)


class AIGateway:
    """
    Adapter for the AI collaborator (any OpenAI-compatible endpoint).
    suggest() returns {verdict, confidence, explanation, sources} or None.
    """

    def __init__(self, app_config=None):
        config = app_config or current_app.config
        self.api_key = config.get('OPENAI_API_KEY')
        self.model = config.get('AI_MODEL', 'gpt-4.1-mini')
        self.base_url = config.get('AI_BASE_URL')
        self.max_tokens = config.get('AI_MAX_TOKENS', 1200)

    @property
    def available(self):
        return bool(self.api_key)

    def suggest(self, text, category='other', source_link=None):
        if not self.available:
            logger.warning("AI gateway not configured (OPENAI_API_KEY missing); no suggestion")
            return None

        messages = [
            {'role': 'system', 'content': SYSTEM_PROMPT},
            {'role': 'user', 'content': USER_PROMPT.format(
                text=text,
                category=category,
                source=source_link or 'Not provided',
            )},
        ]

        try:
            content = self._call(messages)
        except Exception as e:
            # The collaborator's contract is "suggestion or nothing".
            logger.error(f"AI suggestion call failed: {e}", exc_info=True)
            return None

        suggestion = parse_structured_response(content)
        if suggestion is None:
            logger.warning("AI response had no usable verdict")
        else:
            suggestion['model_name'] = self.model
        return suggestion

    def _call(self, messages):
        import openai
        kwargs = {'api_key': self.api_key}
        if self.base_url:
            kwargs['base_url'] = self.base_url
        client = openai.OpenAI(**kwargs)

        start_ms = int(time.time() * 1000)
        response = client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=0.3,
            max_completion_tokens=self.max_tokens,
        )
        latency_ms = int(time.time() * 1000) - start_ms
        usage = response.usage
        logger.info(
            f"AI call: fact_check | {self.model} | "
            f"{usage.total_tokens if usage else '?'} tokens | {latency_ms}ms"
        )
        return response.choices[0].message.content or ''


def _parse_confidence(raw):
    raw = (raw or '').strip().lower()
    for word, value in CONFIDENCE_WORDS.items():
        if raw.startswith(word):
            return value
    match = re.search(r'\d+(?:\.\d+)?', raw)
    if not match:
        return None
    value = float(match.group(0))
    if '%' in raw or value > 1:
        value = value / 100.0
    return min(max(value, 0.0), 1.0)


def _parse_sources(raw):
    if not raw or 'no specific sources' in raw.lower():
        return []
    parts = re.split(r',|;|\s[•*-]\s|^\s*[•*-]\s|\d+\.\s', raw)
    return [p.strip() for p in parts if p and p.strip()]


def parse_structured_response(text):
    """
    Parse a VERDICT/CONFIDENCE/EXPLANATION/SOURCES block.
    Returns None when no recognizable verdict is present.
    """
    sections = {'verdict': '', 'confidence': '', 'explanation': '', 'sources': ''}
    current = None

    for line in (text or '').splitlines():
        line = line.strip()
        if not line:
            continue
        match = SECTION_RE.match(line)
        if match:
            current = match.group(1).lower()
            sections[current] = match.group(2).strip()
        elif current in ('explanation', 'sources'):
            joiner = ' ' if current == 'explanation' else ', '
            sections[current] = f"{sections[current]}{joiner}{line}" if sections[current] else line

    normalized = sections['verdict'].lower().strip('[]. ').replace(' ', '_')
    verdict = next((v for v in VERDICT_VALUES if normalized.startswith(v)), None)
    if verdict is None:
        return None

    confidence = _parse_confidence(sections['confidence'])
    return {
        'verdict': verdict,
        'confidence': confidence if confidence is not None else CONFIDENCE_WORDS['medium'],
        'explanation': sections['explanation'] or 'The AI analyzed this claim but gave no explanation.',
        'sources': _parse_sources(sections['sources']),
    }
