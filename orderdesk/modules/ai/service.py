"""
AI Message Service
==================

Marketing message suggestions and tone variants from an LLM provider
(OpenAI chat completions or Google Gemini), called over HTTPS with requests.
When no provider is configured, or the provider fails, deterministic
templates are used instead so callers always get a message back.

Configuration (set in Flask app.config):
    AI_PROVIDER: 'openai' (default) or 'gemini'; tried first
    OPENAI_API_KEY / OPENAI_MODEL / OPENAI_BASE_URL
    GEMINI_API_KEY / GEMINI_MODEL
    AI_TIMEOUT: request timeout in seconds (default: 30)
"""

import re
import json
import zlib
import logging
from collections import namedtuple

import requests

from .prompts import (
    SUGGESTION_SYSTEM_PROMPT, VARIANTS_SYSTEM_PROMPT,
    build_suggestion_prompt, build_variants_prompt
)

logger = logging.getLogger(__name__)

GEMINI_API_BASE = 'https://generativelanguage.googleapis.com/v1beta'

SUGGESTION_MAX_TOKENS = 300
VARIANTS_MAX_TOKENS = 600
TEMPERATURE = 0.7

Suggestion = namedtuple('Suggestion', ['text', 'source'])
VariantResult = namedtuple('VariantResult', ['variants', 'source'])

MESSAGE_TEMPLATES = {
    'email': [
        "Hi {firstName}, we noticed you might be interested in our latest offers. "
        "Check them out today and save 15% on your next purchase!",
        "Dear {firstName}, it's been a while! We've got some exciting new products we think "
        "you'll love. Visit our website to learn more.",
        "Hello {firstName}! As a valued customer, we're giving you early access to our seasonal "
        "sale. Use code SPECIAL15 for an extra discount!",
    ],
    'sms': [
        "Hi {firstName}! 15% off your next purchase with code SAVE15. Valid for 48hrs only. Shop now!",
        "{firstName}, we miss you! Come back and enjoy special offers tailored just for you. "
        "Visit our site today!",
        "Exclusive offer for you {firstName}! Shop today and get free shipping on all orders. "
        "Limited time only!",
    ],
    'both': [
        "Hi {firstName}, thank you for being our customer! We've prepared special offers just for "
        "you. Check your inbox or visit our website today!",
        "Hello {firstName}! Don't miss out on our biggest sale of the season. Save up to 25% on "
        "selected items for a limited time!",
        "Dear {firstName}, we appreciate your loyalty! Here's a special discount code THANKS20 "
        "valid for your next purchase.",
    ],
}

# Greetings stripped before re-greeting a message in a different tone
_GREETINGS = ('Hi {firstName},', 'Hello {firstName}!')


class AIServiceError(Exception):
    """Provider call failed or returned something unusable"""


def template_suggestion(campaign_type, audience_description):
    """
    Pick a canned message for the campaign type and adapt it to the audience.

    The template is chosen from a CRC32 of the audience description, so the
    same input always yields the same message.
    """
    templates = MESSAGE_TEMPLATES.get(campaign_type, MESSAGE_TEMPLATES['email'])
    audience = audience_description or ''
    index = zlib.crc32(audience.encode('utf-8')) % len(templates)
    message = templates[index]

    lowered = audience.lower()
    if 'vip' in lowered or 'premium' in lowered:
        message = message.replace('valued customer', 'premium member', 1)
        message = message.replace('15%', '25%', 1)
        message = message.replace('SAVE15', 'VIP25', 1)

    if 'inactive' in lowered or "haven't" in lowered:
        message = message.replace('As a valued customer', 'We miss you! As a previous customer', 1)
        message += " We'd love to see you back!"

    return message


def template_variants(message):
    """Original, professional and friendly versions of `message`"""
    body = message
    for greeting in _GREETINGS:
        body = body.replace(greeting, '', 1)
    body = body.strip()

    return [
        {'text': message, 'tone': 'original', 'score': 85},
        {'text': f"Dear {{firstName}}, {body}", 'tone': 'professional', 'score': 80},
        {'text': f"Hey {{firstName}}! {body}", 'tone': 'friendly', 'score': 75},
    ]


def _extract_json_object(text):
    """First balanced {...} span in `text`, ignoring braces inside strings"""
    start = text.find('{')
    if start == -1:
        return None

    depth = 0
    in_string = False
    escape = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escape:
                escape = False
            elif ch == '\\':
                escape = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == '{':
            depth += 1
        elif ch == '}':
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def parse_variants(raw_text):
    """
    Parse the variants JSON an LLM returned. Accepts ```json fences and
    chatter around the object. Raises AIServiceError when nothing usable is found.
    """
    text = (raw_text or '').strip()
    fenced = re.findall(r"```(?:json)?\s*(.*?)\s*```", text, re.DOTALL | re.IGNORECASE)
    if fenced:
        text = fenced[0]

    span = _extract_json_object(text)
    if not span:
        raise AIServiceError('No JSON object found in provider response')

    try:
        data = json.loads(span, strict=False)
    except json.JSONDecodeError as e:
        raise AIServiceError(f'Invalid JSON in provider response: {e}')

    variants = data.get('message_variants', data.get('messageVariants'))
    if not isinstance(variants, list):
        raise AIServiceError('Provider response has no message_variants list')

    cleaned = []
    for variant in variants:
        if not isinstance(variant, dict) or not str(variant.get('text') or '').strip():
            continue
        try:
            score = int(variant.get('score', 0))
        except (TypeError, ValueError):
            score = 0
        cleaned.append({
            'text': str(variant['text']).strip(),
            'tone': str(variant.get('tone') or 'variant'),
            'score': score,
        })

    if not cleaned:
        raise AIServiceError('Provider returned no usable variants')
    return cleaned


class AIService:
    """
    Thin client over the configured LLM providers.

    The selected provider is tried first, then any other provider that has
    a key. Every public method degrades to templates rather than raising.
    """

    def __init__(self, app=None):
        self.provider = 'openai'
        self.openai_api_key = None
        self.openai_model = 'gpt-3.5-turbo'
        self.openai_base_url = 'https://api.openai.com/v1'
        self.gemini_api_key = None
        self.gemini_model = 'gemini-1.5-pro'
        self.timeout = 30

        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        """Initialize from Flask app configuration"""
        self.provider = (app.config.get('AI_PROVIDER') or 'openai').lower()
        self.openai_api_key = app.config.get('OPENAI_API_KEY')
        self.openai_model = app.config.get('OPENAI_MODEL') or 'gpt-3.5-turbo'
        self.openai_base_url = (app.config.get('OPENAI_BASE_URL') or 'https://api.openai.com/v1').rstrip('/')
        self.gemini_api_key = app.config.get('GEMINI_API_KEY')
        self.gemini_model = app.config.get('GEMINI_MODEL') or 'gemini-1.5-pro'
        self.timeout = int(app.config.get('AI_TIMEOUT') or 30)

        if self.is_configured:
            logger.info(f"AI service ready (providers: {', '.join(self.available_providers())})")
        else:
            logger.warning("No AI provider key configured - message suggestions will use templates")

    def available_providers(self):
        """Providers with an API key, preferred provider first"""
        keys = {'openai': self.openai_api_key, 'gemini': self.gemini_api_key}
        order = [self.provider] + [name for name in ('openai', 'gemini') if name != self.provider]
        return [name for name in order if keys.get(name)]

    @property
    def is_configured(self):
        return bool(self.available_providers())

    # ===================
    # PROVIDERS
    # ===================

    def _call_openai(self, system_prompt, user_prompt, max_tokens):
        try:
            resp = requests.post(
                f"{self.openai_base_url}/chat/completions",
                headers={
                    'Authorization': f'Bearer {self.openai_api_key}',
                    'Content-Type': 'application/json',
                },
                json={
                    'model': self.openai_model,
                    'messages': [
                        {'role': 'system', 'content': system_prompt},
                        {'role': 'user', 'content': user_prompt},
                    ],
                    'temperature': TEMPERATURE,
                    'max_tokens': max_tokens,
                },
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            error_detail = ''
            if hasattr(e, 'response') and e.response is not None:
                error_detail = e.response.text
            raise AIServiceError(f'OpenAI API error: {e} {error_detail}'.strip())
        except ValueError as e:
            raise AIServiceError(f'OpenAI returned invalid JSON: {e}')

        try:
            return (data['choices'][0]['message']['content'] or '').strip()
        except (KeyError, IndexError, TypeError):
            raise AIServiceError('Unexpected OpenAI response shape')

    def _call_gemini(self, system_prompt, user_prompt, max_tokens):
        try:
            resp = requests.post(
                f"{GEMINI_API_BASE}/models/{self.gemini_model}:generateContent",
                headers={
                    'x-goog-api-key': self.gemini_api_key,
                    'Content-Type': 'application/json',
                },
                json={
                    'systemInstruction': {'parts': [{'text': system_prompt}]},
                    'contents': [{'role': 'user', 'parts': [{'text': user_prompt}]}],
                    'generationConfig': {
                        'temperature': TEMPERATURE,
                        'maxOutputTokens': max_tokens,
                    },
                },
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            error_detail = ''
            if hasattr(e, 'response') and e.response is not None:
                error_detail = e.response.text
            raise AIServiceError(f'Gemini API error: {e} {error_detail}'.strip())
        except ValueError as e:
            raise AIServiceError(f'Gemini returned invalid JSON: {e}')

        try:
            parts = data['candidates'][0]['content']['parts']
            return ''.join(part.get('text', '') for part in parts).strip()
        except (KeyError, IndexError, TypeError):
            raise AIServiceError('Unexpected Gemini response shape')

    def complete(self, system_prompt, user_prompt, max_tokens):
        """
        Run one prompt through the providers in preference order.
        Returns the first non-empty answer; raises AIServiceError if none.
        """
        providers = self.available_providers()
        if not providers:
            raise AIServiceError('No AI provider configured')

        last_error = None
        for name in providers:
            call = self._call_gemini if name == 'gemini' else self._call_openai
            try:
                text = call(system_prompt, user_prompt, max_tokens)
            except AIServiceError as e:
                logger.warning(f"{name} completion failed: {e}")
                last_error = e
                continue
            if text:
                return text
            last_error = AIServiceError(f'{name} returned an empty response')
            logger.warning(str(last_error))

        raise last_error

    # ===================
    # PUBLIC API
    # ===================

    def suggest_message(self, campaign_type, audience_description):
        """Suggest a campaign message. Returns Suggestion(text, source)."""
        if self.is_configured:
            try:
                text = self.complete(
                    SUGGESTION_SYSTEM_PROMPT,
                    build_suggestion_prompt(campaign_type, audience_description),
                    SUGGESTION_MAX_TOKENS,
                )
                return Suggestion(text, 'llm')
            except AIServiceError as e:
                logger.error(f"Error generating message suggestion: {e}")

        logger.info(f"Using template suggestion for {campaign_type} campaign")
        return Suggestion(template_suggestion(campaign_type, audience_description), 'template')

    def generate_message_variants(self, message, objective=''):
        """Tone variants of `message`. Returns VariantResult(variants, source)."""
        if self.is_configured:
            try:
                raw = self.complete(
                    VARIANTS_SYSTEM_PROMPT,
                    build_variants_prompt(message, objective),
                    VARIANTS_MAX_TOKENS,
                )
                return VariantResult(parse_variants(raw), 'llm')
            except AIServiceError as e:
                logger.error(f"Error generating message variants: {e}")

        logger.info("Using template message variants")
        return VariantResult(template_variants(message), 'template')


# Global instance
ai_service = AIService()
