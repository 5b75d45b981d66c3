"""AI provider abstraction for OpenAI and Claude."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

try:
    from openai import OpenAI
except ImportError:
    OpenAI = None

try:
    from anthropic import Anthropic
except ImportError:
    Anthropic = None

from .schemas import MetadataResponse, parse_metadata_json

logger = logging.getLogger(__name__)

AI_JSON_RETRY_COUNT = 1  # max retries on invalid JSON

SYSTEM_PROMPT = "You label documents for a signing inbox. Reply with JSON only."


def build_metadata_prompt(text_sample: str, strict_json_instruction: bool = False) -> str:
    """Build the analysis prompt for a first-page text sample."""
    prompt = (
        "Analyze the following text extracted from the first page of a document.\n"
        "Generate a concise title, a one-sentence summary, and 3 relevant tags.\n\n"
        f"Text:\n{text_sample}\n\n"
        'Return JSON: {"title": "...", "summary": "...", "tags": ["...", "...", "..."]}\n'
    )
    if strict_json_instruction:
        prompt += "\nReturn only valid JSON matching this schema; no additional text or markdown.\n"
    return prompt


class AIProvider(ABC):
    """Abstract base class for AI providers."""

    @abstractmethod
    def analyze_document(
        self,
        text_sample: str,
        strict_json_instruction: bool = False,
    ) -> MetadataResponse:
        """Produce title, summary and tags for a text sample.

        Args:
            text_sample: First-page text, already truncated
            strict_json_instruction: If True, append instruction to return only valid JSON

        Returns:
            Parsed MetadataResponse

        Raises:
            ValueError: If the reply cannot be parsed
            Exception: If the API call fails
        """
        pass


class OpenAIProvider(AIProvider):
    """OpenAI provider using chat completions in JSON mode."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini"):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Model name
        """
        if OpenAI is None:
            raise ImportError(
                "openai library is required. Install with: pip install openai"
            )
        self.client = OpenAI(api_key=api_key)
        self.model = model

    def analyze_document(
        self,
        text_sample: str,
        strict_json_instruction: bool = False,
    ) -> MetadataResponse:
        prompt = build_metadata_prompt(text_sample, strict_json_instruction)
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},
            )
        except Exception as e:
            logger.error("OpenAI API error: %s", e)
            raise
        content = response.choices[0].message.content or ""
        return parse_metadata_json(content)


class ClaudeProvider(AIProvider):
    """Claude provider using the Anthropic messages API."""

    def __init__(self, api_key: str, model: str = "claude-3-5-haiku-latest"):
        """Initialize Claude provider.

        Args:
            api_key: Anthropic API key
            model: Model name
        """
        if Anthropic is None:
            raise ImportError(
                "anthropic library is required. Install with: pip install anthropic"
            )
        self.client = Anthropic(api_key=api_key)
        self.model = model

    def analyze_document(
        self,
        text_sample: str,
        strict_json_instruction: bool = False,
    ) -> MetadataResponse:
        prompt = build_metadata_prompt(text_sample, strict_json_instruction)
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=512,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            logger.error("Claude API error: %s", e)
            raise
        return parse_metadata_json(response.content[0].text)
