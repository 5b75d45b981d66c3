"""Document metadata analysis with safe defaults.

Analysis is never on the critical path: missing configuration, missing
libraries and backend failures all resolve to default metadata.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from ..config import get_ai_enabled, get_ai_endpoint, get_ai_key, get_ai_model, get_ai_provider
from ..models.signed_document import DEFAULT_TITLE, DocumentMetadata
from ..pipeline.reader import TEXT_SAMPLE_LIMIT
from .client import AIClientError, MetadataClient
from .providers import AI_JSON_RETRY_COUNT, AIProvider, ClaudeProvider, OpenAIProvider
from .schemas import MetadataRequest, MetadataResponse

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY = "No description available."
DEFAULT_TAGS = ["Document"]


def unconfigured_metadata() -> DocumentMetadata:
    """Metadata used when no AI backend is configured."""
    return DocumentMetadata(
        title=DEFAULT_TITLE,
        summary="No API Key provided for analysis.",
        tags=["Pending"],
    )


def failed_metadata() -> DocumentMetadata:
    """Metadata used when the AI backend fails."""
    return DocumentMetadata(
        title="Scanned Document",
        summary="Automatic analysis failed.",
        tags=["Uncategorized"],
    )


def _with_defaults(response: MetadataResponse) -> DocumentMetadata:
    tags = [t.strip() for t in (response.tags or []) if t and t.strip()]
    return DocumentMetadata(
        title=(response.title or "").strip() or DEFAULT_TITLE,
        summary=(response.summary or "").strip() or DEFAULT_SUMMARY,
        tags=tags or list(DEFAULT_TAGS),
    )


Backend = Union[AIProvider, MetadataClient]


class MetadataAnalyzer:
    """Produces DocumentMetadata from first-page text."""

    def __init__(self, backend: Optional[Backend] = None):
        """Initialize analyzer.

        Args:
            backend: AIProvider or MetadataClient. If None, creates one from config.
        """
        self.backend = backend if backend is not None else self._create_backend()

    def _create_backend(self) -> Optional[Backend]:
        """Create backend from configuration: endpoint first, then provider key."""
        if not get_ai_enabled():
            logger.debug("AI analysis disabled")
            return None
        endpoint = get_ai_endpoint()
        api_key = get_ai_key()
        if endpoint:
            return MetadataClient(endpoint, api_key=api_key)
        if not api_key:
            logger.debug("AI API key not configured, metadata analysis disabled")
            return None
        provider_name = get_ai_provider()
        model = get_ai_model()
        try:
            if provider_name == "claude":
                return ClaudeProvider(api_key=api_key, model=model)
            return OpenAIProvider(api_key=api_key, model=model)
        except ImportError as e:
            logger.warning("AI provider library not installed: %s", e)
            return None

    def _call_backend(self, sample: str) -> MetadataResponse:
        if isinstance(self.backend, MetadataClient):
            return self.backend.analyze(MetadataRequest(text=sample))

        last_error: Optional[Exception] = None
        for attempt in range(AI_JSON_RETRY_COUNT + 1):
            strict = attempt > 0
            if strict:
                logger.warning("AI response invalid, retrying once with strict JSON instruction")
            try:
                return self.backend.analyze_document(sample, strict_json_instruction=strict)
            except ValueError as e:
                last_error = e
        raise ValueError(f"AI response invalid after retry: {last_error}")

    def analyze(self, text_sample: str) -> DocumentMetadata:
        """Analyze a text sample; never raises.

        Returns:
            Metadata from the backend with defaults for missing fields, or
            fixed fallback metadata when unconfigured or failing
        """
        if self.backend is None:
            return unconfigured_metadata()
        sample = (text_sample or "")[:TEXT_SAMPLE_LIMIT]
        try:
            response = self._call_backend(sample)
        except (AIClientError, ValueError) as e:
            logger.warning("Metadata analysis failed: %s", e)
            return failed_metadata()
        except Exception as e:
            # provider SDK errors (auth, rate limit, network)
            logger.error("Metadata analysis failed: %s", e)
            return failed_metadata()
        return _with_defaults(response)


def analyze_document_content(text_sample: str, backend: Optional[Backend] = None) -> DocumentMetadata:
    """Analyze first-page text into title, summary and tags."""
    return MetadataAnalyzer(backend=backend).analyze(text_sample)
