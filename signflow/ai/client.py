"""HTTP client for a self-hosted metadata analysis service."""

import logging
from typing import Optional
from urllib.parse import urljoin

import requests

from .schemas import MetadataRequest, MetadataResponse

logger = logging.getLogger(__name__)


class AIClientError(Exception):
    """Base exception for AI client errors."""
    pass


class AIConnectionError(AIClientError):
    """Raised when connection to AI service fails."""
    pass


class AIAPIError(AIClientError):
    """Raised when AI API returns an error."""
    pass


class MetadataClient:
    """Client for an HTTP metadata service exposing POST /analyze and GET /health."""

    def __init__(
        self,
        endpoint: str,
        api_key: Optional[str] = None,
        timeout: int = 30
    ):
        """Initialize client.

        Args:
            endpoint: Base URL for the service (e.g., "https://api.example.com/v1/")
            api_key: Optional API key for authentication
            timeout: Request timeout in seconds
        """
        self.endpoint = endpoint.rstrip('/') + '/'
        self.api_key = api_key
        self.timeout = timeout
        self.session = requests.Session()

        headers = {
            'Content-Type': 'application/json',
            'Accept': 'application/json'
        }
        if api_key:
            headers['Authorization'] = f'Bearer {api_key}'
        self.session.headers.update(headers)

    def analyze(self, request: MetadataRequest) -> MetadataResponse:
        """Analyze a text sample.

        Raises:
            AIConnectionError: If connection fails or times out
            AIAPIError: If API returns an error status or an unparsable body
        """
        url = urljoin(self.endpoint, 'analyze')

        try:
            response = self.session.post(
                url,
                json=request.to_dict(),
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            raise AIConnectionError(f"Request to {url} timed out after {self.timeout}s") from e
        except requests.exceptions.ConnectionError as e:
            raise AIConnectionError(f"Failed to connect to {url}: {e}") from e
        except requests.exceptions.HTTPError as e:
            error_msg = f"API error: {e.response.status_code}"
            try:
                error_data = e.response.json()
                error_msg += f" - {error_data.get('error', 'Unknown error')}"
            except ValueError:
                error_msg += f" - {e.response.text[:200]}"
            raise AIAPIError(error_msg) from e

        try:
            return MetadataResponse(**response.json())
        except (ValueError, TypeError) as e:
            raise AIAPIError(f"Invalid response body from {url}: {e}") from e

    def health_check(self) -> bool:
        """Check if the service is available.

        Returns:
            True if service is available, False otherwise
        """
        url = urljoin(self.endpoint, 'health')
        try:
            response = self.session.get(url, timeout=5)
            return response.status_code == 200
        except requests.exceptions.RequestException:
            return False
