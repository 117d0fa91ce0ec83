"""
Tracker - AI Service (chat-completions summarization)

Client for an OpenAI-compatible chat-completions endpoint (DeepInfra by
default) used by the Analyze endpoints.

Setup:
1. Create an API key at https://deepinfra.com/dash
2. Export it: TRACKER_DEEPINFRA_API_KEY=...
3. Optionally point TRACKER_DEEPINFRA_BASE_URL at another compatible provider

Behaviour:
- One POST per Analyze request; no retry, no backoff, no caching
- At most one request in flight per record kind (jobs/research/skills)
- Every failure is raised as an AIServiceError subclass with a short `code`
  so the routers can show it in place of the summary
"""
from typing import Any, Dict, Optional, Set
import logging

import httpx

from ..config import AISettings, settings

logger = logging.getLogger("tracker.ai")

NO_RESPONSE = "No response"


class AIServiceError(Exception):
    """Base exception for summarization failures."""
    code = "ai_error"


class AIConfigurationError(AIServiceError):
    """API key missing, feature disabled, or endpoint URL malformed."""
    code = "configuration"


class AIAPIError(AIServiceError):
    """The provider answered with a non-200 status."""
    code = "api_error"

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}: {body}")


class AIRateLimitError(AIServiceError):
    """The provider answered 429 Too Many Requests."""
    code = "rate_limited"

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Rate limited by the summary provider (HTTP {status_code}): {body}")


class AIInvalidResponseError(AIServiceError):
    """HTTP 200 with a body that is not a chat-completion response."""
    code = "invalid_response"


class AIRequestError(AIServiceError):
    """Transport failure: no network, DNS, timeout."""
    code = "request_failed"


class SummaryInProgressError(AIServiceError):
    """An Analyze request for the same record kind is still running."""
    code = "in_progress"


class AIService:
    """
    Summarization client.

    The service can always be constructed; a missing API key only fails the
    first summarize() call, so the rest of the app keeps working.
    """

    def __init__(self, ai_settings: Optional[AISettings] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        """Initialize AI service with settings. `transport` is for tests."""
        ai_settings = ai_settings or settings.ai
        self.enabled = ai_settings.ai_enabled
        self.api_key = ai_settings.deepinfra_api_key
        self.base_url = ai_settings.deepinfra_base_url.strip().rstrip("/")
        self.model = ai_settings.ai_model
        self.temperature = ai_settings.ai_temperature
        self.timeout = ai_settings.ai_timeout
        self.system_prompt = ai_settings.ai_system_prompt
        self._transport = transport
        self._in_flight: Set[str] = set()

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    @property
    def is_configured(self) -> bool:
        """True when summarize() has what it needs to make a request."""
        try:
            self._check_config()
        except AIConfigurationError:
            return False
        return True

    def _check_config(self) -> httpx.URL:
        if not self.enabled:
            raise AIConfigurationError("AI analysis is disabled (TRACKER_AI_ENABLED=false)")
        if not self.api_key:
            raise AIConfigurationError("TRACKER_DEEPINFRA_API_KEY is not set")
        try:
            url = httpx.URL(self.endpoint)
        except httpx.InvalidURL as e:
            raise AIConfigurationError(f"Invalid summary endpoint {self.endpoint!r}: {e}")
        if url.scheme not in ("http", "https") or not url.host:
            raise AIConfigurationError(f"Invalid summary endpoint {self.endpoint!r}")
        return url

    def build_payload(self, text: str) -> Dict[str, Any]:
        """Chat-completion request body for the given user prompt."""
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": text},
            ],
            "temperature": self.temperature,
        }

    async def generate_summary(self, text: str) -> str:
        """
        Send one prompt and return the first choice's text.

        Returns:
            The generated summary, or "No response" if the provider returned no choices

        Raises:
            AIConfigurationError: missing key / malformed endpoint
            AIRateLimitError: HTTP 429
            AIAPIError: any other non-200 status
            AIInvalidResponseError: 200 with an unexpected body
            AIRequestError: transport failure or timeout
        """
        url = self._check_config()
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                logger.debug(f"Requesting summary from model {self.model}")
                response = await client.post(url, json=self.build_payload(text), headers=headers)
        except httpx.TimeoutException:
            logger.error("Summary request timed out")
            raise AIRequestError("The summary request timed out")
        except httpx.HTTPError as e:
            logger.error(f"Summary request failed: {e}")
            raise AIRequestError(f"The summary request failed: {e}")

        if response.status_code == 429:
            logger.warning("Summary provider rate limited the request")
            raise AIRateLimitError(response.status_code, response.text)
        if response.status_code != 200:
            logger.error(f"Summary provider error {response.status_code}: {response.text}")
            raise AIAPIError(response.status_code, response.text)

        return self._parse_response(response)

    def _parse_response(self, response: httpx.Response) -> str:
        """Extract choices[0].message.content from a chat-completion response."""
        try:
            data = response.json()
            choices = data["choices"]
            if not choices:
                return NO_RESPONSE
            content = choices[0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error(f"Unexpected summary response: {e}")
            raise AIInvalidResponseError("The summary provider returned an unexpected response")

        if not isinstance(content, str):
            raise AIInvalidResponseError("The summary provider returned an unexpected response")

        logger.debug(f"Generated {len(content)} characters")
        return content.strip()

    async def summarize(self, kind: str, text: str) -> str:
        """
        generate_summary() with a single-flight guard per record kind.

        Raises:
            SummaryInProgressError: a request for `kind` is already outstanding
        """
        if kind in self._in_flight:
            raise SummaryInProgressError(f"An analysis of {kind} is already running")
        self._in_flight.add(kind)
        try:
            return await self.generate_summary(text)
        finally:
            self._in_flight.discard(kind)


# Global service instance for convenience
ai_service = AIService()


def get_ai_service() -> AIService:
    """FastAPI dependency returning the shared summarization client."""
    return ai_service
