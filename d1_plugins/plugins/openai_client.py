"""
OpenAI API client used by the unified AI assessor
"""
from typing import Any, Dict, List, Optional

import httpx

from core.config import Settings, get_settings
from core.exceptions import ConfigurationError, NetworkError
from core.logging import get_logger


class OpenAIClient:
    """Minimal async client for the chat completions endpoint"""

    provider = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        settings = settings or get_settings()
        if not settings.enable_openai:
            raise ConfigurationError("OpenAI client initialized but ENABLE_OPENAI=false", setting="enable_openai")

        if api_key is None:
            try:
                api_key = settings.get_api_key("openai")
            except ValueError as e:
                raise ConfigurationError(str(e), setting="openai_api_key") from e

        self.api_key = api_key
        self.base_url = base_url or settings.openai_base_url
        self.model = model or settings.openai_model
        self.logger = get_logger("gateway.openai", domain="d1")
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds or settings.openai_timeout_seconds),
            headers=self._get_headers(),
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def chat_completion(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        temperature: float = 0.0,
        max_tokens: Optional[int] = None,
        response_format: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Create a chat completion

        Args:
            messages: List of message objects
            model: Model to use, defaults to the configured model
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            response_format: Response format specification

        Returns:
            Dict containing the completion response

        Raises:
            NetworkError: When the request fails or the API returns an error
        """
        payload: Dict[str, Any] = {
            "model": model or self.model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens:
            payload["max_tokens"] = max_tokens
        if response_format:
            payload["response_format"] = response_format

        url = f"{self.base_url.rstrip('/')}/v1/chat/completions"
        try:
            response = await self.client.post(url, json=payload)
        except httpx.TimeoutException as e:
            raise NetworkError(self.provider, "request timed out", upstream_status=504) from e
        except httpx.HTTPError as e:
            raise NetworkError(self.provider, str(e) or type(e).__name__) from e

        if response.status_code >= 400:
            error_msg = f"HTTP {response.status_code}"
            try:
                error_msg = response.json().get("error", {}).get("message", error_msg)
            except (ValueError, AttributeError):
                error_msg = response.text or error_msg
            self.logger.warning(f"OpenAI API error {response.status_code}: {error_msg}")
            raise NetworkError(
                self.provider,
                error_msg,
                upstream_status=response.status_code,
                response_body=response.text[:500],
            )

        return response.json()

    async def complete_json(self, system: str, prompt: str, temperature: float = 0.0) -> str:
        """Return the raw message content of a JSON-mode completion"""
        response = await self.chat_completion(
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            temperature=temperature,
            response_format={"type": "json_object"},
        )
        try:
            content = response["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        if not content:
            raise NetworkError(self.provider, "No response content from OpenAI")
        return content
