import logging
import httpx
import backoff
from typing import Optional

from pharmaguard.config import LLMSettings, get_config

logger = logging.getLogger(__name__)


class LLMUnavailableError(RuntimeError):
    """Raised when the client has no credentials configured."""


class GroqClient:
    """
    Client for Groq's hosted Llama API (OpenAI-compatible chat completions).
    Requests a JSON object response for structured explanations.
    """

    def __init__(
        self,
        settings: Optional[LLMSettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_config().llm
        self._client = http_client

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.api_key)

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.timeout_seconds)
        return self._client

    async def aclose(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @backoff.on_exception(
        backoff.expo,
        (httpx.RequestError, httpx.HTTPStatusError),
        max_tries=2,
        giveup=lambda e: isinstance(e, httpx.HTTPStatusError) and e.response.status_code < 500
    )
    async def generate_json(self, prompt: str) -> str:
        """
        Returns the raw message content of a JSON-mode completion.
        Low temperature for consistent, factual responses.
        """
        if not self.is_configured:
            raise LLMUnavailableError("GROQ_API_KEY is not set")

        logger.info("Sending request to Groq", extra={"model": self.settings.model})

        payload = {
            "model": self.settings.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.settings.max_tokens,
            "temperature": self.settings.temperature,
            "response_format": {"type": "json_object"},
        }

        headers = {
            "Authorization": f"Bearer {self.settings.api_key}",
            "Content-Type": "application/json",
        }

        response = await self._http().post(self.settings.api_url, json=payload, headers=headers)
        response.raise_for_status()

        data = response.json()
        generated_text = data["choices"][0]["message"]["content"]

        logger.info("Groq request successful", extra={"response_length": len(generated_text or "")})
        return generated_text
