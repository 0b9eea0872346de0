"""Text-generation client used for command generation and recovery.

Supports Google Gemini, OpenAI, Anthropic Claude, a local Ollama server and a ``fake``
provider that replays ``GITPILOT_FAKE_RESPONSE`` for tests and demos.
Every provider failure surfaces as GenerationError.
"""

import logging
import os
from typing import Any

import requests

from gitpilot.errors import GenerationError

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("openai", "claude", "gemini", "ollama", "fake")
DEFAULT_TIMEOUT = 60.0
DEFAULT_MAX_TOKENS = 2048
DEFAULT_TEMPERATURE = 0.1
GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models"

SYSTEM_PROMPT = (
    "You are a git and GitHub CLI expert. Answer tersely and follow the requested output format exactly."
)


class TextGenerator:
    """Sends a single prompt to the configured provider and returns its text."""

    def __init__(
        self,
        api_key: str | None,
        provider: str = "openai",
        model: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ):
        """Initialize the generator.

        Args:
            api_key: API key for the provider (unused by ollama and fake)
            provider: One of "openai", "claude", "gemini", "ollama" or "fake"
            model: Optional model name override
            timeout: Request timeout in seconds
        """
        self.provider = provider.lower()
        if self.provider not in SUPPORTED_PROVIDERS:
            raise ValueError(
                f"Unsupported provider: {provider}. Valid providers are: {', '.join(SUPPORTED_PROVIDERS)}"
            )
        self.api_key = api_key
        self.model = model or self._default_model()
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.client: Any = None
        self.ollama_url = os.environ.get("OLLAMA_HOST", "http://localhost:11434")

    def _default_model(self) -> str:
        if self.provider == "openai":
            return "gpt-4o-mini"
        elif self.provider == "claude":
            return "claude-sonnet-4-20250514"
        elif self.provider == "gemini":
            return "gemini-1.5-flash"
        elif self.provider == "ollama":
            return "llama3.2"
        return "fake"

    def __call__(self, prompt: str) -> str:
        return self.generate(prompt)

    def generate(self, prompt: str) -> str:
        """Return the provider's response text. Raises GenerationError."""
        logger.debug("Generating with %s/%s (%d prompt chars)", self.provider, self.model, len(prompt))
        try:
            if self.provider == "openai":
                text = self._call_openai(prompt)
            elif self.provider == "claude":
                text = self._call_claude(prompt)
            elif self.provider == "gemini":
                text = self._call_gemini(prompt)
            elif self.provider == "ollama":
                text = self._call_ollama(prompt)
            else:
                text = self._call_fake()
        except GenerationError:
            raise
        except requests.RequestException as e:
            raise GenerationError(f"{self.provider} request failed: {e}") from e
        except Exception as e:
            # SDK errors (auth, rate limit, connection) all end up here
            raise GenerationError(f"{self.provider} API call failed: {e}") from e

        text = (text or "").strip()
        if not text:
            raise GenerationError(f"{self.provider} returned an empty response")
        logger.debug("Received %d response chars", len(text))
        return text

    def _require_api_key(self) -> str:
        if not self.api_key:
            raise GenerationError(f"No API key configured for provider '{self.provider}'")
        return self.api_key

    def _get_client(self) -> Any:
        if self.client is not None:
            return self.client

        api_key = self._require_api_key()
        if self.provider == "openai":
            try:
                from openai import OpenAI
            except ImportError as e:
                raise GenerationError("OpenAI package not installed. Run: pip install openai") from e
            self.client = OpenAI(api_key=api_key, timeout=self.timeout)
        elif self.provider == "claude":
            try:
                from anthropic import Anthropic
            except ImportError as e:
                raise GenerationError("Anthropic package not installed. Run: pip install anthropic") from e
            # Suppress noisy retry logging from anthropic client
            logging.getLogger("anthropic").setLevel(logging.WARNING)
            logging.getLogger("anthropic._base_client").setLevel(logging.WARNING)
            self.client = Anthropic(api_key=api_key, timeout=self.timeout)
        return self.client

    def _call_openai(self, prompt: str) -> str:
        response = self._get_client().chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        try:
            return response.choices[0].message.content or ""
        except (IndexError, AttributeError) as e:
            raise GenerationError("Malformed OpenAI response") from e

    def _call_claude(self, prompt: str) -> str:
        response = self._get_client().messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )
        try:
            return getattr(response.content[0], "text", None) or ""
        except (IndexError, AttributeError) as e:
            raise GenerationError("Malformed Claude response") from e

    def _call_gemini(self, prompt: str) -> str:
        response = requests.post(
            f"{GEMINI_API_URL}/{self.model}:generateContent",
            headers={"x-goog-api-key": self._require_api_key()},
            json={
                "systemInstruction": {"parts": [{"text": SYSTEM_PROMPT}]},
                "contents": [{"parts": [{"text": prompt}]}],
                "generationConfig": {
                    "temperature": self.temperature,
                    "topK": 40,
                    "topP": 0.95,
                    "maxOutputTokens": self.max_tokens,
                },
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        try:
            return response.json()["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise GenerationError("Malformed Gemini response") from e

    def _call_ollama(self, prompt: str) -> str:
        response = requests.post(
            f"{self.ollama_url}/api/generate",
            json={
                "model": self.model,
                "prompt": f"{SYSTEM_PROMPT}\n\n{prompt}",
                "stream": False,
                "options": {"temperature": self.temperature},
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        try:
            return response.json().get("response", "")
        except ValueError as e:
            raise GenerationError("Malformed Ollama response") from e

    def _call_fake(self) -> str:
        return os.environ.get("GITPILOT_FAKE_RESPONSE", "git status")
