"""
Generative backends for abstractive summaries.

Supports:
- Anthropic Claude (via anthropic library)
- OpenAI GPT (via openai library)
- Google Gemini (via google-genai library)
- Local models served by Ollama (via its REST API)

Every backend streams text chunks; GenerativeBackend.complete aggregates a
stream into a single completion and enforces the stop sequences.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Literal
import json
import logging
import os

import requests

from .errors import BackendUnavailableError

logger = logging.getLogger(__name__)

TokenCallback = Callable[[str], None]
ProviderName = Literal["anthropic", "openai", "gemini", "ollama"]

# Request-side limits on the number of stop sequences
OPENAI_MAX_STOP_SEQUENCES: int = 4
GEMINI_MAX_STOP_SEQUENCES: int = 5


@dataclass(frozen=True)
class GenerationOptions:
    """Sampling and length controls for one completion."""
    max_tokens: int = 200
    stop_sequences: tuple[str, ...] = field(default_factory=tuple)
    temperature: float = 0.7
    top_p: float = 0.9


@dataclass(frozen=True)
class Completion:
    """Final text of a completion."""
    text: str


def cut_at_stop(text: str, stop_sequences: tuple[str, ...]) -> str:
    """
    Truncate text at the earliest stop sequence it contains.

    Args:
        text: Generated text
        stop_sequences: Markers that end generation

    Returns:
        Text before the first marker (unchanged if none occur)
    """
    positions: list[int] = [
        text.find(stop) for stop in stop_sequences if stop and stop in text
    ]
    return text[:min(positions)] if positions else text


class GenerativeBackend(ABC):
    """Abstract base class for generative text backends."""

    @abstractmethod
    def stream(self, prompt: str, options: GenerationOptions) -> Iterator[str]:
        """
        Stream a completion for the prompt.

        Args:
            prompt: Complete prompt text
            options: Sampling and length controls

        Yields:
            Text chunks in generation order
        """
        pass

    def complete(
        self,
        prompt: str,
        options: GenerationOptions,
        on_token: TokenCallback | None = None
    ) -> Completion:
        """
        Generate a full completion, reporting each chunk as it arrives.

        This is the one-shot entry point for callers that want the whole
        text. BackendGate streams through stream() instead so it can expose
        tokens lazily, and it applies the same cut_at_stop() to the result.

        Args:
            prompt: Complete prompt text
            options: Sampling and length controls
            on_token: Optional callback invoked with every streamed chunk

        Returns:
            Completion cut at the first stop sequence
        """
        chunks: list[str] = []
        for chunk in self.stream(prompt, options):
            chunks.append(chunk)
            if on_token is not None:
                on_token(chunk)

        return Completion(text=cut_at_stop("".join(chunks), options.stop_sequences))


class AnthropicBackend(GenerativeBackend):
    """Anthropic Claude backend."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "claude-sonnet-4-5-20250929"
    ):
        """
        Initialize Anthropic backend.

        Args:
            api_key: Anthropic API key (default: ANTHROPIC_API_KEY env var)
            model: Model to use (default: claude-sonnet-4-5-20250929)
        """
        from anthropic import Anthropic

        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self.api_key:
            raise ValueError("ANTHROPIC_API_KEY not found in environment")

        self.client = Anthropic(api_key=self.api_key)
        self.model = model

    def stream(self, prompt: str, options: GenerationOptions) -> Iterator[str]:
        """Stream a completion from Claude."""
        # Current Claude models accept temperature or top_p, not both
        stream_kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": options.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": options.temperature,
        }
        if options.stop_sequences:
            stream_kwargs["stop_sequences"] = list(options.stop_sequences)

        with self.client.messages.stream(**stream_kwargs) as stream:
            for text in stream.text_stream:
                yield text


class OpenAIBackend(GenerativeBackend):
    """OpenAI GPT backend."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-4o-mini"
    ):
        """
        Initialize OpenAI backend.

        Args:
            api_key: OpenAI API key (default: OPENAI_API_KEY env var)
            model: Model to use (default: gpt-4o-mini)
        """
        from openai import OpenAI

        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            raise ValueError("OPENAI_API_KEY not found in environment")

        self.client = OpenAI(api_key=self.api_key)
        self.model = model

    def stream(self, prompt: str, options: GenerationOptions) -> Iterator[str]:
        """Stream a completion from GPT."""
        request_kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": options.max_tokens,
            "temperature": options.temperature,
            "top_p": options.top_p,
            "stream": True,
        }
        if options.stop_sequences:
            request_kwargs["stop"] = list(options.stop_sequences[:OPENAI_MAX_STOP_SEQUENCES])

        for chunk in self.client.chat.completions.create(**request_kwargs):
            if not chunk.choices:
                continue
            delta_content = chunk.choices[0].delta.content
            if delta_content is not None:
                yield delta_content


class GeminiBackend(GenerativeBackend):
    """Google Gemini backend."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gemini-2.5-flash"
    ):
        """
        Initialize Gemini backend.

        Args:
            api_key: Google API key (default: GOOGLE_API_KEY env var)
            model: Model to use (default: gemini-2.5-flash)
        """
        from google import genai

        self.api_key = api_key or os.getenv("GOOGLE_API_KEY")
        if not self.api_key:
            raise ValueError("GOOGLE_API_KEY not found in environment")

        self.client = genai.Client(api_key=self.api_key)
        self.model = model

    def stream(self, prompt: str, options: GenerationOptions) -> Iterator[str]:
        """Stream a completion from Gemini."""
        config: dict[str, Any] = {
            "max_output_tokens": options.max_tokens,
            "temperature": options.temperature,
            "top_p": options.top_p,
        }
        if options.stop_sequences:
            config["stop_sequences"] = list(options.stop_sequences[:GEMINI_MAX_STOP_SEQUENCES])

        response = self.client.models.generate_content_stream(
            model=self.model,
            contents=prompt,
            config=config,
        )

        for chunk in response:
            if chunk.text:
                yield chunk.text


class OllamaBackend(GenerativeBackend):
    """
    Local model served by Ollama.

    The server is probed on construction so that an unreachable Ollama
    surfaces during backend acquisition rather than mid-summary.
    """

    def __init__(
        self,
        api_base: str = "http://localhost:11434",
        model: str = "gemma3:1b",
        timeout: int = 600
    ):
        """
        Initialize Ollama backend.

        Args:
            api_base: Ollama REST endpoint (default: http://localhost:11434)
            model: Model tag to generate with (default: gemma3:1b)
            timeout: Request timeout in seconds (default: 600)

        Raises:
            BackendUnavailableError: If the Ollama server cannot be reached
        """
        self.api_base = api_base.rstrip("/")
        self.model = model
        self.timeout = timeout
        self._check_connection()

    def _check_connection(self) -> None:
        """Fail fast when the Ollama server is not answering."""
        try:
            response = requests.get(f"{self.api_base}/api/tags", timeout=5)
        except requests.exceptions.RequestException as e:
            raise BackendUnavailableError(
                f"Cannot reach Ollama at {self.api_base}: {e}"
            ) from e

        if response.status_code != 200:
            raise BackendUnavailableError(
                f"Ollama returned status {response.status_code}"
            )
        logger.debug("Connected to Ollama at %s", self.api_base)

    def stream(self, prompt: str, options: GenerationOptions) -> Iterator[str]:
        """Stream a completion from the local model."""
        payload: dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "stream": True,
            "options": {
                "num_predict": options.max_tokens,
                "stop": list(options.stop_sequences),
                "temperature": options.temperature,
                "top_p": options.top_p,
            },
        }

        with requests.post(
            f"{self.api_base}/api/generate",
            json=payload,
            stream=True,
            timeout=self.timeout,
        ) as response:
            response.raise_for_status()
            for line in response.iter_lines():
                if not line:
                    continue
                data: dict[str, Any] = json.loads(line)
                if "error" in data:
                    raise BackendUnavailableError(f"Ollama error: {data['error']}")
                token: str = data.get("response", "")
                if token:
                    yield token
                if data.get("done"):
                    break


def create_backend(
    provider_name: ProviderName,
    **provider_kwargs: Any
) -> GenerativeBackend:
    """
    Factory function to create a generative backend.

    Args:
        provider_name: Backend to use ('anthropic', 'openai', 'gemini' or 'ollama')
        **provider_kwargs: Arguments passed to the backend constructor

    Returns:
        Configured backend instance

    Raises:
        ValueError: If the provider is unknown or its API key is missing
    """
    backend: GenerativeBackend

    if provider_name == "anthropic":
        backend = AnthropicBackend(**provider_kwargs)
    elif provider_name == "openai":
        backend = OpenAIBackend(**provider_kwargs)
    elif provider_name == "gemini":
        backend = GeminiBackend(**provider_kwargs)
    elif provider_name == "ollama":
        backend = OllamaBackend(**provider_kwargs)
    else:
        raise ValueError(f"Unsupported provider: {provider_name}")

    return backend
