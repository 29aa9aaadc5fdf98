"""
Runtime configuration read from environment variables.

Values may come from a .env file; the CLI loads it with python-dotenv before
calling Settings.from_env().
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping
import os

from .backends import GenerativeBackend, create_backend
from .extractive import LengthTier

PROVIDERS: tuple[str, ...] = ("anthropic", "openai", "gemini", "ollama", "none")

DEFAULT_NOTES_PATH = Path("~/.scan_summarizer/notes.json").expanduser()
DEFAULT_OLLAMA_API_BASE = "http://localhost:11434"


def _env_flag(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Application settings."""
    provider: str = "none"
    model: str | None = None
    default_length: LengthTier = LengthTier.MEDIUM
    notes_path: Path = field(default=DEFAULT_NOTES_PATH)
    ollama_api_base: str = DEFAULT_OLLAMA_API_BASE
    debug: bool = False

    def __post_init__(self) -> None:
        if self.provider not in PROVIDERS:
            raise ValueError(
                f"Unsupported provider: {self.provider} (expected one of {', '.join(PROVIDERS)})"
            )

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            env: Mapping to read instead of os.environ (useful in tests)

        Returns:
            Settings with unset variables left at their defaults
        """
        source: Mapping[str, str] = os.environ if env is None else env

        notes: str | None = source.get("SCAN_SUMMARIZER_NOTES")
        return cls(
            provider=source.get("SCAN_SUMMARIZER_PROVIDER", "none").strip().lower() or "none",
            model=source.get("SCAN_SUMMARIZER_MODEL") or None,
            default_length=LengthTier.from_value(source.get("SCAN_SUMMARIZER_LENGTH", "medium")),
            notes_path=Path(notes).expanduser() if notes else DEFAULT_NOTES_PATH,
            ollama_api_base=source.get("OLLAMA_API_BASE", DEFAULT_OLLAMA_API_BASE),
            debug=_env_flag(source.get("DEBUG")),
        )

    def backend_factory(self) -> Callable[[], GenerativeBackend] | None:
        """
        Return the callable that acquires the configured backend.

        Returns:
            Factory for BackendGate, or None when no provider is configured
        """
        if self.provider == "none":
            return None

        provider_kwargs: dict[str, Any] = {}
        if self.model:
            provider_kwargs["model"] = self.model
        if self.provider == "ollama":
            provider_kwargs["api_base"] = self.ollama_api_base

        provider = self.provider

        def acquire() -> GenerativeBackend:
            return create_backend(provider, **provider_kwargs)  # type: ignore[arg-type]

        return acquire
