"""
Routing between a generative backend and the extractive fallback.

BackendGate acquires the generative backend at most once, then sends every
summary request either to that backend or to SummaryEngine. Backend failures
never reach the caller; they are logged and answered by the fallback engine.
"""

from enum import Enum
from typing import Callable, Iterator
import logging
import threading

from .backends import GenerationOptions, GenerativeBackend, TokenCallback, cut_at_stop
from .engine import SummaryEngine, SummaryResult
from .errors import BackendUnavailableError, EmptyInputError
from .extractive import LengthTier, segment

logger = logging.getLogger(__name__)

BackendFactory = Callable[[], GenerativeBackend | None]

# End-of-turn / end-of-text markers across common model families
STOP_MARKERS: tuple[str, ...] = (
    "</s>",
    "<|end|>",
    "<|eot_id|>",
    "<|end_of_text|>",
    "<|im_end|>",
    "<|EOT|>",
    "<|END_OF_TURN_TOKEN|>",
    "<|end_of_turn|>",
    "<|endoftext|>",
)

LENGTH_INSTRUCTIONS: dict[LengthTier, str] = {
    LengthTier.SHORT: "Write a brief 1-2 sentence summary.",
    LengthTier.MEDIUM: "Write a concise 3-4 sentence summary.",
    LengthTier.LARGE: "Write a detailed 5-6 sentence summary.",
}

SUMMARY_OPTIONS = GenerationOptions(
    max_tokens=200,
    stop_sequences=STOP_MARKERS,
    temperature=0.7,
    top_p=0.9,
)


class BackendState(Enum):
    """Lifecycle of the generative backend."""
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FALLBACK = "fallback"

    @property
    def is_terminal(self) -> bool:
        return self in (BackendState.READY, BackendState.FALLBACK)


def build_prompt(text: str, tier: LengthTier) -> str:
    """
    Build the summarization prompt for a generative backend.

    Args:
        text: Recognized text to summarize
        tier: Length tier selecting the sentence-count instruction

    Returns:
        Prompt text ending with the 'Summary:' cue
    """
    return (
        f"Please summarize the following text. {LENGTH_INSTRUCTIONS[tier]}\n\n"
        f"Text to summarize:\n{text}\n\n"
        f"Summary:"
    )


def _pending_stop_length(text: str, stop_sequences: tuple[str, ...]) -> int:
    """Length of the longest text suffix that begins some stop sequence."""
    return max(
        (
            size
            for stop in stop_sequences
            for size in range(1, len(stop))
            if text.endswith(stop[:size])
        ),
        default=0,
    )


class SummaryStream:
    """
    Summary tokens produced lazily for a single request.

    Iterating yields tokens as the backend generates them. result() drains
    whatever is left and returns the final summary, which is the same
    whether or not the caller consumed any tokens.

    Text from a stop sequence onwards is never yielded. A token tail that
    could be the start of a stop sequence is held back until the next token
    settles it, and the source is closed once a stop sequence appears.
    """

    def __init__(
        self,
        tokens: Iterator[str],
        finalize: Callable[[str], str],
        recover: Callable[[BackendUnavailableError], str] | None = None,
        stop_sequences: tuple[str, ...] = ()
    ):
        """
        Args:
            tokens: Lazy token source
            finalize: Turns the concatenated tokens into the summary
            recover: Produces a summary when the token source fails
                (None lets the error propagate)
            stop_sequences: Markers ending the visible token stream
        """
        self._tokens = tokens
        self._finalize = finalize
        self._recover = recover
        self._stop_sequences = stop_sequences
        self._chunks: list[str] = []
        self._released = 0
        self._stopped = False
        self._text: str | None = None

    def __iter__(self) -> Iterator[str]:
        while self._text is None:
            if self._stopped:
                self._close_source()
                self._text = self._complete()
                return
            try:
                token: str = next(self._tokens)
            except StopIteration:
                tail: str = self._release(final=True)
                if tail:
                    yield tail
                self._text = self._complete()
                return
            except BackendUnavailableError as e:
                self._text = self._recover_from(e)
                return
            self._chunks.append(token)
            visible: str = self._release(final=False)
            if visible:
                yield visible

    def _release(self, final: bool) -> str:
        """Return generated text that can be shown and was not shown yet."""
        generated: str = "".join(self._chunks)
        visible: str = cut_at_stop(generated, self._stop_sequences)
        if len(visible) < len(generated):
            self._stopped = True
        elif not final:
            visible = visible[:len(visible) - _pending_stop_length(visible, self._stop_sequences)]

        released: str = visible[self._released:]
        self._released = max(self._released, len(visible))
        return released

    def _close_source(self) -> None:
        close = getattr(self._tokens, "close", None)
        if close is not None:
            close()

    @property
    def done(self) -> bool:
        """Whether the token source has been exhausted."""
        return self._text is not None

    def result(self) -> str:
        """Consume any remaining tokens and return the summary."""
        for _ in self:
            pass
        assert self._text is not None
        return self._text

    def _complete(self) -> str:
        try:
            return self._finalize("".join(self._chunks))
        except BackendUnavailableError as e:
            return self._recover_from(e)

    def _recover_from(self, error: BackendUnavailableError) -> str:
        if self._recover is None:
            raise error
        return self._recover(error)


class BackendGate:
    """
    Decides, per request, between the generative backend and the fallback.

    The backend factory is called at most once, on the first initialize()
    or summarize() call. A factory that is missing, returns None or raises
    leaves the gate in the FALLBACK state for good.
    """

    def __init__(
        self,
        engine: SummaryEngine | None = None,
        backend_factory: BackendFactory | None = None,
        options: GenerationOptions = SUMMARY_OPTIONS
    ):
        """
        Initialize the gate.

        Args:
            engine: Extractive engine used as fallback (default: new SummaryEngine)
            backend_factory: Callable acquiring the generative backend
            options: Generation options sent with every backend request
        """
        self.engine = engine or SummaryEngine()
        self.options = options
        self._backend_factory = backend_factory
        self._backend: GenerativeBackend | None = None
        self._state = BackendState.UNINITIALIZED
        self._condition = threading.Condition()

    @property
    def state(self) -> BackendState:
        with self._condition:
            return self._state

    @property
    def backend(self) -> GenerativeBackend | None:
        with self._condition:
            return self._backend

    def initialize(self) -> BackendState:
        """
        Acquire the generative backend if that has not happened yet.

        Callers arriving while another thread is acquiring wait for that
        attempt instead of starting their own.

        Returns:
            Terminal state: READY or FALLBACK
        """
        with self._condition:
            while self._state is BackendState.INITIALIZING:
                self._condition.wait()
            if self._state.is_terminal:
                return self._state
            self._state = BackendState.INITIALIZING

        backend: GenerativeBackend | None = None
        state = BackendState.FALLBACK
        try:
            backend = self._acquire()
            if backend is not None:
                state = BackendState.READY
        finally:
            with self._condition:
                self._backend = backend
                self._state = state
                self._condition.notify_all()

        logger.info("Summarization backend state: %s", state.value)
        return state

    def _acquire(self) -> GenerativeBackend | None:
        if self._backend_factory is None:
            logger.info("No generative backend configured, using fallback summarization")
            return None
        try:
            backend = self._backend_factory()
        except Exception as e:
            logger.warning("Failed to initialize generative backend: %s", e)
            return None
        if backend is None:
            logger.info("Generative backend unavailable, using fallback summarization")
        return backend

    def stream(self, text: str, tier: LengthTier | str = LengthTier.MEDIUM) -> SummaryStream:
        """
        Start a summary and expose its tokens as they are produced.

        Args:
            text: Recognized text to summarize
            tier: Length tier (or its name)

        Returns:
            SummaryStream for this request

        Raises:
            EmptyInputError: If the text contains no sentences
        """
        if not text.strip() or not segment(text):
            raise EmptyInputError("No text found to summarize")

        length: LengthTier = LengthTier.from_value(tier)
        state: BackendState = self.initialize()

        if state is BackendState.READY:
            return SummaryStream(
                tokens=self._generate(build_prompt(text, length)),
                finalize=self._finalize_generation,
                recover=lambda error: self._fall_back(error, text, length),
                stop_sequences=self.options.stop_sequences,
            )

        return SummaryStream(
            tokens=iter((self.engine.summarize(text, length),)),
            finalize=lambda summary: summary,
        )

    def summarize(
        self,
        text: str,
        tier: LengthTier | str = LengthTier.MEDIUM,
        on_token: TokenCallback | None = None
    ) -> str:
        """
        Summarize text with the backend, falling back to the extractive engine.

        Args:
            text: Recognized text to summarize
            tier: Length tier (or its name)
            on_token: Optional callback receiving each produced token

        Returns:
            Summary text

        Raises:
            EmptyInputError: If the text contains no sentences
        """
        stream = self.stream(text, tier)
        for token in stream:
            if on_token is not None:
                on_token(token)
        return stream.result()

    def analyze(
        self,
        text: str,
        tier: LengthTier | str = LengthTier.MEDIUM,
        on_token: TokenCallback | None = None
    ) -> SummaryResult:
        """Summarize the text and derive its title."""
        summary: str = self.summarize(text, tier, on_token=on_token)
        return SummaryResult(summary=summary, title=self.engine.title(text))

    def _generate(self, prompt: str) -> Iterator[str]:
        backend = self.backend
        assert backend is not None
        try:
            yield from backend.stream(prompt, self.options)
        except Exception as e:
            raise BackendUnavailableError(f"Backend generation failed: {e}") from e

    def _finalize_generation(self, generated: str) -> str:
        # Same cut as GenerativeBackend.complete()
        summary: str = cut_at_stop(generated, self.options.stop_sequences).strip()
        if not summary:
            raise BackendUnavailableError("Backend returned an empty summary")
        return summary

    def _fall_back(self, error: BackendUnavailableError, text: str, tier: LengthTier) -> str:
        logger.warning("Error with AI summarization, using fallback: %s", error)
        return self.engine.summarize(text, tier)
