from __future__ import annotations

from dataclasses import dataclass

from arena.domain.transcript import HARD_BREAK, join_transcript

DEFAULT_WINDOW_CAPACITY = 4

# Whisper-style models answer silence with these. Matched after stripping.
NOISE_PHRASES = frozenset(
    {
        "you",
        "You",
        "you.",
        "Thank you.",
        "Thank you!",
        "Thanks for watching!",
        "Thank you for watching.",
        "Thank you for watching!",
        "Bye.",
        ".",
    }
)


@dataclass(frozen=True)
class TranscriptFragment:
    text: str
    batch_count: int
    # Left over from a fold: continues the committed text exactly as cut.
    remainder: bool = False

    def append_to(self, prefix: str) -> str:
        if self.remainder:
            return prefix + self.text
        return join_transcript(prefix, self.text)


@dataclass(frozen=True)
class StabilizationUpdate:
    transcript: str
    # Number of leading batches the caller must drop from its audio buffer.
    folded_batches: int = 0
    # Set when the transcript stopped changing: ask whether this line is finished.
    completeness_check: str | None = None


class StabilizationEngine:
    """Turns repeated full-buffer transcriptions into one non-regressing transcript.

    Each result re-transcribes everything still buffered, so consecutive
    results share a growing prefix and disagree near the tail. Once the
    oldest result in the window is a literal prefix of every later one it is
    committed, and the audio that produced it can be dropped.
    """

    def __init__(
        self,
        *,
        window_capacity: int = DEFAULT_WINDOW_CAPACITY,
        noise_phrases: frozenset[str] = NOISE_PHRASES,
    ) -> None:
        if window_capacity < 2:
            raise ValueError("window_capacity must be at least 2.")
        self.window_capacity = window_capacity
        self.noise_phrases = noise_phrases

        self.committed = ""
        self.folded_batches = 0
        self._window: list[TranscriptFragment] = []
        self._shown = ""

    @property
    def window(self) -> tuple[TranscriptFragment, ...]:
        return tuple(self._window)

    @property
    def transcript(self) -> str:
        return self._shown

    def ingest(self, text: str, batch_count: int) -> StabilizationUpdate:
        """Add one transcription of the first `batch_count` buffered batches."""
        self._window.append(TranscriptFragment(self._filter(text), batch_count))

        folded = 0
        if len(self._window) >= self.window_capacity:
            folded = self._converge()

        transcript = self._window[-1].append_to(self.committed)

        check = None
        if (
            transcript == self._shown
            and transcript
            and not transcript.endswith(HARD_BREAK)
        ):
            check = transcript

        self._shown = transcript
        return StabilizationUpdate(
            transcript=transcript, folded_batches=folded, completeness_check=check
        )

    def finalize(self, snapshot: str) -> bool:
        """Commit `snapshot` as a finished line unless a newer transcript replaced it."""
        if not snapshot or snapshot != self._shown:
            return False

        self.committed = snapshot + HARD_BREAK
        self._window.clear()
        self._shown = self.committed
        return True

    def reset(self) -> None:
        self.committed = ""
        self.folded_batches = 0
        self._window.clear()
        self._shown = ""

    def _filter(self, text: str) -> str:
        if text.strip() in self.noise_phrases:
            return ""
        return text

    def _converge(self) -> int:
        first, rest = self._window[0], self._window[1:]
        # Remainders of an earlier fold keep their leading space; fresh results do not.
        prefix = first.text.lstrip()

        # Empty results carry no new text and never block a fold.
        if not all(
            fragment.text.lstrip().startswith(prefix) for fragment in rest if fragment.text
        ):
            # The oldest result was revised away.
            del self._window[0]
            return 0

        # Cut literally: what is left may start mid-word or with punctuation.
        self._window = [
            TranscriptFragment(
                text=fragment.text.lstrip()[len(prefix):],
                batch_count=fragment.batch_count - first.batch_count,
                remainder=fragment.remainder or bool(prefix),
            )
            for fragment in rest
        ]
        self.committed = first.append_to(self.committed)
        self.folded_batches += first.batch_count
        return first.batch_count
