from __future__ import annotations

from typing import Protocol


class SentenceDetector(Protocol):
    def is_complete_sentence(self, fragment: str) -> bool:
        """Return True when `fragment` can plausibly end a sentence."""
        ...
