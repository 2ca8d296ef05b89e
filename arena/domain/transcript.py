from __future__ import annotations

HARD_BREAK = "\n"


def join_transcript(prefix: str, text: str) -> str:
    """Append `text` to `prefix`, space-separated unless the prefix ends a line."""
    text = text.strip()
    if not text:
        return prefix
    if not prefix or prefix.endswith(HARD_BREAK):
        return prefix + text
    return f"{prefix} {text}"


def last_line(transcript: str) -> str:
    return transcript.rsplit(HARD_BREAK, 1)[-1].strip()
