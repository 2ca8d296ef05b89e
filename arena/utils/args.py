from __future__ import annotations

import argparse


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="transcriber-arena",
        description="Stream the microphone to several speech-to-text backends and compare them live.",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to .env file (default: .env). Use empty to disable.",
    )
    parser.add_argument(
        "--backends",
        default=None,
        help="Comma separated backends to compare, e.g. GROQ,DEEPGRAM (overrides ARENA_BACKENDS).",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Stop after this many seconds (default: run until Ctrl-C).",
    )
    parser.add_argument(
        "--save-log",
        action="store_true",
        help="Write the session log to logs/ on exit.",
    )
    parser.add_argument(
        "--list-devices",
        action="store_true",
        help="List audio input devices and exit.",
    )
    return parser.parse_args(argv)
