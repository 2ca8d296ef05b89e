from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv as dotenv_load_dotenv


def load_dotenv(env_file: str | None) -> bool:
    """Load environment variables from a dotenv file if present.

    Variables already set in the environment win over the file.
    """

    if not env_file or not Path(env_file).is_file():
        return False

    return dotenv_load_dotenv(env_file, override=False)
