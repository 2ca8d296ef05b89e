"""Unit tests for AppConfig.from_env."""
from __future__ import annotations

import os
import unittest
from unittest.mock import patch

from arena.config import MAX_SELECTED_BACKENDS, AppConfig


def selected_names(config: AppConfig) -> list[str]:
    return [backend.name for backend in config.selected_backends]


class TestAppConfig(unittest.TestCase):
    """Test cases for AppConfig."""

    @patch.dict(os.environ, {"GROQ_API_KEY": "gsk", "DEEPGRAM_API_KEY": "dg"}, clear=True)
    def test_credentialed_backends_are_selected_by_default(self):
        """Test credentialed backends are selected by default."""
        config = AppConfig.from_env()

        self.assertEqual(selected_names(config), ["GROQ", "DEEPGRAM"])
        groq = next(b for b in config.backends if b.name == "GROQ")
        self.assertEqual(groq.api_key, "gsk")
        self.assertEqual(groq.model, "whisper-large-v3")
        self.assertEqual(groq.text_model, "llama-3.1-8b-instant")

    @patch.dict(
        os.environ,
        {
            "GROQ_API_KEY": "gsk",
            "OPENAI_API_KEY": "sk",
            "DEEPGRAM_API_KEY": "dg",
            "ASSEMBLYAI_API_KEY": "aai",
        },
        clear=True,
    )
    def test_default_selection_is_capped(self):
        """Test default selection is capped."""
        config = AppConfig.from_env()

        self.assertEqual(len(config.selected_backends), MAX_SELECTED_BACKENDS)

    @patch.dict(os.environ, {"ARENA_BACKENDS": "local"}, clear=True)
    def test_local_backend_needs_no_key(self):
        """Test local backend needs no key."""
        config = AppConfig.from_env()

        self.assertEqual(selected_names(config), ["LOCAL"])

    @patch.dict(os.environ, {"DEEPGRAM_API_KEY": "dg", "ARENA_BACKENDS": "LOCAL"}, clear=True)
    def test_explicit_selection_overrides_environment(self):
        """Test explicit selection overrides environment."""
        config = AppConfig.from_env(["deepgram"])

        self.assertEqual(selected_names(config), ["DEEPGRAM"])

    @patch.dict(os.environ, {"GROQ_API_KEY": "  "}, clear=True)
    def test_blank_key_counts_as_missing(self):
        """Test blank key counts as missing."""
        with self.assertRaises(ValueError):
            AppConfig.from_env(["GROQ"])

    @patch.dict(os.environ, {}, clear=True)
    def test_nothing_selectable_is_an_error(self):
        """Test nothing selectable is an error."""
        with self.assertRaises(ValueError):
            AppConfig.from_env()

    @patch.dict(os.environ, {}, clear=True)
    def test_unknown_backend_is_an_error(self):
        """Test unknown backend is an error."""
        with self.assertRaises(ValueError):
            AppConfig.from_env(["WHISPERX"])

    @patch.dict(
        os.environ,
        {"GROQ_API_KEY": "g", "OPENAI_API_KEY": "o", "DEEPGRAM_API_KEY": "d", "ASSEMBLYAI_API_KEY": "a"},
        clear=True,
    )
    def test_too_many_backends_is_an_error(self):
        """Test too many backends is an error."""
        with self.assertRaises(ValueError):
            AppConfig.from_env(["GROQ", "OPENAI", "DEEPGRAM", "ASSEMBLYAI"])

    @patch.dict(
        os.environ,
        {
            "ARENA_BACKENDS": "LOCAL",
            "ARENA_BATCH_SIZE": "3",
            "ARENA_CAPTURE_WINDOW_SECONDS": "0.25",
            "ARENA_LANGUAGE": "de",
            "ARENA_INPUT_DEVICE": "2",
            "ARENA_LOCAL_MODEL": "small.en",
        },
        clear=True,
    )
    def test_pipeline_settings(self):
        """Test pipeline settings."""
        config = AppConfig.from_env()

        self.assertEqual(config.pipeline.batch_size, 3)
        self.assertAlmostEqual(config.pipeline.capture_window_seconds, 0.25)
        self.assertEqual(config.pipeline.language, "de")
        self.assertEqual(config.pipeline.input_device, 2)
        local = next(b for b in config.backends if b.name == "LOCAL")
        self.assertEqual(local.model, "small.en")

    @patch.dict(os.environ, {"ARENA_BACKENDS": "LOCAL", "ARENA_BATCH_SIZE": "0"}, clear=True)
    def test_batch_size_must_be_positive(self):
        """Test batch size must be positive."""
        with self.assertRaises(ValueError):
            AppConfig.from_env()

    @patch.dict(
        os.environ, {"ARENA_BACKENDS": "LOCAL", "ARENA_CAPTURE_WINDOW_SECONDS": "soon"}, clear=True
    )
    def test_capture_window_must_be_a_number(self):
        """Test capture window must be a number."""
        with self.assertRaises(ValueError):
            AppConfig.from_env()


if __name__ == "__main__":
    unittest.main()
