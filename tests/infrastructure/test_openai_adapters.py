"""Unit tests for the OpenAI-compatible transcription and sentence adapters."""
from __future__ import annotations

import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock

from openai import OpenAIError

from arena.domain.errors import ProtocolError, TransportError
from arena.infrastructure.openai.sentence_detector import OpenAISentenceDetector
from arena.infrastructure.openai.speech_to_text import SpeechToText, base_url_for


def chat_response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class TestSpeechToText(unittest.TestCase):
    """Test cases for SpeechToText."""

    def setUp(self):
        """Set up test fixtures."""
        self.client = MagicMock()
        self.stt = SpeechToText(client=self.client, model="whisper-large-v3", language="en")

    def test_uploads_wav_and_returns_stripped_text(self):
        """Test uploads WAV and returns stripped text."""
        self.client.audio.transcriptions.create.return_value = SimpleNamespace(text=" Hello there. ")

        text = self.stt.transcribe(b"RIFF....", prompt="Earlier words")

        self.assertEqual(text, "Hello there.")
        self.client.audio.transcriptions.create.assert_called_once_with(
            file=("audio.wav", b"RIFF....", "audio/wav"),
            model="whisper-large-v3",
            language="en",
            prompt="Earlier words",
        )

    def test_prompt_is_omitted_when_empty(self):
        """Test prompt is omitted when empty."""
        self.client.audio.transcriptions.create.return_value = SimpleNamespace(text="hi")

        self.stt.transcribe(b"RIFF....")

        kwargs = self.client.audio.transcriptions.create.call_args.kwargs
        self.assertNotIn("prompt", kwargs)

    def test_missing_text_is_protocol_error(self):
        """Test missing text is protocol error."""
        self.client.audio.transcriptions.create.return_value = SimpleNamespace(error="bad")

        with self.assertRaises(ProtocolError):
            self.stt.transcribe(b"RIFF....")

    def test_sdk_failure_is_transport_error(self):
        """Test SDK failure is transport error."""
        self.client.audio.transcriptions.create.side_effect = OpenAIError("timeout")

        with self.assertRaises(TransportError):
            self.stt.transcribe(b"RIFF....")

    def test_base_url_for_strips_endpoint_path(self):
        """Test base URL for strips endpoint path."""
        self.assertEqual(
            base_url_for("https://api.groq.com/openai/v1/audio/transcriptions"),
            "https://api.groq.com/openai/v1",
        )
        self.assertEqual(base_url_for("https://api.openai.com/v1/"), "https://api.openai.com/v1")


class TestOpenAISentenceDetector(unittest.TestCase):
    """Test cases for OpenAISentenceDetector."""

    def setUp(self):
        """Set up test fixtures."""
        self.client = MagicMock()
        self.detector = OpenAISentenceDetector(client=self.client, model="llama-3.1-8b-instant")

    def test_yes_means_complete(self):
        """Test yes means complete."""
        self.client.chat.completions.create.return_value = chat_response("Yes.")

        self.assertTrue(self.detector.is_complete_sentence("I went home."))

        kwargs = self.client.chat.completions.create.call_args.kwargs
        self.assertEqual(kwargs["model"], "llama-3.1-8b-instant")
        self.assertEqual(kwargs["max_tokens"], 10)
        self.assertEqual(kwargs["temperature"], 0)
        self.assertIn('Fragment: "I went home."', kwargs["messages"][0]["content"])

    def test_no_means_incomplete(self):
        """Test no means incomplete."""
        self.client.chat.completions.create.return_value = chat_response("No")

        self.assertFalse(self.detector.is_complete_sentence("I went"))

    def test_empty_fragment_skips_the_call(self):
        """Test empty fragment skips the call."""
        self.assertFalse(self.detector.is_complete_sentence("   "))
        self.client.chat.completions.create.assert_not_called()

    def test_no_choices_is_protocol_error(self):
        """Test no choices is protocol error."""
        self.client.chat.completions.create.return_value = SimpleNamespace(choices=[])

        with self.assertRaises(ProtocolError):
            self.detector.is_complete_sentence("Done.")

    def test_sdk_failure_is_transport_error(self):
        """Test SDK failure is transport error."""
        self.client.chat.completions.create.side_effect = OpenAIError("rate limited")

        with self.assertRaises(TransportError):
            self.detector.is_complete_sentence("Done.")


if __name__ == "__main__":
    unittest.main()
