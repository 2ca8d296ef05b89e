from __future__ import annotations

from openai import OpenAI, OpenAIError

from arena.domain.errors import ProtocolError, TransportError

PROMPT_TEMPLATE = (
    "Can the following fragment be the end of a sentence? It does not have to be a complete\n"
    "well-formed sentence, just the possible end of a sentence.\n"
    "Answer with just 'Yes' or 'No'.\n"
    'Fragment: "{fragment}"'
)


class OpenAISentenceDetector:
    def __init__(self, client: OpenAI, model: str):
        self._client = client
        self._model = model

    def is_complete_sentence(self, fragment: str) -> bool:
        fragment = fragment.strip()
        if not fragment:
            return False

        try:
            response = self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": PROMPT_TEMPLATE.format(fragment=fragment)}],
                max_tokens=10,
                temperature=0,
            )
        except OpenAIError as e:
            raise TransportError(str(e)) from e

        choices = response.choices
        if not choices:
            raise ProtocolError("Chat completion returned no choices.", payload=response)

        answer = (choices[0].message.content or "").strip().lower()
        return answer.rstrip(".!") == "yes"
