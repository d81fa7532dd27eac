"""Test helpers to stub the OpenAI Responses client used by ``insights.py``.

The stub records each ``responses.create`` call and returns a canned
``output_text``. Tests decode the ``Data: [...]`` payload from the recorded
``input`` with :func:`extract_summary` to assert on what would be sent.
"""

from __future__ import annotations

import json
from typing import Any

PREFIX = "Data: "


def extract_summary(user_content: str) -> list[dict[str, Any]]:
    if not user_content.startswith(PREFIX):
        raise AssertionError("insights: user content missing 'Data: ' prefix")
    return json.loads(user_content[len(PREFIX) :])


class OpenAIStub:
    """Minimal stub matching ``openai.OpenAI`` shape for ``insights.py``.

    Parameters
    ----------
    text:
        Value returned as ``output_text``; ``None`` simulates an empty answer.
    calls_out:
        A list that will be appended with each call's kwargs.
    """

    def __init__(self, text: str | None, calls_out: list[dict[str, Any]] | None = None) -> None:
        self._text = text
        self._calls = calls_out if calls_out is not None else []

        class _Responses:
            def __init__(self, outer: OpenAIStub) -> None:
                self._outer = outer

            def create(self, **kwargs):
                self._outer._calls.append(kwargs)

                class _Resp:
                    output_text: str | None
                    output: list[Any]

                resp = _Resp()
                resp.output_text = self._outer._text
                resp.output = []
                return resp

        self.responses = _Responses(self)

    @property
    def calls(self) -> list[dict[str, Any]]:
        return self._calls
