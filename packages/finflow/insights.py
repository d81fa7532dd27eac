"""Free-form spending tips from the OpenAI Responses API.

This is an external collaborator: the pipeline never reads or validates the
returned text. Only a compact summary of the first
:data:`MAX_SUMMARY_TRANSACTIONS` transactions is sent (description, amount,
category, type).

No side effects at import time; the client is created per call so tests can
monkeypatch ``finflow.insights.OpenAI``.
"""

from __future__ import annotations

import json
import os
from collections.abc import Sequence
from typing import Any

from openai import OpenAI

from .logging_setup import get_logger
from .models import Transaction

MAX_SUMMARY_TRANSACTIONS = 50
DEFAULT_MODEL = "gpt-5"
FALLBACK_TEXT = "Could not generate insights right now."

_logger = get_logger("finflow.insights")


def _model() -> str:
    return (os.getenv("FINFLOW_INSIGHTS_MODEL") or "").strip() or DEFAULT_MODEL


def summarize(transactions: Sequence[Transaction]) -> list[dict[str, Any]]:
    return [
        {"d": t.description, "a": float(t.amount), "c": t.category.value, "t": t.type.value}
        for t in transactions[:MAX_SUMMARY_TRANSACTIONS]
    ]


def build_instructions() -> str:
    return (
        "You are a personal finance assistant. Analyze the recent transactions and give "
        "3-4 concise, actionable tips or observations as short bullet points. Focus on "
        "spending patterns, potential savings and category distribution."
    )


def build_user_content(transactions: Sequence[Transaction]) -> str:
    return "Data: " + json.dumps(summarize(transactions), ensure_ascii=False)


def _response_text(resp: Any) -> str | None:
    # Prefer ``output_text``; fall back to the first content block.
    text = getattr(resp, "output_text", None)
    if isinstance(text, str) and text.strip():
        return text
    output = getattr(resp, "output", None) or []
    if output:
        content = getattr(output[0], "content", None) or []
        if content:
            candidate = getattr(content[0], "text", None)
            if isinstance(candidate, str) and candidate.strip():
                return candidate
    return None


def generate_insights(transactions: Sequence[Transaction]) -> str:
    """Return advisory text, or :data:`FALLBACK_TEXT` when the model returns none.

    Raises ``ValueError`` for an empty collection and ``RuntimeError`` when
    ``OPENAI_API_KEY`` is missing. API errors propagate from the SDK.
    """

    if not transactions:
        raise ValueError("no transactions to analyze")
    if not os.getenv("OPENAI_API_KEY"):
        raise RuntimeError("OPENAI_API_KEY environment variable is required for insights")

    client = OpenAI()
    model = _model()
    _logger.info(
        "insights: request model=%s items=%d",
        model,
        min(len(transactions), MAX_SUMMARY_TRANSACTIONS),
    )
    resp = client.responses.create(
        model=model,
        instructions=build_instructions(),
        input=build_user_content(transactions),
    )
    return _response_text(resp) or FALLBACK_TEXT


__all__ = [
    "DEFAULT_MODEL",
    "FALLBACK_TEXT",
    "MAX_SUMMARY_TRANSACTIONS",
    "build_instructions",
    "build_user_content",
    "generate_insights",
    "summarize",
]
