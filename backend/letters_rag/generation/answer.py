"""Answer generation from retrieved context."""

from __future__ import annotations

import logging
from typing import Any, Protocol, Sequence

from letters_rag.core.errors import GenerationFailure
from letters_rag.generation.prompts import build_answer_prompt
from letters_rag.models.entities import ConversationTurn

logger = logging.getLogger(__name__)


class ChatModel(Protocol):
    def invoke(self, input: Any) -> Any: ...


class AnswerGenerator:
    """Ask a chat model to answer a question from assembled context only."""

    def __init__(self, chat_model: ChatModel, corpus_name: str) -> None:
        self.chat_model = chat_model
        self.corpus_name = corpus_name

    def generate(
        self,
        question: str,
        context: str,
        history: Sequence[ConversationTurn] | None = None,
    ) -> str:
        messages = build_answer_prompt(question, context, corpus=self.corpus_name, history=history)
        try:
            reply = self.chat_model.invoke(messages)
        except Exception as exc:
            raise GenerationFailure(f"Generation call failed: {exc}") from exc
        content = _text_of(reply)
        if not content:
            raise GenerationFailure("Generation model returned an empty answer")
        return content


def _text_of(reply: Any) -> str:
    content = getattr(reply, "content", reply)
    if isinstance(content, list):
        # Multi-part messages carry text blocks as dicts or plain strings.
        content = "".join(part.get("text", "") if isinstance(part, dict) else str(part) for part in content)
    return str(content or "").strip()


__all__ = ["AnswerGenerator", "ChatModel"]
