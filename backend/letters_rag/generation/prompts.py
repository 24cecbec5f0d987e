"""Prompt templates for context-constrained answering.

The grounding contract lives entirely in these instructions: the model is told
to answer only from the supplied chunks, to say so when they are not enough,
and to cite ``[Chunk N]`` markers. Nothing checks the reply afterwards.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

    from letters_rag.models.entities import ConversationTurn

INSUFFICIENT_CONTEXT_REPLY = "The provided context does not contain sufficient information to answer this question."

ANSWER_SYSTEM = """\
You are a financial analyst answering STRICTLY and EXCLUSIVELY from the provided context taken from {corpus}.

CRITICAL RULES:
1. You MUST ONLY use information from the provided context.
2. DO NOT use any knowledge from your training data.
3. If the context does not contain enough information to answer the question, say "{insufficient}"
4. Always cite which chunk(s) you used by referencing the chunk markers [Chunk 1], [Chunk 2], etc.
5. If you cannot answer from the context, explicitly state that the information is not available in the provided {corpus}.
"""

ANSWER_USER = """\
IMPORTANT: Answer the question ONLY using the context provided below. Do not use any external knowledge.

Context from {corpus}:
{context}

Question:
{question}

Remember: Only use information from the context above. If the context doesn't contain the answer, explicitly state that.
"""


def build_answer_prompt(
    question: str,
    context: str,
    corpus: str,
    history: Sequence[ConversationTurn] | None = None,
) -> list[BaseMessage]:
    """System rules, then earlier turns of the conversation, then the grounded question."""
    messages: list[BaseMessage] = [
        SystemMessage(content=ANSWER_SYSTEM.format(corpus=corpus, insufficient=INSUFFICIENT_CONTEXT_REPLY)),
    ]
    for turn in history or ():
        if turn.role == "user":
            messages.append(HumanMessage(content=turn.content))
        else:
            messages.append(AIMessage(content=turn.content))
    messages.append(HumanMessage(content=ANSWER_USER.format(corpus=corpus, context=context, question=question)))
    return messages


__all__ = ["ANSWER_SYSTEM", "ANSWER_USER", "INSUFFICIENT_CONTEXT_REPLY", "build_answer_prompt"]
