"""In-process conversation memory for multi-turn chats."""

from __future__ import annotations

from typing import get_args

from letters_rag.models.entities import ConversationTurn, Role

_ROLES = frozenset(get_args(Role))


class ConversationMemory:
    """Ordered turns of one conversation session."""

    def __init__(self) -> None:
        self._turns: list[ConversationTurn] = []

    def add(self, role: Role, content: str) -> None:
        if role not in _ROLES:
            raise ValueError(f"Unknown role {role!r}; expected one of {sorted(_ROLES)}")
        self._turns.append(ConversationTurn(role=role, content=content))

    def get(self) -> list[ConversationTurn]:
        return list(self._turns)

    def clear(self) -> None:
        self._turns = []

    def __len__(self) -> int:
        return len(self._turns)


__all__ = ["ConversationMemory"]
