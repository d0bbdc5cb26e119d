"""
Mapping between client conversation turns and provider chat turns.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from app.errors import UnsupportedRoleError
from app.models.schemas import ChatMessage

ROLE_TO_PROVIDER: Dict[str, str] = {
    "user": "user",
    "assistant": "assistant",
    "system": "system",
}
PROVIDER_TO_ROLE: Dict[str, str] = {provider: role for role, provider in ROLE_TO_PROVIDER.items()}


def to_provider_turns(messages: Iterable[ChatMessage]) -> List[Dict[str, Any]]:
    turns: List[Dict[str, Any]] = []
    for message in messages:
        provider_role = ROLE_TO_PROVIDER.get(message.role)
        if provider_role is None:
            raise UnsupportedRoleError(message.role)
        turns.append({"role": provider_role, "content": message.content})
    return turns


def from_provider_turns(turns: Iterable[Dict[str, Any]]) -> List[ChatMessage]:
    messages: List[ChatMessage] = []
    for turn in turns:
        role = PROVIDER_TO_ROLE.get(turn.get("role"))
        if role is None:
            raise UnsupportedRoleError(turn.get("role"))
        messages.append(ChatMessage(role=role, content=turn.get("content") or ""))
    return messages


__all__ = ["ROLE_TO_PROVIDER", "PROVIDER_TO_ROLE", "to_provider_turns", "from_provider_turns"]
