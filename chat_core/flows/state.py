"""State definition for the tool-calling LangGraph agent."""

from __future__ import annotations

from typing import List, TypedDict

from chat_core.domain.models import ChatMessage


class AgentState(TypedDict, total=False):
    """State shared across LangGraph nodes."""

    messages: List[ChatMessage]
    rounds: int
    max_rounds: int
    forced_final: bool
