"""LangGraph construction and node implementations."""

from __future__ import annotations

from langgraph.graph import END, StateGraph
from langgraph.graph.state import CompiledStateGraph

from chat_core.domain.models import ChatMessage, ChatRequest
from chat_core.flows.state import AgentState
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers.base import ToolBoundModel
from chat_core.tools.executor import ToolExecutor

FINAL_HINT = "工具调用次数已达上限。请根据上面已有的工具结果直接回答用户，不要再调用任何工具。"


def _request(model: ToolBoundModel, state: AgentState, tool_choice: str, extra=None) -> ChatRequest:
    messages = list(state["messages"]) + list(extra or [])
    return ChatRequest(provider=model.name, model=model.model, messages=messages, tool_choice=tool_choice)


def model_node(state: AgentState, model: ToolBoundModel) -> AgentState:
    logger.info("model_node.start", extra={"extra": {"messages": len(state["messages"]), "round": state.get("rounds", 0)}})
    reply = model.chat(_request(model, state, "auto")).message
    state["messages"].append(reply)
    if reply.tool_calls:
        logger.info(
            "model_node.tool_calls",
            extra={"extra": {"tools": [c.name for c in reply.tool_calls], "ids": [c.id for c in reply.tool_calls]}},
        )
    else:
        logger.info("model_node.final")
    return state


def tool_node(state: AgentState, executor: ToolExecutor) -> AgentState:
    calls = state["messages"][-1].tool_calls or []
    state["rounds"] = state.get("rounds", 0) + 1
    logger.info("tool_node.execute", extra={"extra": {"round": state["rounds"], "calls": len(calls)}})
    for call in calls:
        result = executor.execute(call)
        state["messages"].append(ChatMessage(role="tool", content=result.content, tool_call_id=result.call_id))
    return state


def final_answer_node(state: AgentState, model: ToolBoundModel) -> AgentState:
    logger.warning("final_answer_node.forced", extra={"extra": {"rounds": state.get("rounds", 0)}})
    hint = ChatMessage(role="user", content=FINAL_HINT)
    reply = model.chat(_request(model, state, "none", [hint])).message
    # tool_choice=none 下仍返回的工具调用不会被执行，直接丢弃
    state["messages"].append(ChatMessage(role="assistant", content=reply.content, meta=reply.meta))
    state["forced_final"] = True
    return state


def model_router(state: AgentState) -> str:
    if state["messages"][-1].tool_calls:
        return "tools"
    return END


def tool_router(state: AgentState) -> str:
    if state.get("rounds", 0) >= state.get("max_rounds", 1):
        return "final"
    return "model"


def build_graph(model: ToolBoundModel, executor: ToolExecutor) -> CompiledStateGraph:
    graph = StateGraph(AgentState)
    graph.add_node("model", lambda s: model_node(s, model))
    graph.add_node("tools", lambda s: tool_node(s, executor))
    graph.add_node("final", lambda s: final_answer_node(s, model))
    graph.set_entry_point("model")
    graph.add_conditional_edges("model", model_router, {"tools": "tools", END: END})
    graph.add_conditional_edges("tools", tool_router, {"model": "model", "final": "final"})
    graph.add_edge("final", END)
    return graph.compile()
