from functools import wraps
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from chat_core.domain.exceptions import ToolExecutionError
from chat_core.infrastructure.logging.logger import logger
from .definitions import Tool, ToolCall, ToolDef, ToolResult


ToolCallHandler = Callable[[ToolCall], ToolResult]
ToolMiddleware = Callable[[ToolCallHandler], ToolCallHandler]

TOOL_ERROR_TEMPLATE = "Tool error: Please check your input and try again. ({error})"

_TYPE_CHECKS: Dict[str, Callable[[Any], bool]] = {
    "string": lambda v: isinstance(v, str),
    "integer": lambda v: isinstance(v, int) and not isinstance(v, bool),
    "number": lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
    "boolean": lambda v: isinstance(v, bool),
}


def handle_tool_errors(handler: ToolCallHandler) -> ToolCallHandler:
    """把工具执行中的任何异常转换为交给模型的错误文本。

    返回的函数与 handler 签名相同；结果始终带着原始 call_id，
    因此一次工具失败不会中断整个 Agent 循环。
    """

    @wraps(handler)
    def _wrapped(call: ToolCall) -> ToolResult:
        try:
            return handler(call)
        except Exception as exc:
            logger.error(
                "Tool execution failed",
                extra={"extra": {"tool_name": call.name, "tool_call_id": call.id, "error": str(exc)}},
            )
            return ToolResult(call_id=call.id, content=TOOL_ERROR_TEMPLATE.format(error=exc))

    return _wrapped


def validate_arguments(definition: ToolDef, arguments: Dict[str, Any]) -> Dict[str, Any]:
    """按 ToolDef 声明检查必填参数与基础类型，只返回已声明的参数。"""

    if "_raw" in arguments and "_raw" not in definition.params:
        raise ToolExecutionError(
            code="INVALID_TOOL_ARGUMENTS",
            message=f"arguments for {definition.name} are not valid JSON: {arguments['_raw']!r}",
        )
    cleaned: Dict[str, Any] = {}
    for name, param_def in definition.params.items():
        value = arguments.get(name)
        if value is None:
            if param_def.required:
                raise ToolExecutionError(
                    code="INVALID_TOOL_ARGUMENTS",
                    message=f"missing required argument '{name}' for {definition.name}",
                )
            continue
        check = _TYPE_CHECKS.get(param_def.type)
        if check and not check(value):
            raise ToolExecutionError(
                code="INVALID_TOOL_ARGUMENTS",
                message=f"argument '{name}' of {definition.name} must be {param_def.type}, got {type(value).__name__}",
            )
        cleaned[name] = value
    return cleaned


class ToolExecutor:
    """按名称分发 ToolCall，并套上中间件（默认只有 handle_tool_errors）。"""

    def __init__(self, tools: Iterable[Tool], middleware: Optional[Sequence[ToolMiddleware]] = None):
        self._tools: Dict[str, Tool] = {}
        for item in tools:
            if item.name in self._tools:
                raise ValueError(f"Duplicate tool name: {item.name}")
            self._tools[item.name] = item
        if middleware is None:
            middleware = [handle_tool_errors]
        handler: ToolCallHandler = self._dispatch
        # 列表中第一个中间件位于最外层
        for mw in reversed(list(middleware)):
            handler = mw(handler)
        self._handler = handler

    @property
    def definitions(self) -> List[ToolDef]:
        return [t.definition for t in self._tools.values()]

    def names(self) -> List[str]:
        return list(self._tools)

    def execute(self, call: ToolCall) -> ToolResult:
        return self._handler(call)

    def _dispatch(self, call: ToolCall) -> ToolResult:
        item = self._tools.get(call.name)
        if item is None:
            raise ToolExecutionError(code="UNKNOWN_TOOL", message=f"Unknown tool {call.name}")
        arguments = validate_arguments(item.definition, call.arguments or {})
        content = item(arguments)
        return ToolResult(call_id=call.id, content="" if content is None else str(content))
