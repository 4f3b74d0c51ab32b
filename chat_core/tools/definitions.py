"""工具数据结构定义。

这些 dataclass 描述了"工具调用"的 schema，既用于：
- 将可用工具列表暴露给 LLM（ToolDef / ToolParam）。
- 在 Agent 循环中保存和执行模型触发的工具调用（ToolCall / ToolResult）。
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict


ToolFunc = Callable[[Dict[str, Any]], str]


@dataclass
class ToolParam:
    """单个工具参数的定义。"""

    name: str
    description: str
    required: bool
    schema: Dict[str, Any]

    @property
    def type(self) -> str:
        return str(self.schema.get("type", "string"))


@dataclass
class ToolDef:
    """一个可供 LLM 调用的工具定义。"""

    name: str
    description: str
    params: Dict[str, ToolParam]


@dataclass
class Tool:
    """工具定义与处理函数的组合。

    handler 接收已通过 schema 校验的参数字典，同步返回文本结果。
    """

    definition: ToolDef
    handler: ToolFunc

    @property
    def name(self) -> str:
        return self.definition.name

    def __call__(self, arguments: Dict[str, Any]) -> str:
        return self.handler(arguments)


@dataclass
class ToolCall:
    """模型发起的一次工具调用请求。"""

    id: str
    name: str
    arguments: Dict[str, Any]


@dataclass
class ToolResult:
    """工具执行结果的封装（文本形式），通过 call_id 对应唯一的 ToolCall。"""

    call_id: str
    content: str


def param(type_: str, description: str, required: bool = True) -> ToolParam:
    """声明一个基础类型参数，name 在 tool() 中补全。"""

    return ToolParam(name="", description=description, required=required, schema={"type": type_})


def tool(name: str, description: str, params: Dict[str, ToolParam]) -> Callable[[ToolFunc], Tool]:
    """把一个 `(arguments) -> str` 函数声明为工具。

    用法::

        @tool("search", "Search for information", {"query": param("string", "The query")})
        def search(args):
            return f"Results for: {args['query']}"
    """

    named = {
        key: ToolParam(name=key, description=p.description, required=p.required, schema=dict(p.schema))
        for key, p in params.items()
    }

    def decorator(func: ToolFunc) -> Tool:
        return Tool(definition=ToolDef(name=name, description=description, params=named), handler=func)

    return decorator
