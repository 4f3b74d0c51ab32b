"""演示用的内置工具。

处理函数只返回模板字符串；真实部署时替换为对后端服务的调用即可，
schema 与名称保持不变。
"""

from typing import Any, Dict, List

from .definitions import Tool, param, tool


def _format_number(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@tool(
    "search",
    "Search for information",
    {"query": param("string", "The query to search for")},
)
def search(args: Dict[str, Any]) -> str:
    return f"Results for: {args['query']}"


@tool(
    "get_weather",
    "Get weather information for a location",
    {"location": param("string", "The location to get weather for")},
)
def get_weather(args: Dict[str, Any]) -> str:
    return f"Weather in {args['location']}: Sunny, 72°F"


@tool(
    "search_database",
    "Search the customer database for records matching the query.",
    {
        "query": param("string", "Search terms to look for"),
        "limit": param("number", "Maximum number of results to return"),
    },
)
def search_database(args: Dict[str, Any]) -> str:
    return f"Found {_format_number(args['limit'])} results for '{args['query']}'"


def default_tools() -> List[Tool]:
    """返回 /tools 端点默认绑定的工具列表。"""

    return [search, get_weather, search_database]
