"""浏览器消息 → 内部 ChatMessage 的转换。

HTTP 层收到的是 [{role, content}, ...] 形式的原始 JSON，
这里负责校验并转换为 Agent 使用的 ChatMessage 列表。
"""

from typing import Any, List, Mapping

from chat_core.domain.exceptions import InvalidRequestError
from chat_core.domain.models import ChatMessage, WireRole


EMPTY_MESSAGES = "消息不能为空"


def normalize_role(role: Any) -> WireRole:
    """把浏览器传来的 role 映射为内部角色。

    "user" 与 "assistant" 原样保留；其他任何取值（包括缺失、"system"、
    大小写不同的写法）一律视为用户消息，这是静默回退而不是错误。
    """

    if role == "assistant":
        return "assistant"
    if role == "user":
        return "user"
    # 未知角色按用户消息处理
    return "user"


def to_chat_messages(records: Any) -> List[ChatMessage]:
    """将 [{role, content}] 列表转换为 ChatMessage 列表，顺序与长度保持不变。

    Raises:
        InvalidRequestError: records 不是非空列表，或某条记录不是带字符串
            content 的对象。
    """

    if not isinstance(records, list) or not records:
        raise InvalidRequestError(code="INVALID_REQUEST", message=EMPTY_MESSAGES)

    messages: List[ChatMessage] = []
    for idx, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise InvalidRequestError(
                code="INVALID_REQUEST",
                message=f"第 {idx + 1} 条消息格式错误",
            )
        content = record.get("content")
        if not isinstance(content, str):
            raise InvalidRequestError(
                code="INVALID_REQUEST",
                message=f"第 {idx + 1} 条消息缺少文本内容",
            )
        messages.append(ChatMessage(role=normalize_role(record.get("role")), content=content))
    return messages
