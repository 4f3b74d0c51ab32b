"""领域层模型与协议。

包含：
- models: 统一的 ChatMessage / ChatRequest / ChatResult 模型。
- messages: 浏览器消息到 ChatMessage 的转换。
- exceptions: 业务异常类型定义。
"""
