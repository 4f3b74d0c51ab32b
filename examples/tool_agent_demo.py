"""Minimal demonstration of the tool-calling agent (requires ALIBABA_API_KEY)."""

from chat_core import run_tool_chat

if __name__ == "__main__":
    question = "帮我查一下杭州的天气，再在客户库里搜索 3 条 VIP 记录"
    reply = run_tool_chat([{"role": "user", "content": question}])
    print("User:", question)
    print("Agent:", reply["content"])
