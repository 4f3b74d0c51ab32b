"""FastAPI 应用：浏览器页面与两个 JSON 聊天端点。

- POST /chat   普通聊天
- POST /tools  带工具调用的 Agent 聊天
- GET  /       聊天页面
- GET  /health 健康检查
"""

from pathlib import Path
from typing import Any, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel

from chat_core.api import service
from chat_core.config.settings import Settings, settings
from chat_core.domain.exceptions import BusinessError
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers import create_provider
from chat_core.providers.base import ProviderClient

STATIC_DIR = Path(__file__).parent / "static"

ProviderFactory = Callable[[Settings], ProviderClient]


class ChatPayload(BaseModel):
    """请求体；messages 的校验交给服务层，以便返回 400 而不是 422。"""

    messages: Any = None


class ChatReply(BaseModel):
    content: str


def _default_provider_factory(cfg: Settings) -> ProviderClient:
    return create_provider(cfg=cfg)


def _respond(endpoint: str, call: Callable[[], dict]):
    try:
        return call()
    except BusinessError as e:
        logger.warning(
            f"{endpoint} request failed",
            extra={"extra": {"code": e.code, "status": e.http_status, "error": e.message}},
        )
        return JSONResponse(e.to_payload(), status_code=e.http_status)
    except Exception as e:
        logger.exception(f"{endpoint} request crashed", extra={"extra": {"error": str(e)}})
        return JSONResponse({"error": str(e) or "服务器错误"}, status_code=500)


def create_app(cfg: Optional[Settings] = None, provider_factory: Optional[ProviderFactory] = None) -> FastAPI:
    """创建应用。

    Args:
        cfg: 显式配置；缺省使用启动时加载的全局 settings
        provider_factory: 按配置创建 Provider 的函数，测试时可替换
    """

    app = FastAPI(title="chat_core")
    app.state.settings = cfg or settings
    app.state.provider_factory = provider_factory or _default_provider_factory

    @app.exception_handler(RequestValidationError)
    async def _invalid_body(request: Request, exc: RequestValidationError):
        return JSONResponse({"error": "请求体格式错误，需要 {messages: [...]}"}, status_code=400)

    @app.get("/")
    def index():
        return FileResponse(STATIC_DIR / "index.html")

    @app.get("/health")
    def health(request: Request):
        return {
            "status": "healthy",
            "credential_configured": bool(getattr(request.app.state.settings, "alibaba_api_key", None)),
        }

    @app.post("/chat", response_model=ChatReply)
    def chat(payload: ChatPayload, request: Request):
        state = request.app.state
        return _respond(
            "chat",
            lambda: service.run_chat(
                payload.messages,
                state.settings,
                provider_factory=lambda: state.provider_factory(state.settings),
            ),
        )

    @app.post("/tools", response_model=ChatReply)
    def tools(payload: ChatPayload, request: Request):
        state = request.app.state
        return _respond(
            "tools",
            lambda: service.run_tool_chat(
                payload.messages,
                state.settings,
                provider_factory=lambda: state.provider_factory(state.settings),
            ),
        )

    return app


app = create_app()
