"""命令行入口：python -m chat_core [--host H] [--port P]"""

import argparse
import logging

import uvicorn
from dotenv import load_dotenv


def main() -> None:
    parser = argparse.ArgumentParser(description="通义千问聊天服务")
    parser.add_argument("--host", default="127.0.0.1", help="监听地址 (默认: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="监听端口 (默认: 8000)")
    parser.add_argument("--reload", action="store_true", help="代码变更时自动重启")
    args = parser.parse_args()

    # .env 写入进程环境后 reload 子进程也能读到 ALIBABA_API_KEY
    load_dotenv()
    logging.getLogger("chat_core").info(
        "Starting chat server", extra={"extra": {"host": args.host, "port": args.port}}
    )
    uvicorn.run("chat_core.api.app:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
