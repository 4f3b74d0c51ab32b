"""HTTP 层：服务函数 (service) 与 FastAPI 应用 (app)。"""
