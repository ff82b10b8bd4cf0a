from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# 从 DB 层导入连接管理函数
from infrastructure.db.mysql_client import connect_to_mysql, close_mysql_connection

# 导入配置、路由等
from core.config import settings
from core.logger import get_logger, setup_logging
from routers import users as users_router  # Users 路由
from routers import health as health_router  # Health 路由

from dependencies.providers import close_background_services

# 全局异常处理
from core.exceptions import BaseAPIException, unified_api_exception_handler, generic_exception_handler

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI 应用的生命周期事件管理器。
    yield 之前的代码在应用启动时执行。
    yield 之后的代码在应用关闭时执行。
    """

    # --- 0. 首先配置日志系统 ---
    setup_logging(include_timestamp=True)

    logger.info(f"[{settings.APP_NAME}] Application Startup Event triggered.")

    # 建立 MySQL 连接（建表：accounts / sms_logs / channels）
    await connect_to_mysql()

    yield

    logger.info(f"[{settings.APP_NAME}] Application Shutdown Event triggered.")

    # 等待后台任务（管理端通知、账号激活）结束并关闭 HTTP 客户端
    await close_background_services()

    # 关闭 MySQL 连接
    await close_mysql_connection()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="""
Shop account service: phone + SMS code registration, password login and
SMS quick login with JWT access tokens.

- HTTP: /users/reg, /users/login, /users/quickLogin, /users/me, /users/{user_id}, /health
""",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],  # 包括 X-Auth-Token
    allow_credentials=True,
)


@app.middleware("http")
async def add_security_headers(request, call_next):
    response = await call_next(request)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    return response


# 注册 BaseAPIException。任何抛出其子类的异常都会被此处理器捕获。
app.exception_handler(BaseAPIException)(unified_api_exception_handler)
# 注册通用 500 处理器，捕获所有未被处理的 Python 异常
app.exception_handler(Exception)(generic_exception_handler)

app.include_router(users_router.router)
app.include_router(health_router.router)


@app.get("/")
def read_root():
    return {"message": f"Welcome to {settings.APP_NAME} API. Check /docs for endpoints."}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True  # 开发模式下启用热重载
    )
