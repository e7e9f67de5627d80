"""
Hotel Admin 主应用入口
酒店后台：房间、客人、预订生命周期、支付与运营指标
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from hotel_admin.config import settings
from hotel_admin.database import init_db, SessionLocal
from hotel_admin.exceptions import PersistenceError
from hotel_admin.routers import rooms, guests, bookings, checkin, checkout, payments, reports, diagnostics

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


def reconcile_side_effects() -> None:
    """重放上次运行遗留的未完成副作用"""
    from hotel_admin.services.side_effect_service import SideEffectService

    db = SessionLocal()
    try:
        result = SideEffectService(db).reconcile()
        if result.still_failing:
            logger.warning(f"{result.still_failing} side effects still failing after reconcile")
    except PersistenceError as e:
        logger.error(f"Startup reconcile failed: {e}")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # 初始化数据库
    init_db()

    # 注册事件处理器
    from hotel_admin.services.event_handlers import register_event_handlers
    register_event_handlers()

    if settings.RECONCILE_ON_STARTUP:
        reconcile_side_effects()

    logger.info(f"{settings.APP_NAME} started")
    yield


# 创建应用
app = FastAPI(
    title=settings.APP_NAME,
    description="酒店后台管理：预订生命周期、状态同步与运营指标",
    version="1.0.0",
    debug=settings.DEBUG,
    lifespan=lifespan
)

# CORS 配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    """持久化失败统一返回 503"""
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "数据存储暂不可用，请稍后重试"}
    )


# 注册路由
app.include_router(rooms.router)
app.include_router(guests.router)
app.include_router(bookings.router)
app.include_router(checkin.router)
app.include_router(checkout.router)
app.include_router(payments.router)
app.include_router(reports.router)
app.include_router(diagnostics.router)


@app.get("/")
def root():
    """根路径"""
    return {
        "name": settings.APP_NAME,
        "version": "1.0.0",
        "description": "酒店后台管理系统"
    }


@app.get("/health")
def health_check():
    """健康检查"""
    return {"status": "healthy"}
