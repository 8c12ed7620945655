from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from .api.data_routes import router as data_router
from .api.analysis_routes import router as analysis_router
from .api.cleaning_routes import router as cleaning_router
from .api.chart_routes import router as chart_router
from .config import settings
from .db.database import init_db

# 配置日志 (Configure logging)
logging.basicConfig(level=logging.DEBUG if settings.DEBUG else logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 应用启动时创建数据表并初始化全局orchestrator
    logger.info(f"Starting {settings.PROJECT_NAME} API...")
    init_db()
    from .orchestrator.orchestrator import get_orchestrator
    get_orchestrator()
    yield
    logger.info(f"Shutting down {settings.PROJECT_NAME} API...")


app = FastAPI(
    title=f"{settings.PROJECT_NAME} API",
    description="CSV upload with AI-generated insights and data cleaning",
    version="1.0.0",
    lifespan=lifespan
)

# 配置CORS (Configure CORS)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],  # 允许所有HTTP方法
    allow_headers=["*"],  # 允许所有headers
)

# 注册路由 (Register routes)
api_prefix = settings.API_V1_STR
app.include_router(data_router, prefix=f"{api_prefix}/datasets", tags=["datasets"])
app.include_router(analysis_router, prefix=f"{api_prefix}/insights", tags=["insights"])
app.include_router(cleaning_router, prefix=f"{api_prefix}/cleaning", tags=["cleaning"])
app.include_router(chart_router, prefix=f"{api_prefix}/charts", tags=["charts"])


@app.get("/")
async def root():
    return {
        "message": f"Welcome to {settings.PROJECT_NAME} API",
        "version": "1.0.0",
        "features": [
            "CSV Dataset Upload",
            "Column Type Inference",
            "Descriptive Statistics",
            "AI-Generated Insights",
            "AI Data Cleaning",
            "Cleaned Dataset Export",
            "Chart Configurations"
        ],
        "docs": "/docs",
        "redoc": "/redoc"
    }


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "version": "1.0.0"
    }
