from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Optional
import logging

from .config import Settings, settings as default_settings
from .database import Database
from .api import api_router
from .events.producer import OrderEventProducer
from .exceptions import MarketplaceError
from .services.image_store import ImageStore

logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    """Настройка логирования"""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения"""
    settings = app.state.settings
    database = app.state.database

    # Startup
    logger.info(f"🚀 Starting {settings.app_name}...")

    try:
        database.connect()
        if settings.db_create_tables:
            await database.create_all()

        if app.state.event_producer is not None:
            await app.state.event_producer.start()

        logger.info(f"🎉 {settings.app_name} started successfully!")

        yield  # Приложение работает

    except Exception as e:
        logger.error(f"❌ Failed to start {settings.app_name}: {e}")
        raise

    # Shutdown
    logger.info(f"🛑 Shutting down {settings.app_name}...")

    try:
        if app.state.event_producer is not None:
            await app.state.event_producer.stop()

        await database.dispose()

        logger.info(f"👋 {settings.app_name} shut down complete")

    except Exception as e:
        logger.error(f"❌ Error during shutdown: {e}")


def create_app(
        settings: Optional[Settings] = None,
        database: Optional[Database] = None,
        image_store: Optional[ImageStore] = None,
        event_producer: Optional[OrderEventProducer] = None
) -> FastAPI:
    """
    Собирает приложение. Зависимости, не переданные явно, создаются
    из настроек; тесты передают свои экземпляры.
    """
    settings = settings or default_settings

    app = FastAPI(
        title=settings.app_name,
        description="Marketplace API: корзина, оформление и просмотр заказов",
        version="1.0.0",
        lifespan=lifespan
    )

    if event_producer is None and settings.kafka_enabled:
        event_producer = OrderEventProducer(settings.kafka_bootstrap_servers)

    app.state.settings = settings
    app.state.database = database or Database(
        settings.database_url,
        echo=settings.debug,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow
    )
    app.state.image_store = image_store or ImageStore(
        cloud_name=settings.cloudinary_cloud_name,
        api_key=settings.cloudinary_api_key,
        api_secret=settings.cloudinary_api_secret,
        folder=settings.cloudinary_folder,
        timeout=settings.image_store_timeout
    )
    app.state.event_producer = event_producer

    # Настройка CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Подключаем API routes
    app.include_router(api_router)

    @app.get("/health")
    async def health_check():
        """Проверка состояния сервиса"""
        return {
            "status": "healthy",
            "service": "marketplace-service",
            "version": "1.0.0"
        }

    @app.get("/health/ready")
    async def readiness_check(request: Request):
        """Проверка готовности к обработке запросов"""
        if not await request.app.state.database.ping():
            raise HTTPException(status_code=503, detail="Service not ready")
        return {
            "status": "ready",
            "service": "marketplace-service"
        }

    @app.exception_handler(MarketplaceError)
    async def marketplace_exception_handler(request: Request, exc: MarketplaceError):
        """Доменные ошибки: стабильный kind и сообщение, без внутренних деталей"""
        if exc.status_code >= 500:
            logger.error(f"❌ {exc.kind} on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.kind, "message": exc.message}
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "error": "invalid_input",
                "message": "Invalid request",
                "details": jsonable_errors(exc)
            }
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Глобальный обработчик исключений"""
        logger.error(f"❌ Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_error",
                "message": "An unexpected error occurred"
            }
        )

    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    """Поля с ошибками без значений из запроса"""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg")}
        for error in exc.errors()
    ]


setup_logging(default_settings.log_level)
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=default_settings.debug
    )
