"""FastAPI application for dev-tool."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import dataclasses
import logging
import sys
import os

from dev_tool.config import DevToolConfig
from dev_tool._storage import StorageFactory
from dev_tool.backup import BackupManager, BackupScheduler
from .config import settings
from .routers import backup, database, health

# App-managed logging: attach our own stdout handler to the package logger
# and don't propagate, so INFO logs show regardless of uvicorn's config.
dev_logger = logging.getLogger("dev-tool")
dev_logger.setLevel(logging.INFO)
dev_logger.propagate = False
dev_logger.handlers.clear()

console_handler = logging.StreamHandler(sys.stdout)
console_handler.setLevel(logging.INFO)
formatter = logging.Formatter(
    '%(asctime)s - [%(name)s] - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
console_handler.setFormatter(formatter)
dev_logger.addHandler(console_handler)

if os.getenv("DISABLE_APP_LOGGING", "false").lower() == "true":
    dev_logger.handlers.clear()
    dev_logger.propagate = True

logger = logging.getLogger(__name__)


def build_config() -> DevToolConfig:
    """Environment config with the API settings layered on top."""
    config = DevToolConfig.from_env()

    storage_overrides = {
        "backend": settings.storage_backend,
        "namespace": settings.storage_namespace,
        "working_dir": settings.storage_working_dir,
    }
    if settings.redis_url:
        storage_overrides["redis_url"] = settings.redis_url
        storage_overrides["redis_password"] = settings.redis_password

    config = dataclasses.replace(config, storage=dataclasses.replace(config.storage, **storage_overrides))
    if settings.backup_dir:
        config = dataclasses.replace(config, backup=dataclasses.replace(config.backup, dir=settings.backup_dir))
    return config


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage storage and backup timer lifecycle."""
    config = build_config()
    logger.info(f"Initializing {config.storage.backend} table storage...")

    try:
        app.state.storage = StorageFactory.create_table_storage(
            config.storage.backend,
            namespace=config.storage.namespace,
            global_config=config.to_dict(),
        )
    except Exception as e:
        logger.error(f"Failed to initialize table storage: {e}")
        raise

    app.state.backup_manager = BackupManager(app.state.storage, config.backup)
    app.state.scheduler = BackupScheduler(app.state.backup_manager)
    logger.info("Backup subsystem initialized")

    yield

    logger.info("Shutting down dev-tool...")
    app.state.scheduler.dispose()
    if hasattr(app.state.storage, "close"):
        await app.state.storage.close()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
        docs_url=f"{settings.api_prefix}/docs",
        openapi_url=f"{settings.api_prefix}/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(backup.router, prefix=settings.api_prefix)
    app.include_router(database.router, prefix=settings.api_prefix)
    app.include_router(health.router, prefix=settings.api_prefix)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": settings.api_title,
            "version": settings.api_version,
            "docs": f"{settings.api_prefix}/docs"
        }

    return app


app = create_app()
