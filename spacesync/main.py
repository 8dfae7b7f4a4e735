from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from spacesync.core.config import settings
from spacesync.core.errors import register_exception_handlers
from spacesync.routers import sync

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application...")

    # NOTE: production databases are migrated with `alembic upgrade head`
    if settings.AUTO_CREATE_TABLES:
        from spacesync.database.engine import create_db_and_tables
        create_db_and_tables()
        logger.info("✓ Database tables ensured")

    # Redis-backed rate limiting when configured
    redis_client = None
    try:
        if settings.REDIS_URL:
            logger.info(f"Initializing Redis connection: {settings.REDIS_URL}")
            from redis import Redis
            from spacesync.core.rate_limiter import initialize_redis_rate_limiter

            redis_client = Redis.from_url(
                settings.REDIS_URL,
                decode_responses=False,
                socket_connect_timeout=5
            )
            redis_client.ping()

            initialize_redis_rate_limiter(redis_client)
            logger.info("✓ Redis rate limiter initialized successfully")
        else:
            logger.info("Redis not configured, using in-memory rate limiting (development mode)")
    except Exception as e:
        logger.warning(f"Failed to initialize Redis: {e}")
        logger.warning("Falling back to in-memory rate limiting")
        redis_client = None

    logger.info("Application startup complete")

    yield

    logger.info("Application shutdown initiated...")

    if redis_client:
        redis_client.close()
        logger.info("✓ Redis connection closed")

    logger.info("Application shutdown complete")

app = FastAPI(
    title="SpaceSync Backend",
    description="Offline-first sync API: push/pull with last-write-wins, soft deletes, backup and restore",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(sync.router, prefix=settings.API_PREFIX)  # Sync: /api/v1/sync/*

@app.get("/")
def read_root():
    return {
        "message": "Welcome to SpaceSync Backend API",
        "version": "1.0.0",
        "modules": {
            "sync": f"{settings.API_PREFIX}/sync/* (push, pull, backup, restore)"
        },
        "docs": "/docs",
        "redoc": "/redoc"
    }

@app.get("/health")
def health_check():
    return {
        "success": True,
        "message": "Server is running",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
