import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from chief_of_staff import database
from chief_of_staff.config import get_settings
from chief_of_staff.logging_config import RequestLoggingMiddleware, init_logging
from chief_of_staff.routes import router

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------
init_logging()
logger = logging.getLogger("main")
logger.info("Application starting...")


# ---------------------------------------------------------------------------
# App lifespan (startup/shutdown)
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown tasks."""
    logger.info("Startup: initializing database...")
    try:
        await database.init_db_async()
        logger.info("Connected to database: %s", database.get_database_dsn())
    except Exception as e:
        logger.critical("Database initialization failed: %s", e)
        raise  # app must not start without a database

    settings = get_settings()
    if settings.scheduler_enabled:
        logger.info("Startup: starting notification scheduler...")
        try:
            from chief_of_staff.features.notifications import start_scheduler
            await start_scheduler()
        except Exception as e:
            logger.error("Failed to start notification scheduler: %s", e)
    else:
        logger.info("Notification scheduler disabled (SCHEDULER_ENABLED=false)")

    yield  # app runs during this block

    if settings.scheduler_enabled:
        logger.info("Shutdown: stopping notification scheduler...")
        try:
            from chief_of_staff.features.notifications import stop_scheduler
            await stop_scheduler()
        except Exception as e:
            logger.error("Error stopping notification scheduler: %s", e)

    logger.info("Shutdown: closing database connection pool...")
    try:
        await database.shutdown_db_async()
        logger.info("Cleanup complete.")
    except Exception as e:
        logger.error("Error during shutdown cleanup: %s", e)


# ---------------------------------------------------------------------------
# FastAPI Application
# ---------------------------------------------------------------------------
app = FastAPI(
    title="AI Chief of Staff",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Base Routes
# ---------------------------------------------------------------------------

@app.get("/", tags=["Health"])
async def root():
    """Basic health check to verify the service is running."""
    return {"status": "ok", "message": "AI Chief of Staff is running."}


app.include_router(router)
