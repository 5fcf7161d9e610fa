# taskhub/main.py

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taskhub.config import (
    FRONTEND_ORIGIN,
    LOG_FILE,
    LOG_LEVEL,
    REMINDER_SCAN_INTERVAL_SECONDS,
    REMINDER_SCANNER_ENABLED,
    REMINDER_WINDOW_MINUTES,
)
from taskhub.database import SessionLocal, init_db
from taskhub.errors import NotFoundError, TaskHubError
from taskhub.logging_setup import setup_logging
from taskhub.task.reminder_scanner import run_reminder_scanner

logger = logging.getLogger("taskhub.main")


# ---------------- LIFESPAN ----------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(level=LOG_LEVEL, log_file=LOG_FILE)

    scanner = None
    if REMINDER_SCANNER_ENABLED:
        scanner = asyncio.create_task(
            run_reminder_scanner(
                SessionLocal,
                interval_seconds=REMINDER_SCAN_INTERVAL_SECONDS,
                window_minutes=REMINDER_WINDOW_MINUTES,
            )
        )
        logger.info("reminder_scanner_started")

    try:
        yield
    finally:
        if scanner is not None:
            scanner.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await scanner
            logger.info("reminder_scanner_stopped")


app = FastAPI(title="TaskHub Backend", lifespan=lifespan)

# ---------------- CORS ----------------
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

if FRONTEND_ORIGIN:
    origins.append(FRONTEND_ORIGIN)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------- ERRORS ----------------
@app.exception_handler(TaskHubError)
async def handle_taskhub_error(request: Request, exc: TaskHubError):
    # someone else's row answers exactly like a missing one
    error_type = "NotFoundError" if isinstance(exc, NotFoundError) else exc.error_type
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error_type": error_type},
    )


# ---------------- DATABASE INIT ----------------
init_db()
logger.info("database_ready")

# ---------------- ROUTERS ----------------
from taskhub.auth.auth_router import router as auth_router  # noqa: E402
from taskhub.draft.draft_router import router as draft_router  # noqa: E402
from taskhub.group.group_router import router as group_router  # noqa: E402
from taskhub.inbox.inbox_router import router as inbox_router  # noqa: E402
from taskhub.review.review_router import router as review_router  # noqa: E402
from taskhub.stats.stats_router import router as stats_router  # noqa: E402
from taskhub.task.calendar_router import router as calendar_router  # noqa: E402
from taskhub.task.completed_router import router as completed_router  # noqa: E402
from taskhub.task.task_router import router as task_router  # noqa: E402

app.include_router(auth_router, prefix="/auth")
# the other routers carry their own prefix
app.include_router(task_router)
app.include_router(completed_router)
app.include_router(calendar_router)
app.include_router(group_router)
app.include_router(inbox_router)
app.include_router(draft_router)
app.include_router(stats_router)
app.include_router(review_router)


# ---------------- ROOT ----------------
@app.get("/")
def read_root():
    return {"message": "TaskHub backend running"}
