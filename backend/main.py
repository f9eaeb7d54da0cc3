# backend/main.py
import time
import datetime as dt
from datetime import datetime
from typing import Literal, Optional

from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

import schemas
import services
from config import settings
from core.exceptions import CompletionQueryException, HabitNotFoundException
from core.logging import logger, setup_logging
from database import SessionLocal, get_db, init_db
from repository import HabitRepository
from seed import seed_demo_data

# ════════════════════════════════════════
# LOGGING + DATABASE
# ════════════════════════════════════════

setup_logging()

init_db()  # remove this once Alembic is set up

if settings.SEED_DEMO_DATA:
    _db = SessionLocal()
    try:
        seed_demo_data(HabitRepository(_db))
    finally:
        _db.close()


def get_repository(db: Session = Depends(get_db)) -> HabitRepository:
    return HabitRepository(db)


def get_now() -> datetime:
    return datetime.now()


# Rate limiter — identifies clients by their IP address
limiter = Limiter(key_func=get_remote_address)


# ════════════════════════════════════════
# APP + MIDDLEWARE
# ════════════════════════════════════════

app = FastAPI(
    title="HabitFlow API",
    version="1.0.0",
    description="Habit tracking — habits, daily completions, streaks and stats",
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start    = time.time()
    response = await call_next(request)
    ms       = (time.time() - start) * 1000
    logger.info(f"{request.method} {request.url.path} → {response.status_code} ({ms:.0f}ms)")
    return response


@app.exception_handler(Exception)
async def global_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Something went wrong. Please try again."})


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    # ctx may carry the raw ValueError, which JSONResponse cannot encode
    return [
        {key: value for key, value in error.items() if key != "ctx"}
        for error in exc.errors()
    ]


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": jsonable_errors(exc)})


# ════════════════════════════════════════
# ROUTES — all under /api/v1/
# ════════════════════════════════════════

# ── Health Check ────────────────────────
@app.get("/")
def health_check():
    return {"status": "online", "version": "1.0.0", "message": "HabitFlow API is running"}


# ── Habits ───────────────────────────────
@app.get("/api/v1/habits/", response_model=schemas.PaginatedResponse[schemas.HabitWithStats], tags=["Habits"])
def get_habits(
    page:  int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    include_archived: bool = False,
    sort:  Literal["recent", "priority"] = "recent",
    repo:  HabitRepository = Depends(get_repository),
    now:   datetime = Depends(get_now),
):
    data = services.get_habits_with_stats(repo, now, page, limit, include_archived, sort)
    logger.info(f"Fetched habits page {page} ({len(data['items'])} of {data['total']})")
    return data


@app.get("/api/v1/habits/{habit_id}", response_model=schemas.HabitWithStats, tags=["Habits"])
def get_habit(
    habit_id: int,
    repo: HabitRepository = Depends(get_repository),
    now:  datetime = Depends(get_now),
):
    habit = services.get_habit_with_stats(repo, habit_id, now)
    if not habit:
        raise HabitNotFoundException(habit_id)
    return habit


@app.post("/api/v1/habits/", response_model=schemas.HabitWithStats,
          status_code=status.HTTP_201_CREATED, tags=["Habits"])
@limiter.limit(settings.RATE_LIMIT)
def create_habit(
    request: Request,
    habit: schemas.HabitCreate,
    repo: HabitRepository = Depends(get_repository),
    now:  datetime = Depends(get_now),
):
    new_habit = services.create_habit(
        repo, habit.name, habit.description, habit.frequency,
        habit.reminder_time, habit.active_days, now
    )
    logger.info(f"Created habit {new_habit['id']}: '{habit.name}'")
    return new_habit


@app.patch("/api/v1/habits/{habit_id}", response_model=schemas.HabitWithStats, tags=["Habits"])
def update_habit(
    habit_id: int,
    payload: schemas.HabitUpdate,
    repo: HabitRepository = Depends(get_repository),
    now:  datetime = Depends(get_now),
):
    fields = payload.model_dump(exclude_unset=True, exclude_none=True)
    habit  = services.update_habit(repo, habit_id, fields, now)
    if not habit:
        raise HabitNotFoundException(habit_id)
    logger.info(f"Updated habit {habit_id}: {sorted(fields)}")
    return habit


@app.delete("/api/v1/habits/{habit_id}", tags=["Habits"])
def delete_habit(
    habit_id: int,
    repo: HabitRepository = Depends(get_repository),
):
    if not repo.delete_habit(habit_id):
        raise HabitNotFoundException(habit_id)
    logger.info(f"Deleted habit {habit_id}")
    return {"message": "Habit deleted"}


@app.patch("/api/v1/habits/{habit_id}/archive", response_model=schemas.HabitWithStats, tags=["Habits"])
def archive_habit(
    habit_id: int,
    repo: HabitRepository = Depends(get_repository),
    now:  datetime = Depends(get_now),
):
    habit = services.toggle_archive(repo, habit_id, now)
    if not habit:
        raise HabitNotFoundException(habit_id)
    action = "archived" if habit["is_archived"] else "unarchived"
    logger.info(f"Habit {habit_id} {action}")
    return habit


# ── Completions ──────────────────────────
@app.get("/api/v1/habits/{habit_id}/completions",
         response_model=list[schemas.CompletionResponse], tags=["Completions"])
def get_habit_completions(
    habit_id: int,
    repo: HabitRepository = Depends(get_repository),
):
    if not repo.get_habit(habit_id):
        raise HabitNotFoundException(habit_id)
    return repo.list_completions(habit_id)


@app.post("/api/v1/habits/{habit_id}/completions", response_model=schemas.CompletionResponse,
          status_code=status.HTTP_201_CREATED, tags=["Completions"])
@limiter.limit(settings.RATE_LIMIT)
def toggle_completion(
    request: Request,
    habit_id: int,
    payload: schemas.CompletionToggle,
    repo: HabitRepository = Depends(get_repository),
    now:  datetime = Depends(get_now),
):
    day    = payload.date or now.date()
    result = services.toggle_completion(repo, habit_id, day, payload.completed)
    if not result:
        raise HabitNotFoundException(habit_id)
    logger.info(f"Habit {habit_id} on {day} → {'done' if payload.completed else 'missed'}")
    return result


@app.get("/api/v1/completions", response_model=list[schemas.CompletionResponse], tags=["Completions"])
def get_completions(
    day:        Optional[dt.date] = Query(None, alias="date"),
    start_date: Optional[dt.date] = None,
    end_date:   Optional[dt.date] = None,
    repo: HabitRepository = Depends(get_repository),
):
    if day:
        return repo.completions_for_date(day)
    if start_date and end_date:
        return repo.completions_between(start_date, end_date)
    raise CompletionQueryException()


# ── Dashboard ────────────────────────────
@app.get("/api/v1/stats", response_model=schemas.DashboardResponse, tags=["Dashboard"])
def get_dashboard(
    repo: HabitRepository = Depends(get_repository),
    now:  datetime = Depends(get_now),
):
    data = services.get_dashboard(repo, now)
    logger.info(f"Dashboard — {data['completed_today']}/{data['total_habits']} done today")
    return data
