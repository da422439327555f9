"""
Weekly Recap - Main FastAPI Application
Week and year activity summaries served through a two-tier cache
"""
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query

from weekly_recap.cache import CacheKey, CacheManager, get_cache_manager
from weekly_recap.week_data import WeekDataService
from config.settings import settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("main")

# Version tracking
APP_VERSION = "v1.0.0"
APP_NAME = "Weekly Recap"

# Route limits
MAX_WEEK_NUMBER = 52
MAX_INVALIDATE_WEEK = 260
MAX_YEARS_BACK = 5

_started_at = time.monotonic()
_week_service: Optional[WeekDataService] = None


def get_week_service() -> WeekDataService:
    """Get or create the shared week data service."""
    global _week_service
    if _week_service is None:
        _week_service = WeekDataService(get_cache_manager())
    return _week_service


def get_cache(service: WeekDataService = Depends(get_week_service)) -> CacheManager:
    return service.cache


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"{APP_NAME} {APP_VERSION} starting...")
    if settings.warmup_enabled and settings.warmup_weeks > 0:
        # Never awaited: requests are served while the cache warms
        get_week_service().warm_in_background(settings.warmup_weeks)
    yield
    logger.info("Shutting down...")


app = FastAPI(
    title=APP_NAME,
    description="Weekly music, exercise, places and reading summaries",
    version=APP_VERSION,
    lifespan=lifespan,
)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime_seconds": round(time.monotonic() - _started_at, 1),
    }


@app.get("/version")
def version_info():
    """Version information endpoint."""
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
    }


# ===== WEEKS =====

@app.get("/api/weeks")
def list_weeks(
    limit: int = Query(default=10, description="Number of weeks (1-52)"),
    offset: int = Query(default=0, description="First week number (0 = current week)"),
    service: WeekDataService = Depends(get_week_service),
):
    """Get a window of weeks, cached weeks in parallel and uncached ones sequentially."""
    if limit < 1 or limit > MAX_WEEK_NUMBER:
        raise HTTPException(status_code=400, detail=f"limit must be between 1 and {MAX_WEEK_NUMBER}")
    if offset < 0 or offset > MAX_WEEK_NUMBER:
        raise HTTPException(status_code=400, detail=f"offset must be between 0 and {MAX_WEEK_NUMBER}")

    try:
        weeks = service.get_weeks(limit, offset)
    except Exception as e:
        logger.error(f"Error generating weeks: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "weeks": weeks,
        "meta": {"limit": limit, "offset": offset, "count": len(weeks)},
    }


@app.get("/api/weeks/{week_number}")
def get_week(week_number: int, service: WeekDataService = Depends(get_week_service)):
    """Get a single week."""
    if week_number < 0 or week_number > MAX_WEEK_NUMBER:
        raise HTTPException(status_code=400, detail=f"weekNumber must be between 0 and {MAX_WEEK_NUMBER}")
    try:
        return service.get_week(week_number)
    except Exception as e:
        logger.error(f"Error generating week {week_number}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


# ===== YEARS =====

@app.get("/api/years")
def list_years(service: WeekDataService = Depends(get_week_service)):
    """Years that can be summarized, newest first."""
    years = service.available_years()
    return {"years": years, "meta": {"count": len(years)}}


@app.get("/api/years/{year}")
def get_year(year: int, service: WeekDataService = Depends(get_week_service)):
    """Get a year summary."""
    current_year = datetime.now(timezone.utc).year
    if year < current_year - MAX_YEARS_BACK or year > current_year:
        raise HTTPException(
            status_code=400,
            detail=f"yearNumber must be between {current_year - MAX_YEARS_BACK} and {current_year}",
        )
    try:
        return service.get_year(year)
    except Exception as e:
        logger.error(f"Error generating year {year}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


# ===== CACHE ADMINISTRATION =====

@app.get("/api/cache/stats")
def cache_stats(cache: CacheManager = Depends(get_cache)):
    """Get cache statistics."""
    return cache.get_stats().to_dict()


@app.post("/api/cache/stats/reset")
def reset_cache_stats(cache: CacheManager = Depends(get_cache)):
    """Zero the cache counters."""
    cache.reset_stats()
    return {"message": "Cache statistics reset"}


@app.post("/api/cache/clear")
def clear_cache(cache: CacheManager = Depends(get_cache)):
    """Empty both cache tiers."""
    result = cache.clear_all()
    return {"message": "Cache cleared successfully", **result}


@app.post("/api/cache/invalidate/{week_number}")
def invalidate_week(week_number: int, cache: CacheManager = Depends(get_cache)):
    """Drop one week from both cache tiers."""
    if week_number < 0 or week_number > MAX_INVALIDATE_WEEK:
        raise HTTPException(
            status_code=400,
            detail=f"weekNumber must be between 0 and {MAX_INVALIDATE_WEEK}",
        )
    cache.invalidate(CacheKey.week(week_number))
    return {"message": f"Cache invalidated for week {week_number}"}
