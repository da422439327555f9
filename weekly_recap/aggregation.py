"""
Week and year summary builders.

Each section (listening, activity, places, reading) is generated
deterministically from the week number, so the same week always yields the
same summary. These are the record producers the cache layer calls on a miss.
"""
import logging
import random
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from weekly_recap.utils.dates import format_minutes, week_dates, week_start, weeks_since_year_start

logger = logging.getLogger("aggregation")

# Activity types: (weight, min_km, max_km)
ACTIVITY_TYPES = {
    "run": (50, 5.0, 15.0),
    "bike": (30, 20.0, 40.0),
    "walk": (20, 2.0, 8.0),
}

GENRES = ["indie", "jazz", "electronic", "hip-hop", "classical", "folk", "rock"]
NEIGHBORHOODS = ["Mission", "SoMa", "Hayes Valley", "North Beach", "Richmond", "Sunset"]
BOOK_GENRES = ["fiction", "history", "science", "biography", "essays"]

# Weeks sampled per year summary
YEAR_SAMPLE_WEEKS = 12


def _listening(rng: random.Random) -> Dict[str, Any]:
    minutes = rng.randint(60, 900)
    return {
        "songs": rng.randint(20, 180),
        "artists": rng.randint(10, 90),
        "sessions": rng.randint(3, 21),
        "minutes": minutes,
        "totalTime": format_minutes(minutes),
        "genre": rng.choice(GENRES),
    }


def _activity(rng: random.Random) -> Dict[str, Any]:
    summary = {"runs": 0, "runDistance": 0.0, "bikes": 0, "bikeDistance": 0.0,
               "walks": 0, "walkDistance": 0.0}
    names = list(ACTIVITY_TYPES)
    weights = [ACTIVITY_TYPES[n][0] for n in names]
    for _ in range(rng.randint(2, 7)):
        kind = rng.choices(names, weights=weights)[0]
        _, low, high = ACTIVITY_TYPES[kind]
        summary[f"{kind}s"] += 1
        summary[f"{kind}Distance"] = round(summary[f"{kind}Distance"] + rng.uniform(low, high), 2)

    distance = summary["runDistance"] + summary["bikeDistance"] + summary["walkDistance"]
    return {
        "steps": rng.randint(35000, 110000),
        "distance": round(distance, 2),
        "summary": summary,
    }


def _places(rng: random.Random) -> Dict[str, Any]:
    unique = rng.randint(1, 8)
    return {
        "uniquePlaces": unique,
        "totalVisits": unique + rng.randint(0, 10),
        "location": rng.choice(NEIGHBORHOODS),
    }


def _reading(rng: random.Random) -> Dict[str, Any]:
    return {
        "finished": rng.randint(0, 2),
        "started": rng.randint(0, 3),
        "genre": rng.choice(BOOK_GENRES),
    }


def build_week(week_number: int, today: Optional[date] = None) -> Dict[str, Any]:
    """
    Build the summary for one week.

    Args:
        week_number: 0 = current week, 1 = last week, etc.
        today: Reference day for the week boundaries
    """
    if week_number < 0:
        raise ValueError(f"week_number must be non-negative, got {week_number}")

    dates = week_dates(week_number, today)
    rng = random.Random(f"week:{dates['start']}")
    logger.info(f"Generating data for week {week_number} ({dates['start']})")
    return {
        "weekNumber": week_number,
        "startDate": dates["start"],
        "endDate": dates["end"],
        "listening": _listening(rng),
        "activity": _activity(rng),
        "places": _places(rng),
        "reading": _reading(rng),
    }


def build_year(year: int, today: Optional[date] = None) -> Dict[str, Any]:
    """
    Build a year summary by sampling weeks and extrapolating.

    Past years cover 52 weeks; the current year covers the weeks elapsed so far.
    """
    today = today or datetime.now(timezone.utc).date()
    if year > today.year:
        raise ValueError(f"Cannot summarize future year {year}")

    weeks_total = 52 if year < today.year else max(min(weeks_since_year_start(year, today), 52), 1)
    samples = min(weeks_total, YEAR_SAMPLE_WEEKS)
    interval = max(weeks_total // samples, 1)
    # Offset (weeks back from today) of the week containing Jan 1
    first_offset = (week_start(today) - week_start(date(year, 1, 1))).days // 7

    logger.info(f"Aggregating year {year}: sampling {samples} of {weeks_total} weeks")

    music = {"totalSongs": 0, "totalArtists": 0, "totalSessions": 0, "totalMinutes": 0}
    activity = {"totalSteps": 0, "totalDistance": 0.0, "totalRuns": 0, "totalBikes": 0, "totalWalks": 0}
    places: Dict[str, Any] = {"totalUniquePlaces": 0, "totalVisits": 0, "placesByNeighborhood": {}}
    reading = {"totalBooksFinished": 0, "totalBooksStarted": 0}

    for i in range(samples):
        offset = max(first_offset - i * interval, 0)
        week = build_week(offset, today)

        music["totalSongs"] += week["listening"]["songs"]
        music["totalArtists"] += week["listening"]["artists"]
        music["totalSessions"] += week["listening"]["sessions"]
        music["totalMinutes"] += week["listening"]["minutes"]

        activity["totalSteps"] += week["activity"]["steps"]
        activity["totalDistance"] += week["activity"]["distance"]
        activity["totalRuns"] += week["activity"]["summary"]["runs"]
        activity["totalBikes"] += week["activity"]["summary"]["bikes"]
        activity["totalWalks"] += week["activity"]["summary"]["walks"]

        location = week["places"]["location"]
        places["totalUniquePlaces"] += week["places"]["uniquePlaces"]
        places["totalVisits"] += week["places"]["totalVisits"]
        places["placesByNeighborhood"][location] = (
            places["placesByNeighborhood"].get(location, 0) + week["places"]["uniquePlaces"]
        )

        reading["totalBooksFinished"] += week["reading"]["finished"]
        reading["totalBooksStarted"] += week["reading"]["started"]

    factor = weeks_total / samples
    for section in (music, activity, places, reading):
        for name, value in section.items():
            if isinstance(value, int):
                section[name] = round(value * factor)
            elif isinstance(value, float):
                section[name] = round(value * factor, 2)

    return {
        "year": year,
        "weeksAggregated": weeks_total,
        "music": music,
        "activity": activity,
        "places": places,
        "reading": reading,
        "generatedAt": datetime.now(timezone.utc).isoformat(),
    }
