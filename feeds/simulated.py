"""
Simulated race provider feed.

Stands in for a real racing data provider: waits a random latency, then
returns synthetic races with embedded horse fields. Feed races can be
stored with RaceRepository.import_races_from_api().

Usage:
    import asyncio
    from feeds.simulated import SimulatedRaceAPI

    api = SimulatedRaceAPI()
    result = asyncio.run(api.fetch_races("demo", max_races=5))
    added = repo.import_races_from_api(result.races)
"""

import asyncio
import random
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from racebook.config import api_latency
from racebook.logging import get_logger
from racebook.normalize import format_timestamp, parse_timestamp

logger = get_logger(__name__)

TRACKS = ["Churchill Downs", "Belmont Park", "Santa Anita", "Keeneland", "Saratoga", "Del Mar"]
RACE_TYPES = ["Maiden", "Allowance", "Stakes", "Claiming", "Handicap"]
DISTANCES = [1200, 1400, 1600, 1800, 2000, 2400]

HORSE_NAMES = [
    "Thunder Strike", "Lightning Bolt", "Storm Chaser", "Wind Runner", "Fire Spirit",
    "Golden Arrow", "Silver Bullet", "Midnight Express", "Dawn Breaker", "Star Gazer",
    "Ocean Wave", "Mountain Peak", "Desert Storm", "Forest Fire", "Ice Crystal",
]

JOCKEYS = [
    "J. Smith", "M. Johnson", "R. Williams", "S. Brown", "T. Davis",
    "A. Miller", "C. Wilson", "D. Moore", "E. Taylor", "F. Anderson",
]

MIN_FIELD = 6
MAX_FIELD = 11
DEFAULT_WINDOW = timedelta(days=7)
DEFAULT_MAX_RACES = 10


@dataclass
class APIError(Exception):
    """Provider feed error."""
    status_code: int
    message: str


@dataclass
class FetchResult:
    """Races returned by one provider fetch."""

    success: bool
    provider: str
    timestamp: str
    races: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "races": self.races,
            "provider": self.provider,
            "timestamp": self.timestamp,
        }


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_sample_horses(count: int, rng: Optional[random.Random] = None) -> list[dict]:
    """
    Build a field of horses with distinct names.

    Weight is 52-60kg and odds 2-20, both as one-decimal strings.

    Raises:
        ValueError: If count exceeds the name pool
    """
    if count < 0 or count > len(HORSE_NAMES):
        raise ValueError(f"count must be between 0 and {len(HORSE_NAMES)}, got {count}")

    rng = rng or random.Random()
    names = rng.sample(HORSE_NAMES, count)

    return [
        {
            "name": name,
            "jockey": rng.choice(JOCKEYS),
            "weight": f"{52 + rng.random() * 8:.1f}",
            "odds": f"{2 + rng.random() * 18:.1f}",
            "number": i + 1,
        }
        for i, name in enumerate(names)
    ]


def generate_sample_races(
    provider: str,
    count: int,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    rng: Optional[random.Random] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> list[dict]:
    """
    Build synthetic races dated between date_from and date_to.

    Args:
        provider: Recorded as each race's "source"
        count: Number of races
        date_from: ISO date/timestamp (default: now)
        date_to: ISO date/timestamp (default: now + 7 days)
        rng: Random source
        clock: Current time source

    Returns:
        List of race dicts ready for import_races_from_api()
    """
    rng = rng or random.Random()
    now = (clock or _utc_now)()

    start = parse_timestamp(date_from if date_from else now)
    if start is None:
        raise ValueError(f"Invalid date_from: {date_from!r}")
    end = parse_timestamp(date_to) if date_to else parse_timestamp(now) + DEFAULT_WINDOW
    if end is None:
        raise ValueError(f"Invalid date_to: {date_to!r}")
    if end < start:
        raise ValueError("date_to must not be before date_from")

    created_at = format_timestamp(now)
    millis = int(now.timestamp() * 1000)
    span = (end - start).total_seconds()

    races = []
    for i in range(count):
        race_date = start + timedelta(seconds=rng.random() * span)
        track = rng.choice(TRACKS)
        race_type = rng.choice(RACE_TYPES)
        distance = rng.choice(DISTANCES)
        horses = generate_sample_horses(rng.randint(MIN_FIELD, MAX_FIELD), rng)

        races.append({
            "id": f"api_{millis}_{i}",
            "name": f"{race_type} Race {i + 1}",
            "track": track,
            "date": format_timestamp(race_date),
            "distance": distance,
            "raceNumber": i + 1,
            "prizeMoney": 10000 + rng.random() * 90000,
            "horses": horses,
            "source": provider,
            "createdAt": created_at,
        })

    return races


class SimulatedRaceAPI:
    """
    Fake provider client with artificial latency.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        latency: Optional[tuple[float, float]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            rng: Random source for delays and generated data
            latency: (min, max) delay in seconds (defaults to config); (0, 0) disables
            clock: Current time source
        """
        self.rng = rng or random.Random()
        self.latency = latency if latency is not None else api_latency()
        self.clock = clock or _utc_now

    async def fetch_races(
        self,
        provider: str,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        max_races: int = DEFAULT_MAX_RACES,
    ) -> FetchResult:
        """
        Fetch synthetic races from a named provider.

        Raises:
            APIError: If provider is blank, max_races is negative or the dates are invalid
        """
        if not provider or not provider.strip():
            raise APIError(status_code=400, message="Provider name required")
        if max_races < 0:
            raise APIError(status_code=400, message="max_races must be >= 0")

        low, high = self.latency
        delay = low + self.rng.random() * (high - low)
        if delay > 0:
            await asyncio.sleep(delay)

        try:
            races = generate_sample_races(
                provider, max_races, date_from, date_to, rng=self.rng, clock=self.clock
            )
        except ValueError as e:
            raise APIError(status_code=400, message=str(e)) from e
        logger.info(
            f"Fetched {len(races)} races from {provider}",
            extra={"provider": provider, "delay_s": round(delay, 2)},
        )
        return FetchResult(
            success=True,
            provider=provider,
            timestamp=format_timestamp(self.clock()),
            races=races,
        )
